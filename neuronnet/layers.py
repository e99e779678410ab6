"""
Fully-Connected Layer
=====================

A layer is a row of neurons that share one fan-in and one activation type.
It orchestrates the neurons' forward pass, runs the layer-wide softmax for
the output layer, computes deltas during backpropagation and applies the
clipped weight update.

Backpropagation input is an explicit signal instead of a positional
convention:
- Target(values): the true target vector, for the softmax output layer
- UpstreamLayer(layer): the layer right after this one, for hidden layers

Parameter storage: the layer's weights and biases are one float32 block of
shape (num_neurons, num_inputs + 1); row j is neuron j's
``[weights..., bias]``. The block may be a view into a network-wide buffer.
"""

import numpy as np

from .activations import ActivationType, relu_derivative, softmax
from .neuron import Neuron

# Gradient clipping bound applied to deltas and per-weight gradients
MAX_GRAD = 1.0

# Softmax outputs are clipped into [OUTPUT_CLIP, 1 - OUTPUT_CLIP] before
# computing the output-layer delta
OUTPUT_CLIP = 1e-7


class Target:
    """Backward signal for the output layer: the expected output vector."""

    def __init__(self, values):
        self.values = np.asarray(values, dtype=np.float32).ravel()

    def __repr__(self):
        return f"Target({self.values.size} values)"


class UpstreamLayer:
    """Backward signal for a hidden layer: the layer that consumes its outputs."""

    def __init__(self, layer):
        self.layer = layer

    def __repr__(self):
        return f"UpstreamLayer({self.layer!r})"


class Layer:
    """
    Fully-connected layer of neurons.

    Args:
        num_neurons: Number of neurons (output width)
        num_inputs: Fan-in of every neuron (input width)
        activation_type: ActivationType shared by all neurons
        params: Optional float32 block (num_neurons, num_inputs + 1)
        grads: Optional float32 block of the same shape for gradients
        rng: Random generator used for initialization

    Forward: outputs[i] = act(bias_i + W[i] . inputs)
    """

    def __init__(self, num_neurons, num_inputs, activation_type=ActivationType.RELU,
                 params=None, grads=None, rng=None):
        if num_neurons <= 0 or num_inputs <= 0:
            raise ValueError(
                f"Layer sizes must be positive, got {num_neurons} neurons x {num_inputs} inputs")

        self.num_neurons = num_neurons
        self.num_inputs = num_inputs
        self.activation_type = activation_type

        shape = (num_neurons, num_inputs + 1)
        self.params = self._block(params, shape)
        self.grads = self._block(grads, shape)

        self.neurons = [
            Neuron(num_inputs, activation_type, params=self.params[i], grads=self.grads[i], rng=rng)
            for i in range(num_neurons)
        ]

        self.outputs = np.zeros(num_neurons, dtype=np.float32)
        self.sums = np.zeros(num_neurons, dtype=np.float32)
        self.deltas = np.zeros(num_neurons, dtype=np.float32)

    @staticmethod
    def _block(buffer, shape):
        if buffer is None:
            return np.zeros(shape, dtype=np.float32)
        if buffer.shape != shape or buffer.dtype != np.float32:
            raise ValueError(f"Parameter block must be float32 with shape {shape}")
        return buffer

    @property
    def weights(self):
        """Weight matrix view, shape (num_neurons, num_inputs)."""
        return self.params[:, :-1]

    @property
    def biases(self):
        """Bias vector view, shape (num_neurons,)."""
        return self.params[:, -1]

    def forward(self, inputs):
        """
        Forward pass.

        Each neuron computes its own weighted sum (and ReLU, for hidden
        layers). A softmax layer then normalizes all raw sums together:
        subtract the max, exponentiate, divide by the total, with a uniform
        fallback if the total is zero.

        Args:
            inputs: Input vector, shape (num_inputs,)

        Returns:
            The layer's outputs array, shape (num_neurons,)
        """
        inputs = np.asarray(inputs, dtype=np.float32)
        if inputs.shape != (self.num_inputs,):
            raise ValueError(f"Expected input of shape ({self.num_inputs},), got {inputs.shape}")

        for i, neuron in enumerate(self.neurons):
            self.outputs[i] = neuron.forward(inputs)
            self.sums[i] = neuron.sum

        if self.activation_type is ActivationType.SOFTMAX:
            self.outputs[:] = softmax(self.outputs)
            for neuron, value in zip(self.neurons, self.outputs):
                neuron.output = float(value)

        return self.outputs

    def compute_deltas(self, signal):
        """
        Set every neuron's delta from the backward signal.

        Output layer (softmax + cross-entropy):
            delta[i] = clip(output[i]) - target[i]

        Hidden layer (ReLU):
            delta[i] = sum_j(W_next[j, i] * delta_next[j]) * relu'(sum[i])
        """
        if self.activation_type is ActivationType.SOFTMAX:
            if not isinstance(signal, Target):
                raise TypeError(f"Softmax layer expects a Target signal, got {signal!r}")
            if signal.values.shape != (self.num_neurons,):
                raise ValueError(
                    f"Expected target of length {self.num_neurons}, got {signal.values.size}")

            outputs = np.clip(self.outputs, OUTPUT_CLIP, 1.0 - OUTPUT_CLIP)
            self.deltas[:] = outputs - signal.values
        else:
            if not isinstance(signal, UpstreamLayer):
                raise TypeError(f"Hidden layer expects an UpstreamLayer signal, got {signal!r}")
            upstream = signal.layer
            if upstream.num_inputs != self.num_neurons:
                raise ValueError(
                    f"Upstream layer takes {upstream.num_inputs} inputs, "
                    f"this layer has {self.num_neurons} neurons")

            error = upstream.weights.T @ upstream.deltas
            self.deltas[:] = error * relu_derivative(self.sums)

        for neuron, delta in zip(self.neurons, self.deltas):
            neuron.delta = float(delta)

        return self.deltas

    def _clipped_gradients(self, inputs):
        deltas = np.clip(self.deltas, -MAX_GRAD, MAX_GRAD)
        weight_grads = np.clip(np.outer(deltas, inputs), -MAX_GRAD, MAX_GRAD)
        return weight_grads, deltas

    def compute_gradients(self, inputs):
        """
        Store clipped gradients in `grads` without touching the weights.

        Uses the deltas from the last compute_deltas() call.
        """
        inputs = np.asarray(inputs, dtype=np.float32)
        weight_grads, bias_grads = self._clipped_gradients(inputs)

        self.grads[:, :-1] = weight_grads
        self.grads[:, -1] = bias_grads
        return self.grads

    def backward(self, inputs, signal, learning_rate):
        """
        Backward pass: compute deltas, then apply a clipped SGD step.

        Each delta is clamped to [-1, 1]; each per-weight gradient
        delta * input[j] is clamped to [-1, 1] independently. The bias moves
        by the clamped delta.

        Args:
            inputs: The input this layer saw on the forward pass
            signal: Target or UpstreamLayer
            learning_rate: Step size
        """
        inputs = np.asarray(inputs, dtype=np.float32)
        self.compute_deltas(signal)

        weight_grads, bias_grads = self._clipped_gradients(inputs)
        lr = np.float32(learning_rate)
        self.params[:, :-1] -= lr * weight_grads
        self.params[:, -1] -= lr * bias_grads

    def randomize(self, min_value, max_value, rng=None):
        """Re-initialize every neuron (bias range [min_value, max_value])."""
        for neuron in self.neurons:
            neuron.randomize(min_value, max_value, rng=rng)

    def copy(self):
        """Deep copy with its own parameter storage."""
        clone = Layer(self.num_neurons, self.num_inputs, self.activation_type,
                      params=self.params.copy(), grads=self.grads.copy(), rng=np.random.default_rng())
        # The constructor re-randomized the copied block
        clone.params[:] = self.params
        clone.grads[:] = self.grads
        clone.outputs[:] = self.outputs
        clone.sums[:] = self.sums
        clone.deltas[:] = self.deltas
        for src, dst in zip(self.neurons, clone.neurons):
            dst.sum, dst.output, dst.delta = src.sum, src.output, src.delta
        return clone

    def __repr__(self):
        return f"Layer({self.num_inputs}, {self.num_neurons}, {self.activation_type.value})"
