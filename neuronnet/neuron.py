"""
Neuron
======

A single fully-connected unit: a weight vector, a bias, and the values from
its last forward/backward pass.

Storage layout: weights and bias share one float32 row
``[w_0, ..., w_{fan_in-1}, bias]``. A neuron created on its own allocates
that row; inside a network the row is a view into the network's flat
parameter buffer, so updating a neuron updates the network in place. The
gradient row has the same layout.
"""

import numpy as np

from .activations import ActivationType, relu, relu_derivative

DEFAULT_BIAS_RANGE = (-0.05, 0.05)


class Neuron:
    """
    Fully-connected neuron.

    Args:
        num_inputs: Fan-in (number of inputs feeding the neuron)
        activation_type: ActivationType.RELU or ActivationType.SOFTMAX
        params: Optional float32 row of length num_inputs + 1 to use as
            weight/bias storage (shared, not copied)
        grads: Optional float32 row of the same length for gradients
        rng: Random generator used for initialization (np.random if None)

    Attributes:
        sum: Pre-activation value from the last forward pass
        output: Post-activation value from the last forward pass
        delta: Error signal from the last backward pass
    """

    def __init__(self, num_inputs, activation_type=ActivationType.RELU,
                 params=None, grads=None, rng=None):
        if num_inputs <= 0:
            raise ValueError(f"num_inputs must be positive, got {num_inputs}")

        self.num_inputs = num_inputs
        self.activation_type = activation_type

        self._params = self._storage(params, num_inputs + 1, 'params')
        self._grads = self._storage(grads, num_inputs + 1, 'grads')

        self.sum = 0.0
        self.output = 0.0
        self.delta = 0.0

        self.randomize(*DEFAULT_BIAS_RANGE, rng=rng)

    @staticmethod
    def _storage(buffer, size, name):
        if buffer is None:
            return np.zeros(size, dtype=np.float32)
        if buffer.shape != (size,) or buffer.dtype != np.float32:
            raise ValueError(f"{name} must be a float32 vector of length {size}")
        return buffer

    @property
    def weights(self):
        return self._params[:-1]

    @weights.setter
    def weights(self, values):
        self._params[:-1] = values

    @property
    def bias(self):
        return float(self._params[-1])

    @bias.setter
    def bias(self, value):
        self._params[-1] = value

    @property
    def gradients(self):
        return self._grads[:-1]

    @gradients.setter
    def gradients(self, values):
        self._grads[:-1] = values

    @property
    def bias_gradient(self):
        return float(self._grads[-1])

    @bias_gradient.setter
    def bias_gradient(self, value):
        self._grads[-1] = value

    def randomize(self, min_value, max_value, rng=None):
        """
        Re-initialize weights and bias.

        Weights use Glorot-style uniform init for a single output unit:
        limit = sqrt(6 / (fan_in + 1)), weights ~ U[-limit, limit].
        The bias is drawn from the caller's own range U[min_value, max_value].
        """
        rng = np.random if rng is None else rng
        limit = np.sqrt(6.0 / (self.num_inputs + 1))

        self.weights = rng.uniform(-limit, limit, size=self.num_inputs)
        self.bias = rng.uniform(min_value, max_value)
        self._grads[:] = 0.0

    def forward(self, inputs):
        """
        Weighted sum plus bias, followed by ReLU for ReLU neurons.

        Softmax neurons return the raw sum; the layer normalizes them all
        together afterwards.
        """
        inputs = np.asarray(inputs, dtype=np.float32)
        total = np.float32(self.bias) + np.dot(self.weights, inputs)
        self.sum = float(total)

        if self.activation_type is ActivationType.RELU:
            self.output = relu(self.sum)
        else:
            self.output = self.sum

        return self.output

    def local_gradient(self):
        """delta scaled by the activation derivative (softmax: delta as-is)."""
        if self.activation_type is ActivationType.RELU:
            return self.delta * relu_derivative(self.sum)
        return self.delta

    def backward(self, inputs, learning_rate):
        """
        Plain gradient-descent step on this neuron alone (no clipping).

        w_i -= lr * gradient * x_i
        b   -= lr * gradient
        """
        inputs = np.asarray(inputs, dtype=np.float32)
        gradient = np.float32(self.local_gradient())

        self.weights -= np.float32(learning_rate) * gradient * inputs
        self.bias = self.bias - learning_rate * gradient

    def update_weights(self, learning_rate):
        """Apply the stored `gradients` and `bias_gradient`."""
        self.weights -= np.float32(learning_rate) * self.gradients
        self.bias = self.bias - learning_rate * self.bias_gradient

    def copy(self):
        """Deep copy with its own storage."""
        clone = Neuron.__new__(Neuron)
        clone.num_inputs = self.num_inputs
        clone.activation_type = self.activation_type
        clone._params = self._params.copy()
        clone._grads = self._grads.copy()
        clone.sum = self.sum
        clone.output = self.output
        clone.delta = self.delta
        return clone

    def __repr__(self):
        return (f"Neuron(inputs={self.num_inputs}, "
                f"activation={self.activation_type.value}, bias={self.bias:.4f})")
