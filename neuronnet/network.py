"""
Network (Multilayer Perceptron) Main Class
==========================================

This is the main class that ties everything together:
- Layer stacking (ReLU hidden layers, softmax output layer)
- Forward pass
- Backward pass (backpropagation with gradient clipping)
- Single-sample train step and a training loop
- Prediction
- Model saving/loading in a compact binary format

All weights and biases live in one contiguous float32 buffer,
``Network.parameters``. Each layer and neuron works on a view into it, laid
out exactly like the body of the model file:

    for each layer, for each neuron: weights[fan_in], bias

Model file format (native byte order, no header or version tag):

    int32   num_layers
    int32   layer_sizes[num_layers]
    float32 learning_rate
    float32 parameters[...]        # layout above
"""

import logging
import time
from enum import Enum

import numpy as np
from tqdm import tqdm

from .activations import ActivationType
from .evaluation import ConfusionMatrix, test as evaluate_network
from .layers import Layer, Target, UpstreamLayer
from .losses import CrossEntropyLoss
from .utils import create_batches, one_hot_encode

logger = logging.getLogger(__name__)

_INT_SIZE = np.dtype(np.int32).itemsize
_FLOAT_SIZE = np.dtype(np.float32).itemsize


class NetworkState(Enum):
    CREATED = 'created'
    FORWARD_DONE = 'forward_done'
    BACKWARD_DONE = 'backward_done'


def _parameter_count(layer_sizes):
    return sum(n_out * (n_in + 1) for n_in, n_out in zip(layer_sizes[:-1], layer_sizes[1:]))


class Network:
    """
    Feedforward neural network (multilayer perceptron).

    Every layer except the last uses ReLU; the last layer uses softmax.
    This is fixed by construction.

    Example:
        >>> net = Network([784, 128, 10], learning_rate=0.01)
        >>> loss = net.train(x, one_hot_target)
        >>> probs = net.predict(x)
        >>> net.save('models/mnist.bin')
        >>> restored = Network.load('models/mnist.bin')

    Args:
        layer_sizes: Widths of all layers, input first, output last
        learning_rate: Step size used by backward()/train()
        rng: Random generator for weight init (np.random if None)
    """

    def __init__(self, layer_sizes, learning_rate=0.01, rng=None):
        layer_sizes = [int(size) for size in layer_sizes]
        if len(layer_sizes) < 2:
            raise ValueError(f"Need at least an input and an output layer, got {layer_sizes}")
        if any(size <= 0 for size in layer_sizes):
            raise ValueError(f"Layer sizes must be positive, got {layer_sizes}")

        self.layer_sizes = layer_sizes
        self.num_layers = len(layer_sizes)
        self.learning_rate = float(learning_rate)

        total = _parameter_count(layer_sizes)
        self.parameters = np.zeros(total, dtype=np.float32)
        self.gradients = np.zeros(total, dtype=np.float32)

        self.layers = self._build_layers(rng)

        self.input_data = np.zeros(layer_sizes[0], dtype=np.float32)
        self.output_data = np.zeros(layer_sizes[-1], dtype=np.float32)

        self.state = NetworkState.CREATED
        self.history = {}
        self._loss = CrossEntropyLoss()

    @classmethod
    def create(cls, layer_sizes, learning_rate=0.01, rng=None):
        """Build a network, returning None instead of raising if memory runs out."""
        try:
            return cls(layer_sizes, learning_rate, rng=rng)
        except MemoryError:
            logger.error("Not enough memory for network %s", list(layer_sizes))
            return None

    def _build_layers(self, rng):
        """Carve one layer view per (fan_in, width) pair out of the buffers."""
        layers = []
        offset = 0
        last = self.num_layers - 2

        for i, (n_in, n_out) in enumerate(zip(self.layer_sizes[:-1], self.layer_sizes[1:])):
            size = n_out * (n_in + 1)
            params = self.parameters[offset:offset + size].reshape(n_out, n_in + 1)
            grads = self.gradients[offset:offset + size].reshape(n_out, n_in + 1)
            activation = ActivationType.SOFTMAX if i == last else ActivationType.RELU

            layers.append(Layer(n_out, n_in, activation, params=params, grads=grads, rng=rng))
            offset += size

        return layers

    @property
    def num_parameters(self):
        return self.parameters.size

    # ------------------------------------------------------------------
    # Forward / backward
    # ------------------------------------------------------------------

    def forward(self, x):
        """
        Forward pass through every layer.

        Args:
            x: Input vector, shape (layer_sizes[0],)

        Returns:
            output_data, shape (layer_sizes[-1],). The array is reused by the
            next forward pass; copy it to keep it.
        """
        x = np.asarray(x, dtype=np.float32).ravel()
        if x.shape != self.input_data.shape:
            raise ValueError(f"Expected input of length {self.layer_sizes[0]}, got {x.size}")

        self.input_data[:] = x

        current = self.input_data
        for layer in self.layers:
            current = layer.forward(current)

        self.output_data[:] = current
        self.state = NetworkState.FORWARD_DONE
        return self.output_data

    def _layer_inputs(self, index):
        return self.input_data if index == 0 else self.layers[index - 1].outputs

    def _signals(self, target):
        """Yield (index, signal) from the output layer back to the first."""
        target = Target(target)
        last = len(self.layers) - 1
        for i in range(last, -1, -1):
            yield i, target if i == last else UpstreamLayer(self.layers[i + 1])

    def _require_forward(self, operation):
        if self.state is not NetworkState.FORWARD_DONE:
            raise RuntimeError(f"{operation}() must follow forward() on the same input")

    def backward(self, target):
        """
        Backpropagate from the output layer to the first layer.

        The output layer gets the true target; each hidden layer gets the
        layer right after it, whose weights have already been updated.
        Weights are updated in place.

        Args:
            target: One-hot target vector, shape (layer_sizes[-1],)
        """
        self._require_forward('backward')

        for i, signal in self._signals(target):
            self.layers[i].backward(self._layer_inputs(i), signal, self.learning_rate)

        self.state = NetworkState.BACKWARD_DONE

    def compute_gradients(self, x, target):
        """
        Forward pass plus clipped gradients, without updating any weight.

        Fills `gradients` (same layout as `parameters`) so an external
        optimizer can apply the step:

            >>> grads = net.compute_gradients(x, y)
            >>> optimizer.update(net.parameters, grads)

        Returns:
            The `gradients` buffer
        """
        self.forward(x)

        for i, signal in self._signals(target):
            layer = self.layers[i]
            layer.compute_deltas(signal)
            layer.compute_gradients(self._layer_inputs(i))

        self.state = NetworkState.BACKWARD_DONE
        return self.gradients

    def train(self, x, target):
        """
        Train on a single sample: forward, then backward.

        Returns:
            Cross-entropy loss of the prediction made before the update
        """
        output = self.forward(x)
        loss = self._loss(output, target)
        self.backward(target)
        return loss

    def predict(self, x):
        """Forward pass only; returns a copy of the output probabilities."""
        return self.forward(x).copy()

    def predict_class(self, x):
        return int(np.argmax(self.forward(x)))

    def randomize(self, min_value, max_value, rng=None):
        """Re-initialize every layer (bias range [min_value, max_value])."""
        for layer in self.layers:
            layer.randomize(min_value, max_value, rng=rng)
        self.state = NetworkState.CREATED

    # ------------------------------------------------------------------
    # Training loop
    # ------------------------------------------------------------------

    def fit(self, X, y, epochs=10, batch_size=32, validation_data=None,
            lr_scheduler=None, early_stopping_patience=None, checkpoint_path=None,
            shuffle=True, verbose=True):
        """
        Train the network sample by sample.

        Batches only group samples for progress reporting; the weights are
        updated after every sample.

        Args:
            X: Inputs, shape (N, layer_sizes[0])
            y: Labels, shape (N,) or one-hot (N, layer_sizes[-1])
            epochs: Number of training epochs
            batch_size: Samples per progress-bar step
            validation_data: Tuple (X_val, y_val)
            lr_scheduler: Callable (epoch, initial_lr) -> lr, applied at the
                start of every epoch
            early_stopping_patience: Stop after this many epochs without a
                lower validation loss
            checkpoint_path: Save the best model (by validation loss) here
            shuffle: Shuffle the training set every epoch
            verbose: Show a progress bar and log epoch summaries

        Returns:
            Training history dictionary
        """
        X = np.asarray(X, dtype=np.float32)
        y_onehot = self._one_hot(y)

        if validation_data is not None:
            X_val, y_val = validation_data
            X_val = np.asarray(X_val, dtype=np.float32)
            y_val = self._one_hot(y_val)

        initial_lr = self.learning_rate
        best_val_loss = float('inf')
        patience_counter = 0

        self.history = {
            'loss': [], 'accuracy': [],
            'val_loss': [], 'val_accuracy': [],
            'lr': []
        }

        n_batches = (len(X) + batch_size - 1) // batch_size

        for epoch in range(epochs):
            if lr_scheduler is not None:
                self.learning_rate = float(lr_scheduler(epoch, initial_lr))

            start = time.perf_counter()
            epoch_loss = 0.0
            epoch_correct = 0
            n_samples = 0

            batches = create_batches(X, y_onehot, batch_size, shuffle=shuffle)
            if verbose:
                batches = tqdm(batches, total=n_batches, desc=f"Epoch {epoch+1}/{epochs}")

            for X_batch, y_batch in batches:
                for sample, target in zip(X_batch, y_batch):
                    epoch_loss += self.train(sample, target)
                    epoch_correct += int(np.argmax(self.output_data) == np.argmax(target))
                    n_samples += 1

                if verbose:
                    batches.set_postfix({
                        'loss': f'{epoch_loss/n_samples:.4f}',
                        'acc': f'{epoch_correct/n_samples:.4f}'
                    })

            avg_loss = epoch_loss / max(n_samples, 1)
            self.history['loss'].append(avg_loss)
            self.history['accuracy'].append(epoch_correct / max(n_samples, 1))
            self.history['lr'].append(self.learning_rate)

            msg = (f"Epoch {epoch+1}/{epochs} - Loss: {avg_loss:.4f} "
                   f"- LR: {self.learning_rate:.6f} - {time.perf_counter() - start:.1f}s")

            if validation_data is not None:
                val_loss, val_accuracy = self.evaluate(X_val, y_val)
                self.history['val_loss'].append(val_loss)
                self.history['val_accuracy'].append(val_accuracy)
                msg += f" - Val Loss: {val_loss:.4f} - Val Acc: {val_accuracy:.4f}"

            if verbose:
                logger.info(msg)

            if validation_data is None:
                continue

            if val_loss < best_val_loss:
                best_val_loss = val_loss
                patience_counter = 0
                if checkpoint_path is not None:
                    self.save(checkpoint_path)
            else:
                patience_counter += 1
                if early_stopping_patience is not None and patience_counter >= early_stopping_patience:
                    logger.info("Early stopping at epoch %d", epoch + 1)
                    break

        return self.history

    def evaluate(self, X, y, loss='cross_entropy'):
        """
        Evaluate on a dataset.

        Returns:
            Tuple (mean loss, accuracy)
        """
        cm = ConfusionMatrix(self.layer_sizes[-1])
        mean_loss = evaluate_network(self, X, self._one_hot(y), loss, confusion_matrix=cm)
        return mean_loss, cm.accuracy()

    def _one_hot(self, y):
        y = np.asarray(y)
        if y.ndim == 1:
            return one_hot_encode(y, self.layer_sizes[-1]).astype(np.float32)
        return y.astype(np.float32)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self, filepath):
        """
        Write the model file.

        Returns:
            True on success, False if the file could not be written. A
            failed write may leave a partial file behind.
        """
        header = np.array([self.num_layers] + self.layer_sizes, dtype=np.int32)

        try:
            with open(filepath, 'wb') as f:
                f.write(header.tobytes())
                f.write(np.float32(self.learning_rate).tobytes())
                f.write(self.parameters.tobytes())
        except OSError as e:
            logger.error("Could not save model to %s: %s", filepath, e)
            return False

        logger.info("Model saved to %s", filepath)
        return True

    @classmethod
    def load(cls, filepath):
        """
        Read a model file written by save().

        The architecture (and so each layer's activation) is rebuilt from
        the stored layer sizes.

        Returns:
            Network, or None if the file cannot be read or is too short
        """
        try:
            with open(filepath, 'rb') as f:
                data = f.read()
        except OSError as e:
            logger.error("Could not open model file %s: %s", filepath, e)
            return None

        try:
            network = cls.from_bytes(data)
        except ValueError as e:
            logger.error("Invalid model file %s: %s", filepath, e)
            return None

        logger.info("Model loaded from %s", filepath)
        return network

    @classmethod
    def from_bytes(cls, data):
        """Decode the model file format; raises ValueError on short input."""
        if len(data) < _INT_SIZE:
            raise ValueError("missing layer count")

        num_layers = int(np.frombuffer(data, dtype=np.int32, count=1)[0])
        if num_layers < 2:
            raise ValueError(f"bad layer count {num_layers}")

        offset = _INT_SIZE
        if len(data) < offset + num_layers * _INT_SIZE + _FLOAT_SIZE:
            raise ValueError("truncated header")

        layer_sizes = np.frombuffer(data, dtype=np.int32, count=num_layers, offset=offset).tolist()
        offset += num_layers * _INT_SIZE
        learning_rate = float(np.frombuffer(data, dtype=np.float32, count=1, offset=offset)[0])
        offset += _FLOAT_SIZE

        if any(size <= 0 for size in layer_sizes):
            raise ValueError(f"bad layer sizes {layer_sizes}")

        count = _parameter_count(layer_sizes)
        if len(data) - offset < count * _FLOAT_SIZE:
            raise ValueError(
                f"expected {count} parameters, found {(len(data) - offset) // _FLOAT_SIZE}")

        # Weights are overwritten below; a private generator keeps np.random untouched
        network = cls(layer_sizes, learning_rate, rng=np.random.default_rng())
        network.parameters[:] = np.frombuffer(data, dtype=np.float32, count=count, offset=offset)
        return network

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def copy(self):
        clone = Network(self.layer_sizes, self.learning_rate, rng=np.random.default_rng())
        clone.parameters[:] = self.parameters
        clone.gradients[:] = self.gradients
        return clone

    def summary(self):
        """Print model summary."""
        print("\n" + "=" * 60)
        print("Network Summary")
        print("=" * 60)
        print(f"Layer sizes: {self.layer_sizes}")
        print(f"Learning rate: {self.learning_rate}")
        print("-" * 60)

        for i, layer in enumerate(self.layers):
            n_params = layer.params.size
            print(f"{i:3d}. {str(layer):<35} Params: {n_params:,}")

        print("-" * 60)
        print(f"Total trainable parameters: {self.num_parameters:,}")
        print("=" * 60 + "\n")

        return self.num_parameters

    def __repr__(self):
        return f"Network(layer_sizes={self.layer_sizes}, learning_rate={self.learning_rate})"
