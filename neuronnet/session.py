"""
Model Session
=============

A caller-owned handle around one loaded model, for applications that embed
the engine (e.g. a web backend serving digit predictions).

    >>> with ModelSession() as session:
    ...     if session.load('models/mnist_model.bin'):
    ...         probs = session.predict(pixels)    # 784 values in [0, 1]

Each session holds at most one model. Loading replaces it, close() releases
it, and close() is safe to call any number of times. Used as a context
manager the model is released on every exit path.
"""

import logging

import numpy as np

from .network import Network

logger = logging.getLogger(__name__)


class ModelSession:
    """
    Holds one loaded network and serves fixed-size predictions.

    Args:
        expected_inputs: Required input length (784 for 28x28 images)
        expected_outputs: Required output length (10 digit classes)
    """

    def __init__(self, expected_inputs=784, expected_outputs=10):
        self.expected_inputs = expected_inputs
        self.expected_outputs = expected_outputs
        self.network = None

    @property
    def loaded(self):
        return self.network is not None

    def load(self, model_path):
        """
        Load a model file, replacing any model already held.

        Returns:
            True if a model with the expected input/output sizes was loaded
        """
        self.close()

        network = Network.load(model_path)
        if network is None:
            return False

        sizes = network.layer_sizes
        if sizes[0] != self.expected_inputs or sizes[-1] != self.expected_outputs:
            logger.error("Model %s has shape %s, expected %d inputs and %d outputs",
                         model_path, sizes, self.expected_inputs, self.expected_outputs)
            return False

        self.network = network
        return True

    def predict(self, pixels):
        """
        Class probabilities for one input vector.

        Returns:
            List of expected_outputs floats, or None if no model is loaded or
            the input has the wrong length
        """
        if self.network is None:
            logger.warning("predict() called without a loaded model")
            return None

        values = np.asarray(pixels, dtype=np.float32).ravel()
        if values.size != self.expected_inputs:
            logger.warning("Rejected input of length %d (expected %d)",
                           values.size, self.expected_inputs)
            return None

        return self.network.predict(values).tolist()

    def get_model_info(self):
        """Metadata about the held model: {'loaded', 'num_layers', 'layer_sizes'}."""
        if self.network is None:
            return {'loaded': False}

        return {
            'loaded': True,
            'num_layers': self.network.num_layers,
            'layer_sizes': list(self.network.layer_sizes),
        }

    def close(self):
        """Release the model. Safe to call repeatedly."""
        self.network = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    def __repr__(self):
        state = 'loaded' if self.loaded else 'empty'
        return f"ModelSession({state})"
