"""
Loss Functions
==============

Loss functions measure how wrong a single prediction vector is compared to
its target vector. Training minimizes them.

Each loss implements:
- forward(predictions, targets): Compute the scalar loss
- backward(predictions, targets): Gradient w.r.t. the predictions

Losses are selected through the closed `LossType` variant rather than by
passing arbitrary callables around.
"""

import logging
from enum import Enum

import numpy as np

logger = logging.getLogger(__name__)

LOSS_EPSILON = 1e-10


class LossType(Enum):
    """The supported loss kinds."""
    MSE = 'mse'
    CROSS_ENTROPY = 'cross_entropy'
    BINARY_CROSS_ENTROPY = 'binary_cross_entropy'


class Loss:
    """Scalar loss between one prediction vector and its target vector."""

    loss_type = None

    def forward(self, predictions, targets):
        """Loss value as a Python float."""
        raise NotImplementedError

    def backward(self, predictions, targets):
        """Gradient with respect to the predictions."""
        raise NotImplementedError

    def __call__(self, predictions, targets):
        return self.forward(predictions, targets)


def _as_vectors(predictions, targets):
    predictions = np.asarray(predictions, dtype=np.float32).ravel()
    targets = np.asarray(targets, dtype=np.float32).ravel()
    if predictions.shape != targets.shape:
        raise ValueError(
            f"Predictions and targets differ in size: {predictions.size} != {targets.size}")
    return predictions, targets


class MSELoss(Loss):
    """
    Mean Squared Error.

    Formula: L = (1/n) * sum((y_pred - y_true)^2)

    Gradient: dL/dy_pred = 2 * (y_pred - y_true) / n
    """

    loss_type = LossType.MSE

    def forward(self, predictions, targets):
        predictions, targets = _as_vectors(predictions, targets)
        return float(np.mean((predictions - targets) ** 2))

    def backward(self, predictions, targets):
        predictions, targets = _as_vectors(predictions, targets)
        return 2.0 * (predictions - targets) / predictions.size


class CrossEntropyLoss(Loss):
    """
    Cross-Entropy Loss for multi-class classification.

    Formula: L = -sum(y_true * log(y_pred + epsilon)), summed only over
    positions where the target is positive.

    A prediction that is not a valid probability (<= 0 or NaN) at a target
    position is reported as a warning; the loss is still computed with the
    epsilon-stabilized formula.

    Args:
        epsilon: Small constant to prevent log(0)
    """

    loss_type = LossType.CROSS_ENTROPY

    def __init__(self, epsilon=LOSS_EPSILON):
        self.epsilon = epsilon

    def forward(self, predictions, targets):
        predictions, targets = _as_vectors(predictions, targets)
        positive = targets > 0

        invalid = positive & ~(predictions > 0)
        for i in np.flatnonzero(invalid):
            logger.warning("Invalid prediction: predictions[%d]=%f, targets[%d]=%f",
                           i, predictions[i], i, targets[i])

        p = predictions[positive].astype(np.float64)
        t = targets[positive].astype(np.float64)
        return float(-np.sum(t * np.log(p + self.epsilon)))

    def backward(self, predictions, targets):
        """
        Gradient w.r.t. the predicted probabilities: -y_true / y_pred.

        The output layer does not use this; softmax + cross-entropy combine
        into the much simpler predictions - targets.
        """
        predictions, targets = _as_vectors(predictions, targets)
        return -targets / (predictions + self.epsilon)


class BinaryCrossEntropyLoss(Loss):
    """
    Binary Cross-Entropy for independent binary outputs.

    Formula: L = -(1/n) * sum(y*log(p) + (1-y)*log(1-p))
    """

    loss_type = LossType.BINARY_CROSS_ENTROPY

    def __init__(self, epsilon=LOSS_EPSILON):
        self.epsilon = epsilon

    def forward(self, predictions, targets):
        predictions, targets = _as_vectors(predictions, targets)
        p = predictions.astype(np.float64)
        t = targets.astype(np.float64)
        loss = t * np.log(p + self.epsilon) + (1 - t) * np.log(1 - p + self.epsilon)
        return float(-np.mean(loss))

    def backward(self, predictions, targets):
        predictions, targets = _as_vectors(predictions, targets)
        n = predictions.size
        return -(targets / (predictions + self.epsilon)
                 - (1 - targets) / (1 - predictions + self.epsilon)) / n


# ============================================================================
# Loss Registry
# ============================================================================

LOSSES = {
    LossType.MSE: MSELoss,
    LossType.CROSS_ENTROPY: CrossEntropyLoss,
    LossType.BINARY_CROSS_ENTROPY: BinaryCrossEntropyLoss,
}

_ALIASES = {
    'mse': LossType.MSE,
    'mean_squared_error': LossType.MSE,
    'cross_entropy': LossType.CROSS_ENTROPY,
    'crossentropy': LossType.CROSS_ENTROPY,
    'ce': LossType.CROSS_ENTROPY,
    'bce': LossType.BINARY_CROSS_ENTROPY,
    'binary_cross_entropy': LossType.BINARY_CROSS_ENTROPY,
    'binary_crossentropy': LossType.BINARY_CROSS_ENTROPY,
}


def get_loss(name):
    """
    Get loss function by type or name.

    Args:
        name: LossType, string alias, or Loss instance

    Returns:
        Loss instance
    """
    if isinstance(name, Loss):
        return name

    if not isinstance(name, LossType):
        name_lower = str(name).lower().replace('-', '_').replace(' ', '_')
        if name_lower not in _ALIASES:
            available = ', '.join(sorted(_ALIASES))
            raise ValueError(f"Unknown loss '{name}'. Available: {available}")
        name = _ALIASES[name_lower]

    return LOSSES[name]()
