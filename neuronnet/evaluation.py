"""
Evaluation
==========

Metrics for classification networks:
- ConfusionMatrix: counts of true class vs predicted class
- ROCCurve: true/false positive rates over evenly spaced thresholds, with AUC
- validate(): mean loss over a dataset
- test(): mean loss plus an optional confusion matrix update

Classes are read from vectors by argmax, so targets are one-hot vectors and
predictions are the network's output probabilities.
"""

import numpy as np

from .losses import get_loss


class ConfusionMatrix:
    """
    Confusion matrix, rows = true class, columns = predicted class.

    Args:
        num_classes: Number of classes
    """

    def __init__(self, num_classes):
        if num_classes <= 0:
            raise ValueError(f"num_classes must be positive, got {num_classes}")
        self.num_classes = num_classes
        self.matrix = np.zeros((num_classes, num_classes), dtype=int)

    def update(self, predictions, targets):
        """
        Add samples to the matrix.

        Args:
            predictions: Shape (num_classes,) or (N, num_classes)
            targets: Same shape as predictions
        """
        predictions = np.asarray(predictions).reshape(-1, self.num_classes)
        targets = np.asarray(targets).reshape(-1, self.num_classes)

        for pred, true in zip(np.argmax(predictions, axis=1), np.argmax(targets, axis=1)):
            self.matrix[true, pred] += 1

    def accuracy(self):
        total = self.matrix.sum()
        return float(np.trace(self.matrix) / total) if total > 0 else 0.0

    def reset(self):
        self.matrix[:] = 0

    def __str__(self):
        lines = ["Confusion Matrix:", "Predicted ->", "Actual  " + "".join(f"{i:8d}" for i in range(self.num_classes))]
        for i, row in enumerate(self.matrix):
            lines.append(f"{i:8d}" + "".join(f"{count:8d}" for count in row))
        return "\n".join(lines)


class ROCCurve:
    """
    ROC curve for a binary score.

    Thresholds are evenly spaced over [0, 1]. A sample counts as predicted
    positive when its score is >= the threshold, and as truly positive when
    its target is > 0.

    Args:
        predictions: Scores, shape (N,)
        targets: Binary targets, shape (N,)
        num_points: Number of thresholds (>= 2)
    """

    def __init__(self, predictions, targets, num_points=101):
        if num_points < 2:
            raise ValueError(f"num_points must be at least 2, got {num_points}")

        predictions = np.asarray(predictions, dtype=np.float64).ravel()
        positive = np.asarray(targets).ravel() > 0

        self.num_points = num_points
        self.thresholds = np.linspace(0.0, 1.0, num_points)
        self.tpr = np.zeros(num_points)
        self.fpr = np.zeros(num_points)

        n_pos = np.sum(positive)
        n_neg = positive.size - n_pos

        for i, threshold in enumerate(self.thresholds):
            predicted = predictions >= threshold
            tp = np.sum(predicted & positive)
            fp = np.sum(predicted & ~positive)
            self.tpr[i] = tp / n_pos if n_pos > 0 else 0.0
            self.fpr[i] = fp / n_neg if n_neg > 0 else 0.0

    def auc(self):
        """
        Area under the curve, trapezoidal rule.

        Thresholds increase along the curve, so FPR decreases; the sum is
        negated to report a positive area.
        """
        widths = np.diff(self.fpr)
        heights = (self.tpr[1:] + self.tpr[:-1]) / 2.0
        return float(-np.sum(widths * heights))

    def __str__(self):
        lines = ["ROC Curve Points:", f"{'Threshold':<15}{'TPR':<15}{'FPR':<15}"]
        for threshold, tpr, fpr in zip(self.thresholds, self.tpr, self.fpr):
            lines.append(f"{threshold:<15.3f}{tpr:<15.3f}{fpr:<15.3f}")
        return "\n".join(lines)


def validate(network, X, Y, loss='cross_entropy'):
    """Mean loss of `network` over the samples (X, Y)."""
    return test(network, X, Y, loss)


def test(network, X, Y, loss='cross_entropy', confusion_matrix=None):
    """
    Mean loss over the samples, updating `confusion_matrix` if given.

    The confusion matrix is reset first so it only reflects this dataset.

    Args:
        network: Anything with predict(x) -> probabilities
        X: Inputs, shape (N, input_size)
        Y: One-hot targets, shape (N, num_classes)
        loss: LossType, loss name, or Loss instance
        confusion_matrix: Optional ConfusionMatrix

    Returns:
        Mean loss (0.0 for an empty dataset)
    """
    loss_fn = get_loss(loss)
    if confusion_matrix is not None:
        confusion_matrix.reset()

    total = 0.0
    n_samples = 0
    for x, target in zip(X, Y):
        prediction = network.predict(x)
        total += loss_fn(prediction, target)
        n_samples += 1
        if confusion_matrix is not None:
            confusion_matrix.update(prediction, target)

    return total / n_samples if n_samples else 0.0
