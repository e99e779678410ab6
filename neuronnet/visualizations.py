"""
Visualization Utilities
=======================

Plots for:
- Training progress (loss/accuracy curves from Network.fit history)
- Confusion matrix
- ROC curve
"""

import logging

import numpy as np
import matplotlib.pyplot as plt

logger = logging.getLogger(__name__)


def _finish(fig, save_path, show, what):
    plt.tight_layout()

    if save_path:
        fig.savefig(save_path, dpi=150, bbox_inches='tight')
        logger.info("%s saved to %s", what, save_path)

    if show:
        plt.show()
    return fig


def plot_training_history(history, figsize=(14, 5), save_path=None, show=True):
    """
    Loss and accuracy curves from a Network.fit() history.

    Validation curves are drawn when the history has them.

    Args:
        history: Dict with 'loss' and optionally 'accuracy', 'val_loss',
            'val_accuracy'
        figsize: Figure size
        save_path: Optional image path
        show: Call plt.show()
    """
    fig, axes = plt.subplots(1, 2, figsize=figsize)
    epochs = np.arange(1, len(history['loss']) + 1)

    for ax, metric in zip(axes, ('loss', 'accuracy')):
        title = metric.capitalize()
        for key, style, label in [(metric, 'b-', 'Training'), (f'val_{metric}', 'r-', 'Validation')]:
            values = history.get(key)
            if values:
                ax.plot(epochs[:len(values)], values, style, label=f'{label} {title}', linewidth=2)

        ax.set_xlabel('Epoch', fontsize=12)
        ax.set_ylabel(title, fontsize=12)
        ax.set_title(f'{title} per Epoch', fontsize=14)
        if ax.lines:
            ax.legend(fontsize=10)
        ax.grid(True, alpha=0.3)

    return _finish(fig, save_path, show, "Training history plot")


def plot_confusion_matrix(cm, class_names=None, figsize=(10, 8), save_path=None, show=True):
    """
    Confusion matrix heatmap with the count written in every cell.

    Args:
        cm: ConfusionMatrix or integer array (num_classes, num_classes),
            rows = true class
        class_names: Tick labels (class indices if None)
        figsize: Figure size
        save_path: Optional image path
        show: Call plt.show()
    """
    counts = np.asarray(getattr(cm, 'matrix', cm))
    n = len(counts)
    if class_names is None:
        class_names = [str(i) for i in range(n)]

    fig, ax = plt.subplots(figsize=figsize)
    im = ax.imshow(counts, interpolation='nearest', cmap=plt.cm.Blues)
    fig.colorbar(im, ax=ax)

    ticks = np.arange(n)
    ax.set_xticks(ticks)
    ax.set_yticks(ticks)
    ax.set_xticklabels(class_names, rotation=45, ha='right', rotation_mode='anchor')
    ax.set_yticklabels(class_names)
    ax.set_xlabel('Predicted Label')
    ax.set_ylabel('True Label')
    ax.set_title('Confusion Matrix')

    # Dark cells get white text
    midpoint = counts.max() / 2.0
    for (i, j), count in np.ndenumerate(counts):
        ax.text(j, i, str(int(count)), ha='center', va='center',
                color='white' if count > midpoint else 'black')

    return _finish(fig, save_path, show, "Confusion matrix")


def plot_roc_curve(roc, figsize=(6, 6), save_path=None, show=True):
    """
    Plot a ROC curve with its AUC in the legend.

    Args:
        roc: ROCCurve
        figsize: Figure size
        save_path: Path to save figure
        show: Call plt.show()
    """
    fig, ax = plt.subplots(figsize=figsize)

    ax.plot(roc.fpr, roc.tpr, 'b-', linewidth=2, label=f'ROC (AUC = {roc.auc():.3f})')
    ax.plot([0, 1], [0, 1], 'k--', alpha=0.5, label='Chance')
    ax.set_xlim(0, 1)
    ax.set_ylim(0, 1.02)
    ax.set_xlabel('False Positive Rate', fontsize=12)
    ax.set_ylabel('True Positive Rate', fontsize=12)
    ax.set_title('ROC Curve', fontsize=14)
    ax.legend(loc='lower right', fontsize=10)
    ax.grid(True, alpha=0.3)

    return _finish(fig, save_path, show, "ROC curve")
