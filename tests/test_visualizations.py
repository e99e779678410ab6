"""
Tests for Visualization Utilities
=================================

Plots are rendered with the non-interactive Agg backend and written to
tmp_path; nothing is shown.
"""

import matplotlib
matplotlib.use('Agg')

import matplotlib.pyplot as plt
import numpy as np
import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from neuronnet.evaluation import ConfusionMatrix, ROCCurve
from neuronnet.visualizations import plot_training_history, plot_confusion_matrix, plot_roc_curve


@pytest.fixture(autouse=True)
def close_figures():
    yield
    plt.close('all')


class TestPlots:

    def test_training_history(self, tmp_path):
        history = {'loss': [1.0, 0.5, 0.3], 'accuracy': [0.5, 0.7, 0.9],
                   'val_loss': [1.1, 0.6, 0.4], 'val_accuracy': [0.4, 0.6, 0.8]}
        path = tmp_path / 'history.png'

        fig = plot_training_history(history, save_path=str(path), show=False)

        assert path.exists()
        assert len(fig.axes) == 2

    def test_training_history_without_validation(self):
        history = {'loss': [1.0, 0.5], 'accuracy': [0.5, 0.7], 'val_loss': [], 'val_accuracy': []}
        assert plot_training_history(history, show=False) is not None

    def test_confusion_matrix(self, tmp_path):
        cm = ConfusionMatrix(3)
        cm.update(np.eye(3)[[0, 1, 2, 2]], np.eye(3)[[0, 1, 1, 2]])
        path = tmp_path / 'cm.png'

        plot_confusion_matrix(cm, class_names=['a', 'b', 'c'], save_path=str(path), show=False)

        assert path.exists()

    def test_confusion_matrix_from_array(self):
        assert plot_confusion_matrix(np.eye(2, dtype=int), show=False) is not None

    def test_roc_curve(self, tmp_path):
        roc = ROCCurve([0.9, 0.7, 0.4, 0.2], [1, 0, 1, 0])
        path = tmp_path / 'roc.png'

        plot_roc_curve(roc, save_path=str(path), show=False)

        assert path.exists()
