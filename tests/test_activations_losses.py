"""
Tests for Activations and Losses
================================
"""

import logging

import numpy as np
import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from neuronnet.activations import (FLT_EPSILON, ActivationType, ReLU, Sigmoid, Tanh, Softmax,
                                   get_activation, relu, relu_derivative, softmax)
from neuronnet.losses import (LossType, MSELoss, CrossEntropyLoss, BinaryCrossEntropyLoss,
                              get_loss)


class TestActivations:
    """Tests for activation kernels."""

    def test_relu_scalar(self):
        assert relu(2.5) == 2.5
        assert relu(-1.0) == 0.0
        assert relu_derivative(2.5) == 1.0
        assert relu_derivative(0.0) == 0.0

    def test_relu_array(self):
        x = np.array([-2.0, 0.0, 3.0])
        np.testing.assert_array_equal(relu(x), [0.0, 0.0, 3.0])
        np.testing.assert_array_equal(relu_derivative(x), [0.0, 0.0, 1.0])
        np.testing.assert_array_equal(ReLU()(x), relu(x))

    def test_softmax_sums_to_one(self):
        probs = softmax(np.array([1.0, 2.0, 3.0]))

        assert probs.dtype == np.float32
        assert np.sum(probs) == pytest.approx(1.0, abs=1e-6)
        assert np.argmax(probs) == 2

    def test_softmax_shift_invariant(self):
        x = np.array([1.0, 2.0, 3.0])
        np.testing.assert_allclose(softmax(x), softmax(x + 1000.0), atol=1e-6)

    def test_softmax_clamped(self):
        """Extreme scores never produce exactly 0 or 1."""
        probs = softmax(np.array([0.0, 200.0]))

        assert probs[0] == pytest.approx(FLT_EPSILON)
        assert probs[1] == pytest.approx(1.0 - FLT_EPSILON)
        assert probs[0] > 0 and probs[1] < 1

    def test_softmax_unclamped(self):
        probs = softmax(np.array([0.0, 200.0]), clamp=False)
        assert probs[0] == 0.0

    def test_softmax_uniform_fallback(self):
        """Non-finite input falls back to a uniform distribution."""
        probs = softmax(np.array([np.nan, np.nan, np.nan, np.nan]))
        np.testing.assert_allclose(probs, 0.25)

    def test_sigmoid(self):
        sig = Sigmoid()
        np.testing.assert_allclose(sig(np.array([0.0])), [0.5])
        assert np.all(np.isfinite(sig(np.array([-1000.0, 1000.0]))))
        np.testing.assert_allclose(sig.backward(np.array([0.0])), [0.25])

    def test_tanh(self):
        tanh = Tanh()
        np.testing.assert_allclose(tanh(np.array([0.0])), [0.0])
        np.testing.assert_allclose(tanh.backward(np.array([0.0])), [1.0])

    def test_softmax_jacobian(self):
        """Jacobian-vector product matches the explicit Jacobian."""
        sm = Softmax()
        x = np.array([0.5, -1.0, 2.0], dtype=np.float32)
        grad = np.array([1.0, 0.0, -1.0], dtype=np.float32)

        J = sm.backward(x)
        np.testing.assert_allclose(J, J.T, atol=1e-7)
        np.testing.assert_allclose(sm.jacobian_vector_product(sm(x), grad), J @ grad, atol=1e-6)

    def test_get_activation(self):
        assert isinstance(get_activation('relu'), ReLU)
        assert isinstance(get_activation(ActivationType.SOFTMAX), Softmax)
        with pytest.raises(ValueError):
            get_activation('swish')


class TestLosses:
    """Tests for loss functions."""

    def test_mse(self):
        loss = MSELoss()
        assert loss([1.0, 2.0], [1.0, 4.0]) == pytest.approx(2.0)
        np.testing.assert_allclose(loss.backward([1.0, 2.0], [1.0, 4.0]), [0.0, -2.0])

    def test_cross_entropy(self):
        loss = CrossEntropyLoss()
        assert loss([0.25, 0.75], [0.0, 1.0]) == pytest.approx(-np.log(0.75), rel=1e-6)

    def test_cross_entropy_skips_zero_targets(self):
        """Positions with a zero target do not contribute."""
        loss = CrossEntropyLoss()
        assert loss([0.0, 1.0], [0.0, 1.0]) == pytest.approx(0.0, abs=1e-6)

    def test_cross_entropy_warns_on_invalid(self, caplog):
        loss = CrossEntropyLoss()
        with caplog.at_level(logging.WARNING, logger='neuronnet.losses'):
            value = loss([0.0, 1.0], [1.0, 0.0])

        assert 'Invalid prediction' in caplog.text
        assert np.isfinite(value)

    def test_size_mismatch(self):
        with pytest.raises(ValueError):
            CrossEntropyLoss()([0.5, 0.5], [1.0, 0.0, 0.0])

    def test_binary_cross_entropy(self):
        loss = BinaryCrossEntropyLoss()
        expected = -(np.log(0.9) + np.log(0.8)) / 2
        assert loss([0.9, 0.2], [1.0, 0.0]) == pytest.approx(expected, rel=1e-5)

    def test_get_loss(self):
        assert isinstance(get_loss('mse'), MSELoss)
        assert isinstance(get_loss('cross-entropy'), CrossEntropyLoss)
        assert isinstance(get_loss(LossType.BINARY_CROSS_ENTROPY), BinaryCrossEntropyLoss)
        with pytest.raises(ValueError):
            get_loss('hinge')
