"""
Tests for Optimizers
====================
"""

import numpy as np
import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from neuronnet.network import Network
from neuronnet.optimizers import (OptimizerType, SGD, Adam, RMSprop, get_optimizer,
                                  create_optimizer, step_decay, exponential_decay,
                                  constant_lr, LR_SCHEDULERS)


class TestSGD:

    def test_update(self):
        opt = SGD(learning_rate=0.1, num_params=3)
        params = np.array([1.0, 2.0, 3.0], dtype=np.float32)

        opt.update(params, np.array([1.0, -1.0, 0.0], dtype=np.float32))

        np.testing.assert_allclose(params, [0.9, 2.1, 3.0], rtol=1e-6)
        assert opt.t == 1

    def test_no_moment_buffers(self):
        opt = SGD(num_params=10)
        assert opt.m is None and opt.v is None


class TestAdam:

    def test_first_step_is_sign_of_gradient(self):
        """With bias correction the first step is about lr * sign(g)."""
        opt = Adam(learning_rate=0.01, num_params=4)
        params = np.zeros(4, dtype=np.float32)
        grads = np.array([0.5, -2.0, 1e-3, -1e-2], dtype=np.float32)

        opt.update(params, grads)

        np.testing.assert_allclose(params, -0.01 * np.sign(grads), rtol=1e-3)

    def test_moments(self):
        opt = Adam(learning_rate=0.01, num_params=2)
        params = np.zeros(2, dtype=np.float32)
        grads = np.array([1.0, -1.0], dtype=np.float32)

        opt.update(params, grads)

        assert opt.m.dtype == np.float32
        np.testing.assert_allclose(opt.m, 0.1 * grads, rtol=1e-6)
        np.testing.assert_allclose(opt.v, 0.001 * grads ** 2, rtol=1e-5)

    def test_reset(self):
        opt = Adam(num_params=3)
        params = np.zeros(3, dtype=np.float32)
        opt.update(params, np.ones(3, dtype=np.float32))
        opt.reset()

        assert opt.t == 0
        assert np.all(opt.m == 0) and np.all(opt.v == 0)


class TestRMSprop:

    def test_update(self):
        opt = RMSprop(learning_rate=0.01, num_params=2, beta1=0.9)
        params = np.zeros(2, dtype=np.float32)
        grads = np.array([2.0, -0.5], dtype=np.float32)

        opt.update(params, grads)

        v = 0.1 * grads ** 2
        np.testing.assert_allclose(opt.v, v, rtol=1e-6)
        np.testing.assert_allclose(params, -0.01 * grads / (np.sqrt(v) + 1e-8), rtol=1e-5)


class TestOptimizerWithNetwork:

    def test_step_changes_parameters(self):
        net = Network([4, 3, 2], learning_rate=0.1)
        opt = Adam(learning_rate=0.01, num_params=net.num_parameters)
        before = net.parameters.copy()

        net.compute_gradients(np.random.rand(4), np.array([1.0, 0.0]))
        opt.step(net)

        assert not np.array_equal(net.parameters, before)

    def test_step_updates_layer_views(self):
        """Layers see the optimizer's update through their views."""
        net = Network([3, 2])
        opt = SGD(learning_rate=1.0, num_params=net.num_parameters)
        net.gradients[:] = 1.0
        before = net.layers[0].params.copy()

        opt.step(net)

        np.testing.assert_allclose(net.layers[0].params, before - 1.0)


class TestUpdateInputs:
    """Updates only work on arrays they can modify in place."""

    @pytest.mark.parametrize("cls", [SGD, Adam, RMSprop])
    def test_rejects_plain_list(self, cls):
        opt = cls(learning_rate=0.1, num_params=2)

        with pytest.raises(TypeError):
            opt.update([1.0, 2.0], [1.0, -1.0])

        # Nothing advanced on the failed call
        assert opt.t == 0
        if opt.m is not None:
            assert np.all(opt.m == 0) and np.all(opt.v == 0)

    @pytest.mark.parametrize("cls", [SGD, Adam, RMSprop])
    def test_rejects_size_mismatch(self, cls):
        opt = cls(learning_rate=0.1, num_params=2)

        with pytest.raises(ValueError):
            opt.update(np.zeros(2, dtype=np.float32), np.ones(3, dtype=np.float32))
        assert opt.t == 0

    def test_list_gradients_accepted(self):
        opt = SGD(learning_rate=0.5, num_params=2)
        params = np.array([1.0, 2.0], dtype=np.float32)

        opt.update(params, [1.0, 1.0])

        np.testing.assert_allclose(params, [0.5, 1.5])


class TestRegistry:

    def test_get_optimizer(self):
        assert isinstance(get_optimizer('adam', num_params=3), Adam)
        assert isinstance(get_optimizer(OptimizerType.RMSPROP, num_params=3), RMSprop)
        assert isinstance(get_optimizer('SGD'), SGD)
        with pytest.raises(ValueError):
            get_optimizer('adagrad')

    def test_create_optimizer(self):
        opt = create_optimizer(OptimizerType.ADAM, 0.001, 100)

        assert isinstance(opt, Adam)
        assert opt.m.shape == (100,)
        assert opt.get_lr() == 0.001

    def test_negative_size(self):
        with pytest.raises(ValueError):
            SGD(num_params=-1)


class TestSchedulers:

    def test_step_decay(self):
        scheduler = step_decay(drop_rate=0.5, drop_every=2)
        assert [scheduler(s, 1.0) for s in range(5)] == [1.0, 1.0, 0.5, 0.5, 0.25]

    def test_exponential_decay_floor(self):
        scheduler = exponential_decay(decay_rate=0.1, min_lr=0.005)
        assert scheduler(0, 0.1) == pytest.approx(0.1)
        assert scheduler(3, 0.1) == 0.005

    def test_constant(self):
        assert constant_lr()(100, 0.3) == 0.3
        assert set(LR_SCHEDULERS) == {'step', 'exponential', 'constant'}
