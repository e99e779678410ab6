"""
Optimizers
==========

Optimizers update a flat parameter vector from a flat gradient vector of the
same length. They know nothing about layers or neurons, so they work on any
pair of equally sized arrays, in particular on ``Network.parameters`` and
``Network.gradients``.

The network's own train step never calls an optimizer; it applies a plain
clipped gradient-descent step. Use an optimizer when you want adaptive
updates:

    >>> opt = Adam(learning_rate=0.001, num_params=net.num_parameters)
    >>> net.compute_gradients(x, y)
    >>> opt.step(net)

This module implements:
- SGD: p -= lr * g
- Adam: bias-corrected adaptive moment estimation
- RMSprop: running average of squared gradients
"""

import logging
from enum import Enum

import numpy as np

logger = logging.getLogger(__name__)

DEFAULT_BETA1 = 0.9
DEFAULT_BETA2 = 0.999
DEFAULT_EPSILON = 1e-8


class OptimizerType(Enum):
    SGD = 'sgd'
    ADAM = 'adam'
    RMSPROP = 'rmsprop'


class Optimizer:
    """
    Base class for optimizers.

    Args:
        learning_rate: Step size
        num_params: Length of the parameter/gradient vectors
        beta1: First-moment decay (RMSprop uses it as its only decay)
        beta2: Second-moment decay (Adam only)
        epsilon: Small constant for numerical stability

    Attributes:
        t: Number of update steps taken (Adam uses it for bias correction)
        m, v: First/second moment accumulators, float32, or None if the
            optimizer keeps no state
    """

    type = None
    uses_moments = False

    def __init__(self, learning_rate=0.01, num_params=0, beta1=DEFAULT_BETA1,
                 beta2=DEFAULT_BETA2, epsilon=DEFAULT_EPSILON):
        if num_params < 0:
            raise ValueError(f"num_params must be non-negative, got {num_params}")

        self.learning_rate = learning_rate
        self.initial_lr = learning_rate
        self.beta1 = beta1
        self.beta2 = beta2
        self.epsilon = epsilon
        self.num_params = num_params
        self.t = 0

        if self.uses_moments:
            self.m = np.zeros(num_params, dtype=np.float32)
            self.v = np.zeros(num_params, dtype=np.float32)
        else:
            self.m = None
            self.v = None

    def update(self, parameters, gradients):
        """Update `parameters` in place from `gradients`."""
        raise NotImplementedError

    def _check(self, parameters, gradients):
        """Gradients as float32, after checking both vectors; no state changes on failure."""
        if not isinstance(parameters, np.ndarray):
            raise TypeError(
                f"parameters must be a NumPy array updated in place, got {type(parameters).__name__}")
        grad = np.asarray(gradients, dtype=np.float32)
        if grad.shape != parameters.shape:
            raise ValueError(f"Gradient shape {grad.shape} does not match parameters {parameters.shape}")
        return grad

    def step(self, network):
        """Apply one update to a network's flat parameters."""
        self.update(network.parameters, network.gradients)

    def get_lr(self):
        return self.learning_rate

    def reset(self):
        """Forget the step count and moment estimates."""
        self.t = 0
        if self.m is not None:
            self.m[:] = 0.0
        if self.v is not None:
            self.v[:] = 0.0

    def __repr__(self):
        return f"{type(self).__name__}(learning_rate={self.learning_rate}, num_params={self.num_params})"


class SGD(Optimizer):
    """Plain stochastic gradient descent: param -= lr * grad."""

    type = OptimizerType.SGD

    def update(self, parameters, gradients):
        grad = self._check(parameters, gradients)
        self.t += 1
        parameters -= np.float32(self.learning_rate) * grad


class Adam(Optimizer):
    """
    Adam (Adaptive Moment Estimation) optimizer.

    Each call:
        t += 1
        alpha = lr * sqrt(1 - beta2^t) / (1 - beta1^t)
        m = beta1 * m + (1 - beta1) * g
        v = beta2 * v + (1 - beta2) * g^2
        param -= alpha * m / (sqrt(v) + epsilon)

    Folding the bias correction into alpha means that on the very first
    step with gradient g the update is approximately lr * sign(g).
    """

    type = OptimizerType.ADAM
    uses_moments = True

    def update(self, parameters, gradients):
        grad = self._check(parameters, gradients)

        self.t += 1
        alpha = (self.learning_rate * np.sqrt(1.0 - self.beta2 ** self.t)
                 / (1.0 - self.beta1 ** self.t))

        self.m[:] = self.beta1 * self.m + (1.0 - self.beta1) * grad
        self.v[:] = self.beta2 * self.v + (1.0 - self.beta2) * grad ** 2

        parameters -= (alpha * self.m / (np.sqrt(self.v) + self.epsilon)).astype(np.float32)


class RMSprop(Optimizer):
    """
    RMSprop optimizer.

    Keeps a running average of squared gradients in `v`, decayed by beta1:
        v = beta1 * v + (1 - beta1) * g^2
        param -= lr * g / (sqrt(v) + epsilon)

    No bias correction and no momentum term.
    """

    type = OptimizerType.RMSPROP
    uses_moments = True

    def update(self, parameters, gradients):
        grad = self._check(parameters, gradients)

        self.t += 1
        self.v[:] = self.beta1 * self.v + (1.0 - self.beta1) * grad ** 2

        parameters -= (self.learning_rate * grad / (np.sqrt(self.v) + self.epsilon)).astype(np.float32)


# ============================================================================
# Learning Rate Schedulers
# ============================================================================

def step_decay(drop_rate=0.5, drop_every=10):
    """
    Step decay: LR = initial_lr * drop_rate^(step // drop_every)
    """
    def scheduler(step, initial_lr):
        return initial_lr * (drop_rate ** (step // drop_every))
    return scheduler


def exponential_decay(decay_rate=0.95, min_lr=0.0):
    """
    Exponential decay with a floor: LR = max(min_lr, initial_lr * decay_rate^step)
    """
    def scheduler(step, initial_lr):
        return max(min_lr, initial_lr * (decay_rate ** step))
    return scheduler


def constant_lr():
    """No decay - constant learning rate."""
    def scheduler(step, initial_lr):
        return initial_lr
    return scheduler


# Optimizer registry
OPTIMIZERS = {
    OptimizerType.SGD: SGD,
    OptimizerType.ADAM: Adam,
    OptimizerType.RMSPROP: RMSprop,
}


def get_optimizer(name, **kwargs):
    """
    Get optimizer by type or name.

    Args:
        name: OptimizerType, 'sgd', 'adam' or 'rmsprop', or an Optimizer
        **kwargs: Arguments to pass to the optimizer

    Returns:
        Optimizer instance
    """
    if isinstance(name, Optimizer):
        return name

    if not isinstance(name, OptimizerType):
        try:
            name = OptimizerType(str(name).lower())
        except ValueError:
            available = [t.value for t in OptimizerType]
            raise ValueError(f"Unknown optimizer '{name}'. Available: {available}") from None

    return OPTIMIZERS[name](**kwargs)


def create_optimizer(optimizer_type, learning_rate, num_params, beta1=DEFAULT_BETA1,
                     beta2=DEFAULT_BETA2, epsilon=DEFAULT_EPSILON):
    """
    Build an optimizer for `num_params` parameters.

    Returns:
        Optimizer, or None if its state buffers cannot be allocated
    """
    try:
        return get_optimizer(optimizer_type, learning_rate=learning_rate, num_params=num_params,
                             beta1=beta1, beta2=beta2, epsilon=epsilon)
    except MemoryError:
        logger.error("Not enough memory for optimizer state (%d params)", num_params)
        return None


# Learning rate scheduler registry
LR_SCHEDULERS = {
    'step': step_decay,
    'exponential': exponential_decay,
    'constant': constant_lr,
}
