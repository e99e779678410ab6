"""
Activation Functions
====================

Element-wise and vector activation kernels together with their derivatives.
All kernels are stateless and operate on float32 NumPy arrays (or scalars).

The network itself only ever uses two of them:
- ReLU: every hidden layer
- Softmax: the output layer

Sigmoid and Tanh are kept as general-purpose kernels for callers that build
their own models on top of the engine.
"""

from enum import Enum

import numpy as np

# Smallest float32 step above 1.0; softmax outputs are clamped to
# [FLT_EPSILON, 1 - FLT_EPSILON] so they are never exactly 0 or 1.
FLT_EPSILON = float(np.finfo(np.float32).eps)


class ActivationType(Enum):
    """Activation attached to a neuron/layer inside the network."""
    RELU = 'relu'
    SOFTMAX = 'softmax'


def relu(x):
    """Rectifier: max(0, x)."""
    if np.ndim(x):
        return np.maximum(np.asarray(x, dtype=np.float32), 0)
    return x if x > 0 else 0.0


def relu_derivative(x):
    """1 where x > 0, else 0."""
    if np.ndim(x):
        return (np.asarray(x) > 0).astype(np.float32)
    return 1.0 if x > 0 else 0.0


def softmax(x, clamp=True):
    """
    Numerically stable softmax over a 1D vector.

    Subtracting max(x) before exponentiating prevents overflow and does not
    change the result. If the exponent sum is not positive (only possible
    with NaN/inf inputs) the distribution falls back to uniform.

    Args:
        x: Raw scores, shape (n,)
        clamp: Clamp every probability into [FLT_EPSILON, 1 - FLT_EPSILON]

    Returns:
        Probabilities, shape (n,), float32
    """
    x = np.asarray(x, dtype=np.float32)
    exp_x = np.exp(x - np.max(x))
    total = np.sum(exp_x)

    if total > 0:
        probs = exp_x / total
    else:
        probs = np.full(x.shape, 1.0 / x.size, dtype=np.float32)

    if clamp:
        probs = np.clip(probs, FLT_EPSILON, 1.0 - FLT_EPSILON)
    return probs.astype(np.float32)


class Activation:
    """Stateless element-wise (or vector) kernel with its derivative."""

    def forward(self, x):
        """Activation values for pre-activations x."""
        raise NotImplementedError

    def backward(self, x):
        """Derivative with respect to the pre-activations x."""
        raise NotImplementedError

    def __call__(self, x):
        return self.forward(x)


class ReLU(Activation):
    """
    Rectified Linear Unit: f(x) = max(0, x)

    Derivative:
        f'(x) = 1 if x > 0 else 0
    """

    def forward(self, x):
        return np.maximum(np.asarray(x, dtype=np.float32), 0)

    def backward(self, x):
        return (np.asarray(x) > 0).astype(np.float32)


class Sigmoid(Activation):
    """
    Sigmoid: f(x) = 1 / (1 + exp(-x))

    Derivative:
        f'(x) = f(x) * (1 - f(x))
    """

    def forward(self, x):
        # Clip so exp() cannot overflow float32
        x_clipped = np.clip(np.asarray(x, dtype=np.float32), -80, 80)
        return (1.0 / (1.0 + np.exp(-x_clipped))).astype(np.float32)

    def backward(self, x):
        s = self.forward(x)
        return s * (1 - s)


class Tanh(Activation):
    """
    Hyperbolic Tangent, output range (-1, 1).

    Derivative:
        f'(x) = 1 - tanh(x)^2
    """

    def forward(self, x):
        return np.tanh(np.asarray(x, dtype=np.float32))

    def backward(self, x):
        t = np.tanh(np.asarray(x, dtype=np.float32))
        return 1 - t ** 2


class Softmax(Activation):
    """
    Softmax: f(x_i) = exp(x_i) / sum(exp(x_j))

    Converts raw scores to a probability distribution. Each output is
    clamped away from exactly 0 and 1.

    When combined with cross-entropy loss, the gradient w.r.t. the raw
    scores simplifies to softmax(x) - y_true, which is what the output layer
    uses during backpropagation.
    """

    def forward(self, x):
        return softmax(x)

    def backward(self, x):
        """Full Jacobian: J[i, j] = s[i] * (delta[i, j] - s[j])."""
        s = self.forward(x)
        return np.diag(s) - np.outer(s, s)

    def jacobian_vector_product(self, output, grad):
        """
        Propagate `grad` back through softmax given its `output`.

        Returns J @ grad without materializing J.
        """
        output = np.asarray(output, dtype=np.float32)
        grad = np.asarray(grad, dtype=np.float32)
        return output * (grad - np.dot(output, grad))


# ====================================
# Activation Registry
# ====================================

ACTIVATIONS = {
    'relu': ReLU,
    'sigmoid': Sigmoid,
    'tanh': Tanh,
    'softmax': Softmax,
}


def get_activation(name):
    """
    Resolve an activation from a name, an ActivationType or an instance.

    Example:
        >>> act = get_activation(ActivationType.RELU)
        >>> act(np.array([-1, 0, 1]))
        array([0., 0., 1.], dtype=float32)
    """
    if isinstance(name, Activation):
        return name

    key = name.value if isinstance(name, ActivationType) else str(name).lower().replace('-', '_')
    try:
        return ACTIVATIONS[key]()
    except KeyError:
        raise ValueError(
            f"Unknown activation '{name}'. Available: {', '.join(ACTIVATIONS)}") from None
