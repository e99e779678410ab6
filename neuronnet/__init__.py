"""
Neural Network Engine from Scratch
==================================

A feedforward neural network (multilayer perceptron) implemented with
NumPy only. This library covers:
- Neuron, layer and network abstractions
- Forward propagation with a numerically stable softmax output
- Backpropagation with gradient clipping
- SGD, Adam and RMSprop optimizers on flat parameter vectors
- A compact binary model format
"""

from .activations import (ActivationType, ReLU, Sigmoid, Tanh, Softmax,
                          get_activation, relu, relu_derivative, softmax)
from .losses import (LossType, CrossEntropyLoss, MSELoss, BinaryCrossEntropyLoss,
                     get_loss)
from .matrix import Matrix
from .neuron import Neuron
from .layers import Layer, Target, UpstreamLayer
from .network import Network, NetworkState
from .optimizers import (OptimizerType, SGD, Adam, RMSprop, get_optimizer,
                         create_optimizer, exponential_decay)
from .evaluation import ConfusionMatrix, ROCCurve
from .session import ModelSession
from .utils import load_mnist, one_hot_encode, create_batches, configure_logging
from . import visualizations

__version__ = "1.0.0"
__all__ = [
    # Activations
    'ActivationType', 'ReLU', 'Sigmoid', 'Tanh', 'Softmax', 'get_activation',
    'relu', 'relu_derivative', 'softmax',
    # Losses
    'LossType', 'CrossEntropyLoss', 'MSELoss', 'BinaryCrossEntropyLoss', 'get_loss',
    # Building blocks
    'Matrix', 'Neuron', 'Layer', 'Target', 'UpstreamLayer',
    # Main class
    'Network', 'NetworkState',
    # Optimizers
    'OptimizerType', 'SGD', 'Adam', 'RMSprop', 'get_optimizer', 'create_optimizer',
    'exponential_decay',
    # Evaluation
    'ConfusionMatrix', 'ROCCurve',
    # Embedding
    'ModelSession',
    # Utilities
    'load_mnist', 'one_hot_encode', 'create_batches', 'configure_logging',
]
