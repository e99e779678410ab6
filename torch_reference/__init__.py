"""
PyTorch MLP Implementation
==========================

The same ReLU/softmax multilayer perceptron built from torch.nn layers.
It serves as a reference for the from-scratch NumPy implementation: weights
can be copied across and outputs/gradients compared.
"""

from .mlp_pytorch import MLPPyTorch

__all__ = ['MLPPyTorch']
