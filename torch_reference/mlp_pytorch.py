"""
PyTorch MLP Implementation
==========================

MLP using PyTorch for comparison with the from-scratch version.

Architecture matches the NumPy implementation:
    Input -> Linear -> ReLU -> ... -> Linear -> Softmax

nn.Linear stores its weight as (out_features, in_features), the same
orientation as a neuronnet layer's weight block, so copying is a plain
slice of each layer's parameter block.
"""

import numpy as np
import torch
import torch.nn as nn
import torch.nn.functional as F


class MLPPyTorch(nn.Module):
    """
    PyTorch MLP with the same architecture as neuronnet.Network.

    Example:
        >>> model = MLPPyTorch([784, 128, 10])
        >>> x = torch.rand(32, 784)
        >>> probs = model.predict(x)
        >>> print(probs.shape)  # torch.Size([32, 10])
    """

    def __init__(self, layer_sizes):
        super().__init__()

        self.layer_sizes = list(layer_sizes)
        self.linears = nn.ModuleList(
            nn.Linear(n_in, n_out)
            for n_in, n_out in zip(self.layer_sizes[:-1], self.layer_sizes[1:])
        )

    @classmethod
    def from_network(cls, network):
        """Build a model holding a copy of a neuronnet.Network's parameters."""
        model = cls(network.layer_sizes)
        with torch.no_grad():
            for linear, layer in zip(model.linears, network.layers):
                linear.weight.copy_(torch.from_numpy(np.array(layer.weights, dtype=np.float32)))
                linear.bias.copy_(torch.from_numpy(np.array(layer.biases, dtype=np.float32)))
        return model

    def forward(self, x):
        """Forward pass, returns logits."""
        for linear in self.linears[:-1]:
            x = F.relu(linear(x))
        return self.linears[-1](x)

    def predict(self, x):
        """Make predictions (with softmax)."""
        self.eval()
        with torch.no_grad():
            return F.softmax(self.forward(x), dim=-1)

    def gradients(self, x, target):
        """
        Cross-entropy gradients for one sample, flattened in the neuronnet
        parameter layout (per neuron: weights, then bias).

        Args:
            x: Input vector, shape (layer_sizes[0],)
            target: One-hot target, shape (layer_sizes[-1],)

        Returns:
            NumPy float32 vector of length Network.num_parameters
        """
        self.zero_grad()
        x = torch.as_tensor(np.asarray(x, dtype=np.float32))
        target = torch.as_tensor(np.asarray(target, dtype=np.float32))

        loss = -(target * F.log_softmax(self.forward(x), dim=-1)).sum()
        loss.backward()

        blocks = []
        for linear in self.linears:
            block = torch.cat([linear.weight.grad, linear.bias.grad.unsqueeze(1)], dim=1)
            blocks.append(block.reshape(-1))
        return torch.cat(blocks).numpy()

    def count_parameters(self):
        """Count trainable parameters."""
        return sum(p.numel() for p in self.parameters() if p.requires_grad)
