"""Fully connected network used as the classifier's trained model."""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np
import torch
import torch.nn as nn

from mlpclf.errors import ConfigurationError

SUPPORTED_ACTIVATIONS = ("sigmoid", "tanh", "relu", "gelu")


def validate_topology(topology: Sequence[int]) -> tuple[int, ...]:
    """Return ``topology`` as a tuple of ints, or raise ConfigurationError.

    A topology lists layer widths from the input layer to the output layer,
    so it needs at least two entries, all positive.
    """
    try:
        layers = tuple(int(n) for n in topology)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Topology must be a sequence of ints, got {topology!r}") from e
    if len(layers) < 2:
        raise ConfigurationError(f"Topology needs an input and an output layer, got {list(layers)}")
    if any(n <= 0 for n in layers):
        raise ConfigurationError(f"Layer sizes must be positive, got {list(layers)}")
    return layers


class MLPModel(nn.Module):
    """Multi-layer perceptron with an activation after every layer.

    With the default sigmoid activation every output lies in ``(0, 1)``, which
    matches one-hot targets trained with a squared-error loss.
    """

    def __init__(self, topology: Sequence[int], activation: str = "sigmoid"):
        """Initialize the network.

        Parameters
        ----------
        topology : Sequence[int]
            Layer widths, input first and output last (e.g. ``[4, 16, 3]``)
        activation : str
            Activation function: "sigmoid", "tanh", "relu" or "gelu"
        """
        super().__init__()
        self.topology = validate_topology(topology)
        self.activation = activation.lower()

        layers: list[nn.Module] = []
        for fan_in, fan_out in zip(self.topology[:-1], self.topology[1:]):
            layers.append(nn.Linear(fan_in, fan_out))
            layers.append(self._get_activation(self.activation))
        self.net = nn.Sequential(*layers)

        self._init_weights()
        self.double()

    def _get_activation(self, name: str) -> nn.Module:
        """Get activation module by name."""
        if name == "sigmoid":
            return nn.Sigmoid()
        elif name == "tanh":
            return nn.Tanh()
        elif name == "relu":
            return nn.ReLU()
        elif name == "gelu":
            return nn.GELU()
        else:
            raise ConfigurationError(f"Unsupported activation: {name}. Options: {list(SUPPORTED_ACTIVATIONS)}")

    def _init_weights(self) -> None:
        """Initialize weights using Xavier/Glorot initialization."""
        for m in self.modules():
            if isinstance(m, nn.Linear):
                nn.init.xavier_uniform_(m.weight)
                if m.bias is not None:
                    nn.init.zeros_(m.bias)

    @property
    def input_dim(self) -> int:
        return self.topology[0]

    @property
    def output_dim(self) -> int:
        return self.topology[-1]

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        """Forward pass.

        Parameters
        ----------
        x : torch.Tensor
            Input features [N, input_dim]

        Returns
        -------
        torch.Tensor
            Activated outputs [N, output_dim]
        """
        return self.net(x)

    def weight_penalty(self) -> torch.Tensor:
        """Sum of squared weights over all linear layers (biases excluded)."""
        total = torch.zeros((), dtype=torch.float64)
        for m in self.modules():
            if isinstance(m, nn.Linear):
                total = total + m.weight.pow(2).sum()
        return total

    def predict(self, input_matrix) -> np.ndarray:
        """Run the network on an ``[N, input_dim]`` matrix and return ``[N, output_dim]``.

        Never updates parameters, so a trained model may be shared across threads.
        """
        x = torch.as_tensor(np.asarray(input_matrix, dtype=np.float64))
        if x.ndim != 2 or x.shape[1] != self.input_dim:
            raise ConfigurationError(f"Expected input matrix of shape [N, {self.input_dim}], got {tuple(x.shape)}")
        with torch.no_grad():
            out = self.net(x)
        return out.numpy()

    def count_parameters(self) -> int:
        """Count total trainable parameters."""
        return sum(p.numel() for p in self.parameters() if p.requires_grad)


def build_from_topology(topology: Sequence[int], activation: str = "sigmoid") -> MLPModel:
    return MLPModel(topology, activation=str(activation))
