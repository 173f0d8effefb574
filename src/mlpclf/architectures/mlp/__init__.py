"""MLP network used by the classifier."""

from mlpclf.architectures.mlp.base import SUPPORTED_ACTIVATIONS, MLPModel, build_from_topology, validate_topology

__all__ = ["SUPPORTED_ACTIVATIONS", "MLPModel", "build_from_topology", "validate_topology"]
