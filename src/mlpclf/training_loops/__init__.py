"""Optimizers that fit :class:`~mlpclf.architectures.mlp.MLPModel`."""
