"""Save and load trained classifiers as a single torch checkpoint."""

from __future__ import annotations

import logging
from pathlib import Path

import torch

from mlpclf.architectures.mlp import build_from_topology
from mlpclf.classifier import MLPClassifierModel
from mlpclf.errors import ConfigurationError
from mlpclf.labels import LabelIndex

logger = logging.getLogger(__name__)

CHECKPOINT_KEYS = ("topology", "activation", "state_dict", "labels")


def save_model(model: MLPClassifierModel, path: Path | str) -> Path:
    """Write ``model`` to ``path``; parent directories are created."""
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    torch.save(
        {
            "topology": list(model.model.topology),
            "activation": model.model.activation,
            "state_dict": model.model.state_dict(),
            "labels": list(model.label_index.labels),
        },
        str(out),
    )
    logger.info("[checkpoint] saved classifier with %d labels to %s", len(model.label_index), out)
    return out


def load_model(path: Path | str) -> MLPClassifierModel:
    """Rebuild a classifier written by :func:`save_model`."""
    src = Path(path)
    if not src.exists():
        raise FileNotFoundError(f"Missing checkpoint: {src}")
    ckpt = torch.load(str(src), map_location="cpu", weights_only=True)
    missing = [k for k in CHECKPOINT_KEYS if k not in ckpt]
    if missing:
        raise ConfigurationError(f"Checkpoint {src} is missing keys: {missing}")

    label_index = LabelIndex(tuple(float(v) for v in ckpt["labels"]))
    network = build_from_topology(ckpt["topology"], ckpt["activation"])
    if network.output_dim != len(label_index):
        raise ConfigurationError(f"Checkpoint output layer has {network.output_dim} units but stores {len(label_index)} labels")
    network.load_state_dict(ckpt["state_dict"])
    network.eval()
    return MLPClassifierModel(model=network, label_index=label_index)
