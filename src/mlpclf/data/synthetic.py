from __future__ import annotations

import numpy as np

from mlpclf.data.labeled_point import LabeledPoint


def make_synthetic_points(
    n_samples: int,
    n_features: int,
    labels: tuple[float, ...] = (0.0, 1.0, 2.0),
    spread: float = 0.3,
    separation: float = 3.0,
    seed: int = 0,
) -> list[LabeledPoint]:
    """Draw Gaussian blobs, one per label.

    Blob ``k`` is centered at ``separation * (1 + k // n_features)`` along axis
    ``k % n_features``, so neighbouring centers are at least ``separation`` apart.

    Labels are assigned round-robin so every label appears when
    ``n_samples >= len(labels)``.
    """
    if n_samples <= 0 or n_features <= 0:
        raise ValueError(f"n_samples and n_features must be positive, got {n_samples}, {n_features}")
    rng = np.random.default_rng(seed)
    centers = np.zeros((len(labels), n_features))
    for k in range(len(labels)):
        centers[k, k % n_features] = separation * (1 + k // n_features)

    points: list[LabeledPoint] = []
    for i in range(n_samples):
        k = i % len(labels)
        x = centers[k] + spread * rng.normal(size=n_features)
        points.append(LabeledPoint(label=labels[k], features=x))
    return points
