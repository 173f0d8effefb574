from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class LabeledPoint:
    """A feature vector paired with its categorical label."""

    label: float
    features: np.ndarray

    def __post_init__(self) -> None:
        object.__setattr__(self, "label", float(self.label))
        object.__setattr__(self, "features", np.asarray(self.features, dtype=np.float64).ravel())

    @classmethod
    def of(cls, label: float, features: Sequence[float]) -> LabeledPoint:
        return cls(label=label, features=np.asarray(features, dtype=np.float64))
