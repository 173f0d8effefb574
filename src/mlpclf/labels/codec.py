"""Label codec: categorical labels <-> dense one-hot output vectors.

The codec is stateless; every function takes the :class:`LabelIndex` it
works against as an explicit argument.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

import numpy as np

from mlpclf.errors import InvalidOutputError, UnknownLabelError


@dataclass(frozen=True)
class LabelIndex:
    """Sorted bijection between distinct label values and ``[0, K)``.

    Parameters
    ----------
    labels : tuple[float, ...]
        Distinct label values in ascending order. Position in the tuple is the
        index assigned to the label.
    """

    labels: tuple[float, ...]
    _positions: Mapping[float, int] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        labels = tuple(float(v) for v in self.labels)
        if any(a >= b for a, b in zip(labels, labels[1:])):
            raise ValueError(f"LabelIndex labels must be strictly ascending, got {list(labels)}")
        object.__setattr__(self, "labels", labels)
        object.__setattr__(self, "_positions", {v: i for i, v in enumerate(labels)})

    @classmethod
    def from_labels(cls, labels: Iterable[float]) -> LabelIndex:
        """Alias of :func:`build_index`, handy when restoring a saved model."""
        return build_index(labels)

    def __len__(self) -> int:
        return len(self.labels)

    def __contains__(self, label: object) -> bool:
        try:
            return float(label) in self._positions  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return False

    def __getitem__(self, label: float) -> int:
        return self.index_of(label)

    def index_of(self, label: float) -> int:
        try:
            return self._positions[float(label)]
        except (KeyError, TypeError, ValueError):
            raise UnknownLabelError(label, self.labels) from None

    def label_at(self, index: int) -> float:
        return self.labels[index]

    def to_dict(self) -> dict[float, int]:
        return dict(self._positions)


def build_index(labels: Iterable[float]) -> LabelIndex:
    """Build a :class:`LabelIndex` from raw label values.

    Duplicates and input order do not matter: the distinct values are sorted
    ascending and numbered in that order.
    """
    distinct: set[float] = set()
    for label in labels:
        value = float(label)
        if math.isnan(value):
            raise ValueError("Label values must not be NaN")
        distinct.add(value)
    return LabelIndex(tuple(sorted(distinct)))


def encode(label: float, label_index: LabelIndex, positive: float = 1.0) -> np.ndarray:
    """Return the one-hot target vector (length K) for ``label``."""
    position = label_index.index_of(label)
    vec = np.zeros(len(label_index), dtype=np.float64)
    vec[position] = positive
    return vec


def decode(output_vector, label_index: LabelIndex) -> float:
    """Map a network output vector back to a label.

    The component with the largest value wins; ties go to the lowest index.

    Raises
    ------
    InvalidOutputError
        If ``output_vector`` is not one-dimensional with exactly K components.
    """
    out = np.asarray(output_vector, dtype=np.float64)
    if out.ndim != 1 or out.shape[0] != len(label_index):
        raise InvalidOutputError(f"Expected output vector of length {len(label_index)}, got shape {tuple(out.shape)}")
    return label_index.label_at(int(np.argmax(out)))
