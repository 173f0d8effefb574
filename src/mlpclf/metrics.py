"""Classification metrics for a trained classifier."""

from __future__ import annotations

from collections.abc import Iterable

import numpy as np
from sklearn.metrics import accuracy_score, f1_score

from mlpclf.classifier import MLPClassifierModel
from mlpclf.data import LabeledPoint


def evaluate(model: MLPClassifierModel, points: Iterable[LabeledPoint]) -> dict[str, float | int]:
    """Accuracy and weighted F1 of ``model`` on ``points``.

    Labels are scored by their position in the model's label index, so
    arbitrary float labels (e.g. 2.5) are treated as classes. A true label the
    model never saw counts as its own class ``-1`` and is always a miss.

    Returns
    -------
    dict[str, float | int]
        ``{"acc", "f1", "n"}``; ``acc`` and ``f1`` are NaN when there are no points
    """
    points = list(points)
    if not points:
        return {"acc": float("nan"), "f1": float("nan"), "n": 0}

    index = model.label_index
    y_true = np.array([index.index_of(p.label) if p.label in index else -1 for p in points], dtype=np.int64)
    predicted = model.predict_matrix(np.stack([p.features for p in points]))
    y_pred = np.array([index.index_of(label) for label in predicted], dtype=np.int64)

    return {
        "acc": float(accuracy_score(y_true, y_pred)),
        "f1": float(f1_score(y_true, y_pred, average="weighted", zero_division=0)),
        "n": len(points),
    }
