"""Classifier facade: label discovery, delegation to the MLP trainer, decoding."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable, Sequence
from concurrent.futures import Executor
from dataclasses import dataclass

import numpy as np
from omegaconf import DictConfig

from mlpclf.architectures.mlp import MLPModel, validate_topology
from mlpclf.config import train_kwargs_from_config
from mlpclf.data import LabeledPoint
from mlpclf.errors import ConfigurationError
from mlpclf.labels import LabelIndex, build_index, decode, encode
from mlpclf.training_loops import mlp as mlp_trainer

logger = logging.getLogger(__name__)

SUPPORTED_OPTIMIZERS = ("lbfgs", "sgd")


@dataclass(frozen=True)
class TrainingReport:
    """Diagnostics from one training run. Not part of the returned model."""

    optimizer: str
    n_examples: int
    n_labels: int
    train_error: float | None
    elapsed_s: float


@dataclass(frozen=True)
class MLPClassifierModel:
    """A trained network together with the label index it was trained against."""

    model: MLPModel
    label_index: LabelIndex

    @property
    def labels(self) -> tuple[float, ...]:
        return self.label_index.labels

    def predict(self, features: Sequence[float]) -> float:
        """Predict the label of a single feature vector."""
        x = np.asarray(features, dtype=np.float64).reshape(1, -1)
        output = self.model.predict(x)
        return decode(output.ravel(), self.label_index)

    def predict_all(self, vectors: Iterable[Sequence[float]], executor: Executor | None = None) -> list[float]:
        """Predict every vector independently; results follow input order.

        When ``executor`` is given the per-vector predictions run on it.
        """
        if executor is None:
            return [self.predict(v) for v in vectors]
        return list(executor.map(self.predict, vectors))

    def predict_matrix(self, matrix) -> list[float]:
        """Predict every row of an ``[N, D]`` matrix with a single forward pass."""
        x = np.asarray(matrix, dtype=np.float64)
        if x.ndim != 2:
            raise ConfigurationError(f"Expected a 2-D feature matrix, got shape {tuple(x.shape)}")
        if x.shape[0] == 0:
            return []
        outputs = self.model.predict(x)
        return [decode(row, self.label_index) for row in outputs]


def _check_topology(topology: Sequence[int], n_features: int, n_labels: int) -> tuple[int, ...]:
    layers = validate_topology(topology)
    if layers[-1] != n_labels:
        raise ConfigurationError(f"Output layer has {layers[-1]} units but training data has {n_labels} distinct labels")
    if layers[0] != n_features:
        raise ConfigurationError(f"Input layer has {layers[0]} units but training features have length {n_features}")
    return layers


def train(
    data: Iterable[LabeledPoint],
    topology: Sequence[int],
    max_iterations: int,
    batch_size: int,
    *,
    optimizer: str = "lbfgs",
    tolerance: float = 1e-4,
    regularization: float = 0.0,
    learning_rate: float = 1.0,
    mini_batch_fraction: float = 1.0,
    activation: str = "sigmoid",
    seed: int | None = None,
    compute_error: bool = True,
    on_report: Callable[[TrainingReport], None] | None = None,
) -> MLPClassifierModel:
    """Train a classifier on labeled points.

    Parameters
    ----------
    data : Iterable[LabeledPoint]
        Training examples; consumed once
    topology : Sequence[int]
        Layer widths; first must equal the feature length, last the number of distinct labels
    max_iterations : int
        Optimizer iteration budget
    batch_size : int
        Examples per forward/backward chunk
    optimizer : str
        "lbfgs" (default) or "sgd"
    tolerance : float
        LBFGS loss-change tolerance
    regularization : float
        L2 coefficient on weights
    learning_rate, mini_batch_fraction : float
        SGD step size and per-iteration sample fraction
    activation : str
        Network activation
    seed : int | None
        Seed for weight initialization and SGD sampling
    compute_error : bool
        Whether to measure training error after fitting
    on_report : Callable[[TrainingReport], None] | None
        Receives the diagnostics of this run

    Returns
    -------
    MLPClassifierModel
        Trained model paired with its label index

    Raises
    ------
    ConfigurationError
        Topology does not match the data, or unknown optimizer
    """
    optimizer = str(optimizer).lower()
    if optimizer not in SUPPORTED_OPTIMIZERS:
        raise ConfigurationError(f"Unknown optimizer='{optimizer}'. Options: {list(SUPPORTED_OPTIMIZERS)}")

    points = list(data)
    label_index = build_index(p.label for p in points)
    n_features = points[0].features.shape[0] if points else 0
    layers = _check_topology(topology, n_features, len(label_index))
    logger.info("[train] %d examples, %d labels %s, topology=%s, optimizer=%s", len(points), len(label_index), list(label_index.labels), list(layers), optimizer)

    examples = [(p.features, encode(p.label, label_index)) for p in points]

    t0 = time.perf_counter()
    if optimizer == "lbfgs":
        model = mlp_trainer.run_lbfgs(examples, layers, batch_size, max_iterations, tolerance, regularization, activation=activation, seed=seed)
    else:
        model = mlp_trainer.run_sgd(examples, layers, batch_size, max_iterations, mini_batch_fraction, learning_rate, regularization, activation=activation, seed=seed)
    elapsed = time.perf_counter() - t0
    logger.info("[train] fitted %d parameters in %.2fs", model.count_parameters(), elapsed)

    train_error = None
    if compute_error:
        train_error = mlp_trainer.error(examples, model, batch_size)
        logger.info("[train] training error=%.6f", train_error)

    if on_report is not None:
        on_report(TrainingReport(optimizer=optimizer, n_examples=len(points), n_labels=len(label_index), train_error=train_error, elapsed_s=elapsed))

    return MLPClassifierModel(model=model, label_index=label_index)


def train_from_config(data: Iterable[LabeledPoint], cfg: DictConfig, on_report: Callable[[TrainingReport], None] | None = None) -> MLPClassifierModel:
    """Train with arguments taken from ``cfg.classifier`` (see ``mlpclf/configs/config.yaml``)."""
    kwargs = train_kwargs_from_config(cfg)
    return train(data, on_report=on_report, **kwargs)


def predict(model: MLPClassifierModel, features) -> float | list[float]:
    """Predict one vector, or every vector of a collection in order."""
    if isinstance(features, np.ndarray):
        return model.predict(features) if features.ndim == 1 else model.predict_matrix(features)
    items = list(features)
    if items and np.isscalar(items[0]):
        return model.predict(items)
    return model.predict_all(items)
