"""LBFGS and SGD training for :class:`MLPModel`.

These are the trainer entry points the classifier delegates to. Every
function takes ``(features, target)`` pairs where ``target`` is already a
dense vector of length ``topology[-1]``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

import numpy as np
import torch

from mlpclf.architectures.mlp import MLPModel, build_from_topology, validate_topology
from mlpclf.errors import ConfigurationError, TrainingFailure
from mlpclf.utils.seed import seed_everything

logger = logging.getLogger(__name__)

VectorPair = tuple[Sequence[float], Sequence[float]]


def _stack_examples(data: Iterable[VectorPair], input_dim: int, output_dim: int) -> tuple[torch.Tensor, torch.Tensor]:
    """Stack ``(features, target)`` pairs into ``[N, input_dim]`` / ``[N, output_dim]`` tensors."""
    features: list[np.ndarray] = []
    targets: list[np.ndarray] = []
    for i, (x, y) in enumerate(data):
        x_arr = np.asarray(x, dtype=np.float64).ravel()
        y_arr = np.asarray(y, dtype=np.float64).ravel()
        if x_arr.shape[0] != input_dim:
            raise ConfigurationError(f"Example {i} has {x_arr.shape[0]} features, topology expects {input_dim}")
        if y_arr.shape[0] != output_dim:
            raise ConfigurationError(f"Example {i} has target length {y_arr.shape[0]}, topology expects {output_dim}")
        features.append(x_arr)
        targets.append(y_arr)

    if not features:
        raise TrainingFailure("No training examples")
    return torch.from_numpy(np.stack(features)), torch.from_numpy(np.stack(targets))


def _check_positive(name: str, value) -> int:
    value = int(value)
    if value <= 0:
        raise ConfigurationError(f"{name} must be positive, got {value}")
    return value


def _check_regularization(value) -> float:
    value = float(value)
    if value < 0:
        raise ConfigurationError(f"regularization must be non-negative, got {value}")
    return value


def _chunks(n: int, batch_size: int):
    for start in range(0, n, batch_size):
        yield slice(start, min(start + batch_size, n))


def _squared_error_sum(model: MLPModel, x: torch.Tensor, y: torch.Tensor) -> torch.Tensor:
    return (model(x) - y).pow(2).sum()


def _mean_squared_error(model: MLPModel, x: torch.Tensor, y: torch.Tensor, batch_size: int) -> float:
    n = x.shape[0]
    total = 0.0
    with torch.no_grad():
        for sl in _chunks(n, batch_size):
            total += _squared_error_sum(model, x[sl], y[sl]).item()
    return total / n


def _check_finite(loss: float, where: str) -> None:
    if not np.isfinite(loss):
        raise TrainingFailure(f"Loss became non-finite ({loss}) during {where}")


def run_lbfgs(
    data: Iterable[VectorPair],
    topology: Sequence[int],
    batch_size: int,
    max_iterations: int,
    tolerance: float = 1e-4,
    regularization: float = 0.0,
    *,
    activation: str = "sigmoid",
    seed: int | None = None,
) -> MLPModel:
    """Train a network with full-batch LBFGS.

    Parameters
    ----------
    data : Iterable[VectorPair]
        ``(features, target)`` pairs
    topology : Sequence[int]
        Layer widths, input first and output last
    batch_size : int
        Number of examples per forward/backward chunk when evaluating the objective
    max_iterations : int
        Maximum LBFGS iterations
    tolerance : float
        Stop once the loss changes by less than this between iterations
    regularization : float
        L2 coefficient applied to weight matrices (biases excluded)
    activation : str
        Activation used after every layer
    seed : int | None
        Seed for weight initialization

    Returns
    -------
    MLPModel
        Trained network in eval mode

    Raises
    ------
    ConfigurationError
        Malformed topology, batch size or example shapes
    TrainingFailure
        No examples, or the objective diverged
    """
    layers = validate_topology(topology)
    batch_size = _check_positive("batch_size", batch_size)
    max_iterations = _check_positive("max_iterations", max_iterations)
    regularization = _check_regularization(regularization)
    x, y = _stack_examples(data, layers[0], layers[-1])
    n = x.shape[0]

    if seed is not None:
        seed_everything(seed)
    model = build_from_topology(layers, activation)
    model.train()

    optimizer = torch.optim.LBFGS(
        model.parameters(),
        lr=1.0,
        max_iter=max_iterations,
        tolerance_change=float(tolerance),
        line_search_fn="strong_wolfe",
    )
    evaluations = 0

    def closure() -> torch.Tensor:
        nonlocal evaluations
        optimizer.zero_grad()
        total = 0.0
        for sl in _chunks(n, batch_size):
            loss = _squared_error_sum(model, x[sl], y[sl]) / n
            loss.backward()
            total += loss.item()
        if regularization > 0:
            penalty = 0.5 * regularization * model.weight_penalty()
            penalty.backward()
            total += penalty.item()
        evaluations += 1
        logger.debug("[mlp] lbfgs evaluation=%d loss=%.6f", evaluations, total)
        return torch.tensor(total, dtype=torch.float64)

    optimizer.step(closure)

    model.eval()
    final = _mean_squared_error(model, x, y, batch_size)
    _check_finite(final, "LBFGS")
    logger.debug("[mlp] lbfgs finished after %d evaluations, error=%.6f", evaluations, final)
    return model


def run_sgd(
    data: Iterable[VectorPair],
    topology: Sequence[int],
    batch_size: int,
    max_iterations: int,
    mini_batch_fraction: float = 1.0,
    learning_rate: float = 1.0,
    regularization: float = 0.0,
    *,
    activation: str = "sigmoid",
    seed: int | None = None,
) -> MLPModel:
    """Train a network with mini-batch SGD.

    Each iteration samples ``mini_batch_fraction`` of the examples without
    replacement and takes one optimizer step per ``batch_size`` chunk of the
    sample.
    """
    layers = validate_topology(topology)
    batch_size = _check_positive("batch_size", batch_size)
    max_iterations = _check_positive("max_iterations", max_iterations)
    regularization = _check_regularization(regularization)
    if not 0.0 < float(mini_batch_fraction) <= 1.0:
        raise ConfigurationError(f"mini_batch_fraction must be in (0, 1], got {mini_batch_fraction}")
    if float(learning_rate) <= 0:
        raise ConfigurationError(f"learning_rate must be positive, got {learning_rate}")
    x, y = _stack_examples(data, layers[0], layers[-1])
    n = x.shape[0]
    n_sample = max(1, int(round(float(mini_batch_fraction) * n)))

    generator = seed_everything(seed) if seed is not None else None
    model = build_from_topology(layers, activation)
    model.train()
    optimizer = torch.optim.SGD(model.parameters(), lr=float(learning_rate))

    for iteration in range(max_iterations):
        order = torch.randperm(n, generator=generator)[:n_sample]
        epoch_loss = 0.0
        for sl in _chunks(n_sample, batch_size):
            idx = order[sl]
            optimizer.zero_grad()
            loss = _squared_error_sum(model, x[idx], y[idx]) / idx.numel()
            if regularization > 0:
                loss = loss + 0.5 * regularization * model.weight_penalty()
            loss.backward()
            optimizer.step()
            epoch_loss += loss.item() * idx.numel()
        epoch_loss /= n_sample
        _check_finite(epoch_loss, f"SGD iteration {iteration}")
        logger.debug("[mlp] sgd iteration=%d loss=%.6f", iteration, epoch_loss)

    model.eval()
    return model


def error(data: Iterable[VectorPair], model: MLPModel, batch_size: int) -> float:
    """Mean over examples of the squared distance between output and target."""
    batch_size = _check_positive("batch_size", batch_size)
    x, y = _stack_examples(data, model.input_dim, model.output_dim)
    return _mean_squared_error(model, x, y, batch_size)
