"""Tests for the MLP network and its LBFGS/SGD trainers."""

import numpy as np
import pytest
import torch

from mlpclf.architectures.mlp import MLPModel, build_from_topology, validate_topology
from mlpclf.data import make_synthetic_points
from mlpclf.errors import ConfigurationError, TrainingFailure
from mlpclf.labels import build_index, encode
from mlpclf.training_loops import mlp as mlp_trainer


@pytest.fixture
def examples():
    points = make_synthetic_points(60, 4, labels=(0.0, 1.0, 2.0), seed=3)
    idx = build_index(p.label for p in points)
    return [(p.features, encode(p.label, idx)) for p in points]


def _accuracy(model, examples):
    x = np.stack([f for f, _ in examples])
    y = np.stack([t for _, t in examples])
    return float((model.predict(x).argmax(axis=1) == y.argmax(axis=1)).mean())


class TestMLPModel:
    def test_forward_shape_and_range(self):
        model = MLPModel([4, 8, 3])
        out = model(torch.randn(5, 4, dtype=torch.float64))
        assert out.shape == (5, 3)
        assert bool(((out > 0) & (out < 1)).all())

    def test_predict_returns_numpy(self):
        model = MLPModel([2, 3])
        out = model.predict([[0.0, 1.0], [1.0, 0.0]])
        assert isinstance(out, np.ndarray)
        assert out.shape == (2, 3)

    def test_predict_rejects_wrong_width(self):
        model = MLPModel([2, 3])
        with pytest.raises(ConfigurationError):
            model.predict([[0.0, 1.0, 2.0]])

    def test_predict_does_not_track_gradients(self):
        model = MLPModel([2, 3])
        model.predict([[0.5, 0.5]])
        assert all(p.grad is None for p in model.parameters())

    def test_count_parameters(self):
        model = MLPModel([4, 8, 3])
        assert model.count_parameters() == (4 * 8 + 8) + (8 * 3 + 3)

    @pytest.mark.parametrize("topology", [[], [3], [3, 0], [3, -1, 2], ["a", 2]])
    def test_invalid_topology(self, topology):
        with pytest.raises(ConfigurationError):
            validate_topology(topology)

    def test_unknown_activation(self):
        with pytest.raises(ConfigurationError):
            build_from_topology([2, 2], activation="softsign")

    @pytest.mark.parametrize("activation", ["sigmoid", "TANH", "relu", "gelu"])
    def test_known_activations(self, activation):
        model = build_from_topology([2, 4, 2], activation=activation)
        assert model.activation == activation.lower()


class TestLBFGS:
    def test_fits_separable_blobs(self, examples):
        model = mlp_trainer.run_lbfgs(examples, [4, 8, 3], batch_size=16, max_iterations=100, tolerance=1e-6, regularization=0.0, seed=0)
        assert _accuracy(model, examples) >= 0.95
        assert mlp_trainer.error(examples, model, batch_size=16) < 0.2

    def test_same_seed_same_model(self, examples):
        a = mlp_trainer.run_lbfgs(examples, [4, 5, 3], 20, 10, seed=7)
        b = mlp_trainer.run_lbfgs(examples, [4, 5, 3], 20, 10, seed=7)
        x = np.stack([f for f, _ in examples])
        assert np.allclose(a.predict(x), b.predict(x))

    def test_regularization_shrinks_weights(self, examples):
        plain = mlp_trainer.run_lbfgs(examples, [4, 8, 3], 32, 50, regularization=0.0, seed=1)
        shrunk = mlp_trainer.run_lbfgs(examples, [4, 8, 3], 32, 50, regularization=1.0, seed=1)
        assert shrunk.weight_penalty().item() < plain.weight_penalty().item()

    def test_negative_regularization(self, examples):
        with pytest.raises(ConfigurationError):
            mlp_trainer.run_lbfgs(examples, [4, 3], 8, 5, regularization=-1.0)

    def test_empty_data(self):
        with pytest.raises(TrainingFailure):
            mlp_trainer.run_lbfgs([], [4, 3], 8, 10)

    def test_shape_mismatch(self, examples):
        with pytest.raises(ConfigurationError):
            mlp_trainer.run_lbfgs(examples, [5, 3], 8, 10)
        with pytest.raises(ConfigurationError):
            mlp_trainer.run_lbfgs(examples, [4, 2], 8, 10)

    @pytest.mark.parametrize("batch_size,max_iterations", [(0, 10), (8, 0), (-1, 5)])
    def test_non_positive_sizes(self, examples, batch_size, max_iterations):
        with pytest.raises(ConfigurationError):
            mlp_trainer.run_lbfgs(examples, [4, 3], batch_size, max_iterations)


class TestSGD:
    def test_fits_separable_blobs(self, examples):
        model = mlp_trainer.run_sgd(examples, [4, 8, 3], batch_size=10, max_iterations=300, mini_batch_fraction=1.0, learning_rate=1.0, seed=0)
        assert _accuracy(model, examples) >= 0.9

    def test_fraction_bounds(self, examples):
        for fraction in (0.0, 1.5):
            with pytest.raises(ConfigurationError):
                mlp_trainer.run_sgd(examples, [4, 3], 8, 5, mini_batch_fraction=fraction)

    def test_negative_regularization(self, examples):
        with pytest.raises(ConfigurationError):
            mlp_trainer.run_sgd(examples, [4, 3], 8, 5, regularization=-0.1)

    def test_non_positive_learning_rate(self, examples):
        with pytest.raises(ConfigurationError):
            mlp_trainer.run_sgd(examples, [4, 3], 8, 5, learning_rate=0.0)

    def test_divergence_raises(self, examples):
        blown = [(f * 1e300, t) for f, t in examples]
        with pytest.raises(TrainingFailure):
            mlp_trainer.run_sgd(blown, [4, 3], 8, 5, activation="relu", learning_rate=1e10, seed=0)

    def test_small_fraction_still_steps(self, examples):
        model = mlp_trainer.run_sgd(examples, [4, 3], batch_size=4, max_iterations=3, mini_batch_fraction=0.01, seed=0)
        assert model.predict(np.zeros((1, 4))).shape == (1, 3)


def test_error_is_mean_squared_distance():
    model = MLPModel([1, 1])
    with torch.no_grad():
        model.net[0].weight.fill_(0.0)
        model.net[0].bias.fill_(0.0)
    # sigmoid(0) = 0.5 for every input
    data = [([1.0], [1.0]), ([2.0], [0.0]), ([3.0], [0.5])]
    assert mlp_trainer.error(data, model, batch_size=2) == pytest.approx((0.25 + 0.25 + 0.0) / 3)
