import numpy as np
import pytest
import torch

from mlpclf import load_model, save_model, train
from mlpclf.data import make_synthetic_points
from mlpclf.errors import ConfigurationError


@pytest.fixture(scope="module")
def points():
    return make_synthetic_points(30, 3, labels=(0.0, 4.0, 9.0), seed=5)


@pytest.fixture(scope="module")
def model(points):
    return train(points, [3, 5, 3], max_iterations=30, batch_size=8, activation="tanh", seed=1)


def test_save_load_reproduces_predictions(model, points, tmp_path):
    path = save_model(model, tmp_path / "nested" / "model.pt")
    assert path.exists()

    restored = load_model(path)
    x = np.stack([p.features for p in points])
    assert restored.label_index == model.label_index
    assert restored.model.topology == (3, 5, 3)
    assert restored.model.activation == "tanh"
    assert np.allclose(restored.model.predict(x), model.model.predict(x))
    assert restored.predict_matrix(x) == model.predict_matrix(x)


def test_missing_checkpoint(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_model(tmp_path / "missing.pt")


def test_incomplete_checkpoint(tmp_path):
    path = tmp_path / "broken.pt"
    torch.save({"topology": [2, 2]}, str(path))
    with pytest.raises(ConfigurationError):
        load_model(path)


def test_label_count_must_match_output_layer(model, tmp_path):
    path = tmp_path / "mismatch.pt"
    torch.save(
        {
            "topology": list(model.model.topology),
            "activation": model.model.activation,
            "state_dict": model.model.state_dict(),
            "labels": [0.0, 4.0],
        },
        str(path),
    )
    with pytest.raises(ConfigurationError):
        load_model(path)
