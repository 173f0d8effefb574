"""OmegaConf helpers for classifier training settings."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from omegaconf import DictConfig, OmegaConf

from mlpclf.errors import ConfigurationError

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent / "configs" / "config.yaml"

TRAINER_DEFAULTS: dict[str, Any] = {
    "optimizer": "lbfgs",
    "max_iterations": 100,
    "batch_size": 64,
    "tolerance": 1e-4,
    "regularization": 0.0,
    "learning_rate": 1.0,
    "mini_batch_fraction": 1.0,
    "seed": None,
    "compute_error": True,
}


def load_config(path: Path | str | None = None) -> DictConfig:
    """Load a YAML config, defaulting to the ``configs/config.yaml`` shipped with the package."""
    cfg_path = Path(path) if path is not None else DEFAULT_CONFIG_PATH
    if not cfg_path.exists():
        raise FileNotFoundError(f"Config file not found: {cfg_path}")
    cfg = OmegaConf.load(str(cfg_path))
    if not isinstance(cfg, DictConfig):
        raise ConfigurationError(f"Expected a mapping at the top of {cfg_path}")
    return cfg


def train_kwargs_from_config(cfg: DictConfig) -> dict[str, Any]:
    """Translate ``cfg.classifier`` into keyword arguments for :func:`mlpclf.classifier.train`.

    Parameters
    ----------
    cfg : DictConfig
        Config with ``classifier.model.topology`` and optional
        ``classifier.model.activation`` / ``classifier.trainer.*`` keys

    Returns
    -------
    dict[str, Any]
        Keyword arguments, trainer defaults filled in
    """
    classifier = cfg.get("classifier")
    if classifier is None:
        raise ConfigurationError("Missing 'classifier' section in config")
    model_cfg = classifier.get("model") or OmegaConf.create({})
    trainer_cfg = classifier.get("trainer") or OmegaConf.create({})

    topology = model_cfg.get("topology")
    if topology is None:
        raise ConfigurationError("Missing 'classifier.model.topology' in config")

    unknown = set(trainer_cfg.keys()) - set(TRAINER_DEFAULTS)
    if unknown:
        raise ConfigurationError(f"Unknown trainer keys: {sorted(unknown)}. Options: {sorted(TRAINER_DEFAULTS)}")

    kwargs: dict[str, Any] = {
        "topology": [int(n) for n in topology],
        "activation": str(model_cfg.get("activation") or "sigmoid"),
    }
    for key, default in TRAINER_DEFAULTS.items():
        # an explicit null falls back to the default
        value = trainer_cfg.get(key)
        kwargs[key] = default if value is None else value

    kwargs["optimizer"] = str(kwargs["optimizer"]).lower()
    for key, cast in (("max_iterations", int), ("batch_size", int), ("tolerance", float), ("regularization", float), ("learning_rate", float), ("mini_batch_fraction", float)):
        try:
            kwargs[key] = cast(kwargs[key])
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"classifier.trainer.{key} must be {cast.__name__}, got {kwargs[key]!r}") from e
    kwargs["seed"] = None if kwargs["seed"] is None else int(kwargs["seed"])
    kwargs["compute_error"] = bool(kwargs["compute_error"])
    return kwargs
