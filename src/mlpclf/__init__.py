"""MLP classifier with a sorted label index and one-hot label codec."""

from mlpclf.classifier import MLPClassifierModel, TrainingReport, predict, train, train_from_config
from mlpclf.errors import ClassifierError, ConfigurationError, InvalidOutputError, TrainingFailure, UnknownLabelError
from mlpclf.checkpoint import load_model, save_model
from mlpclf.labels import LabelIndex, build_index, decode, encode
from mlpclf.metrics import evaluate

__all__ = [
    "ClassifierError",
    "ConfigurationError",
    "InvalidOutputError",
    "LabelIndex",
    "MLPClassifierModel",
    "TrainingFailure",
    "TrainingReport",
    "UnknownLabelError",
    "build_index",
    "decode",
    "encode",
    "evaluate",
    "load_model",
    "predict",
    "save_model",
    "train",
    "train_from_config",
]
