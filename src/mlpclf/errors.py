"""Exception types raised by the classifier and its trainer."""

from __future__ import annotations


class ClassifierError(Exception):
    """Base class for every error raised by mlpclf."""


class UnknownLabelError(ClassifierError, KeyError):
    """A label was requested that is not part of the label index."""

    def __init__(self, label: float, known: tuple[float, ...] = ()):
        self.label = label
        self.known = tuple(known)
        super().__init__(f"Unknown label {label!r}; known labels: {list(self.known)}")

    def __str__(self) -> str:
        # KeyError.__str__ would repr() the message
        return str(self.args[0])


class InvalidOutputError(ClassifierError, ValueError):
    """A network output vector does not match the label index dimensionality."""


class TrainingFailure(ClassifierError, RuntimeError):
    """The optimizer could not produce a usable model."""


class ConfigurationError(ClassifierError, ValueError):
    """Topology, optimizer or config values are inconsistent."""


__all__ = [
    "ClassifierError",
    "ConfigurationError",
    "InvalidOutputError",
    "TrainingFailure",
    "UnknownLabelError",
]
