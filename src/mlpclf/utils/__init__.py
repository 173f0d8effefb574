from .seed import seed_everything  # noqa: F401

__all__ = [
    "seed_everything",
]
