"""Label index and one-hot codec."""

from mlpclf.labels.codec import LabelIndex, build_index, decode, encode

__all__ = ["LabelIndex", "build_index", "decode", "encode"]
