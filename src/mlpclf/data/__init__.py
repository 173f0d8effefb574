from mlpclf.data.labeled_point import LabeledPoint
from mlpclf.data.synthetic import make_synthetic_points

__all__ = ["LabeledPoint", "make_synthetic_points"]
