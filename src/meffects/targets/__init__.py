"""Target quantities: predictions, slopes and contrasts."""

from .base import MAIN_GROUP, BaseTarget, build_index
from .contrast import Contrast, is_categorical, variable_levels
from .prediction import Prediction
from .slope import Slope

__all__ = [
    "BaseTarget",
    "Prediction",
    "Slope",
    "Contrast",
    "MAIN_GROUP",
    "build_index",
    "is_categorical",
    "variable_levels",
]
