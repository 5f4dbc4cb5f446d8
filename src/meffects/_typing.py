"""Type definitions for meffects.

This module provides type aliases using numpy.typing for clear,
consistent type annotations throughout the package.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Mapping, Sequence, Union

import numpy as np
from numpy.typing import NDArray

if TYPE_CHECKING:
    import pandas as pd

# Core numeric types
Float64Array = NDArray[np.float64]

# Covariance input accepted by the public functions
VcovLike = Union[bool, str, Float64Array, "pd.DataFrame", None]

# Prediction type(s)
TypeLike = Union[str, Sequence[str]]

# Variables argument: names, or a mapping of names to values (predictions)
VariablesLike = Union[str, Sequence[str], Mapping[str, Any], None]
