"""
Marginal effect (slope) target.

H = ∂f(x, β)/∂x_v

Computed by centered finite differences:

    dydx = [f(x_v + ε/2) - f(x_v - ε/2)] / ε

with ε = eps_scale * (max - min) of x_v in the estimation data, or exactly
via torch autodiff for custom models.
"""

from typing import Callable, Optional

import numpy as np
import pandas as pd
from torch import Tensor

from .._typing import Float64Array
from ..adapters.base import BaseAdapter
from ..autodiff import compute_slope
from .base import BaseTarget, as_matrix, build_index, flatten, group_labels


def default_step(adapter: BaseAdapter, newdata: pd.DataFrame, variable: str, eps_scale: float) -> float:
    """ε proportional to the range of the variable (estimation data first)."""
    data = adapter.get_data()
    if data is not None and variable in data.columns:
        x = pd.to_numeric(data[variable], errors="coerce")
    else:
        x = pd.to_numeric(newdata[variable], errors="coerce")
    span = float(np.nanmax(x) - np.nanmin(x)) if x.notna().any() else 0.0
    if not np.isfinite(span) or span <= 0:
        return eps_scale
    return eps_scale * span


class Slope(BaseTarget):
    """
    Target: marginal effect of a numeric variable.

    Args:
        variable: Variable to differentiate with respect to
        type: Prediction type
        eps: Absolute step (default: eps_scale * range of the variable)
        eps_scale: Step as a fraction of the variable range
    """

    estimate_name = "dydx"

    def __init__(
        self,
        variable: str,
        type: str = "response",
        eps: Optional[float] = None,
        eps_scale: float = 1e-4,
    ):
        super().__init__(type=type)
        self.variable = variable
        self.eps = eps
        self.eps_scale = eps_scale

    def _prepare(self, adapter: BaseAdapter, newdata: pd.DataFrame) -> None:
        if self.eps is None:
            self.eps = default_step(adapter, newdata, self.variable, self.eps_scale)

        x = newdata[self.variable].astype(np.float64)
        self._lo = newdata.copy()
        self._hi = newdata.copy()
        self._lo[self.variable] = x - self.eps / 2
        self._hi[self.variable] = x + self.eps / 2

        pred = as_matrix(adapter.predict(newdata, self.type))
        self._index = build_index(
            rowid=self.rowid,
            groups=group_labels(adapter, pred.shape[1]),
            type=self.type,
            term=self.variable,
            predicted=pred,
        )

    def values(self, adapter: BaseAdapter) -> Float64Array:
        hi = adapter.predict(self._hi, self.type)
        lo = adapter.predict(self._lo, self.type)
        return flatten((as_matrix(hi) - as_matrix(lo)) / self.eps)

    def tensor_fn(self, adapter: BaseAdapter) -> Optional[Callable[[Tensor], Tensor]]:
        columns = adapter.columns_to_tensors(self.newdata)

        def fn(coefs: Tensor) -> Tensor:
            return compute_slope(adapter.predict_tensor, coefs, columns, self.variable)

        return fn
