"""
Contrast (comparison) target.

Numeric variables:      H = f(x_v + step) - f(x_v)
Categorical variables:  H = f(x_v = level) - f(x_v = reference), one block
                        per non-reference level

The reference is the first level: the first category of a categorical
dtype, False for booleans, otherwise the smallest observed value.
"""

from typing import Any, Callable, List, Optional

import numpy as np
import pandas as pd
import torch
from torch import Tensor

from .._typing import Float64Array
from ..adapters.base import BaseAdapter
from .base import BaseTarget, as_matrix, build_index, flatten, group_labels


def is_categorical(series: pd.Series) -> bool:
    """Booleans, strings, objects and categoricals are contrasted level by level."""
    return (
        pd.api.types.is_bool_dtype(series)
        or isinstance(series.dtype, pd.CategoricalDtype)
        or pd.api.types.is_object_dtype(series)
        or pd.api.types.is_string_dtype(series)
    )


def variable_levels(series: pd.Series) -> List[Any]:
    """Ordered levels of a variable; the first one is the reference."""
    if isinstance(series.dtype, pd.CategoricalDtype):
        return list(series.cat.categories)
    if pd.api.types.is_bool_dtype(series):
        return [False, True]
    return sorted(series.dropna().unique().tolist())


def set_value(frame: pd.DataFrame, variable: str, value: Any) -> pd.DataFrame:
    """Copy of ``frame`` with every row of ``variable`` set to ``value``."""
    out = frame.copy()
    template = frame[variable]
    if isinstance(template.dtype, pd.CategoricalDtype):
        out[variable] = pd.Categorical(
            [value] * len(out),
            categories=template.cat.categories,
            ordered=template.cat.ordered,
        )
    else:
        out[variable] = pd.Series([value] * len(out), index=out.index, dtype=template.dtype)
    return out


class Contrast(BaseTarget):
    """
    Target: difference in predictions between two values of a variable.

    Args:
        variable: Variable to contrast
        type: Prediction type
        categorical: Treat the variable level by level (default: from dtype)
        step: Increment for numeric variables
        levels: Levels for categorical variables (default: from the
            estimation data, else from newdata)
    """

    estimate_name = "comparison"

    def __init__(
        self,
        variable: str,
        type: str = "response",
        categorical: Optional[bool] = None,
        step: float = 1.0,
        levels: Optional[List[Any]] = None,
    ):
        super().__init__(type=type)
        self.variable = variable
        self.categorical = categorical
        self.step = step
        self.levels = levels

    def _prepare(self, adapter: BaseAdapter, newdata: pd.DataFrame) -> None:
        column = newdata[self.variable]
        if self.categorical is None:
            self.categorical = is_categorical(column)

        if self.categorical:
            if self.levels is None:
                data = adapter.get_data()
                source = data[self.variable] if data is not None and self.variable in data.columns else column
                self.levels = variable_levels(source)
            if len(self.levels) < 2:
                raise ValueError(
                    f"Variable '{self.variable}' has fewer than two levels; cannot compute contrasts."
                )
            reference = self.levels[0]
            lo = set_value(newdata, self.variable, reference)
            self._pairs = [
                (f"{level} - {reference}", set_value(newdata, self.variable, level), lo)
                for level in self.levels[1:]
            ]
        else:
            hi = newdata.copy()
            hi[self.variable] = column.astype(np.float64) + self.step
            self._pairs = [(f"+{self.step:g}", hi, newdata)]

        pred = as_matrix(adapter.predict(newdata, self.type))
        self._index = build_index(
            rowid=self.rowid,
            groups=group_labels(adapter, pred.shape[1]),
            type=self.type,
            term=self.variable,
            contrasts=[label for label, _, _ in self._pairs],
            predicted=pred,
        )

    def values(self, adapter: BaseAdapter) -> Float64Array:
        blocks = [
            flatten(as_matrix(adapter.predict(hi, self.type)) - as_matrix(adapter.predict(lo, self.type)))
            for _, hi, lo in self._pairs
        ]
        return np.concatenate(blocks)

    def tensor_fn(self, adapter: BaseAdapter) -> Optional[Callable[[Tensor], Tensor]]:
        pairs = [
            (adapter.columns_to_tensors(hi), adapter.columns_to_tensors(lo))
            for _, hi, lo in self._pairs
        ]

        def fn(coefs: Tensor) -> Tensor:
            blocks = []
            for hi, lo in pairs:
                diff = adapter.predict_tensor(coefs, hi) - adapter.predict_tensor(coefs, lo)
                diff = diff.unsqueeze(1) if diff.dim() == 1 else diff
                blocks.append(diff.T.reshape(-1))
            return torch.cat(blocks)

        return fn
