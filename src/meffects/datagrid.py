"""Data grids over which effects are evaluated.

Two kinds of grid:

- ``typical``: one row per combination of the user-supplied values, every
  other variable held at its mean (numeric) or mode (everything else,
  including numeric columns the model treats as categorical).
  Marginal effects at the mean (MEM) and at representative values (MER).
- ``counterfactual``: the whole dataset duplicated once per combination of
  the user-supplied values; other variables keep their observed values.

Called without ``model`` or ``newdata``, :func:`datagrid` returns a
:class:`GridSpec` which the estimation functions resolve against their own
model::

    >>> marginaleffects(model, newdata=datagrid(hp=[100, 110]))
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

import numpy as np
import pandas as pd

from .adapters import get_adapter

GRID_TYPES = ("typical", "counterfactual")


def mode(series: pd.Series) -> Any:
    """Most frequent value (the smallest one among ties)."""
    modes = series.mode(dropna=True)
    if modes.empty:
        return np.nan
    return modes.iloc[0]


def _as_list(value: Any) -> List[Any]:
    if isinstance(value, (list, tuple, set, np.ndarray, pd.Series, pd.Index, range)):
        return list(value)
    return [value]


def _restore_dtype(values: List[Any], template: pd.Series) -> pd.Series:
    """Values as a Series with the dtype of the template column."""
    if isinstance(template.dtype, pd.CategoricalDtype):
        return pd.Series(
            pd.Categorical(values, categories=template.cat.categories, ordered=template.cat.ordered)
        )
    if pd.api.types.is_bool_dtype(template):
        return pd.Series(values, dtype=bool)
    return pd.Series(values)


@dataclass
class GridSpec:
    """A data grid waiting for a model to supply the data."""

    grid_type: str = "typical"
    values: Dict[str, Any] = field(default_factory=dict)
    FUN_numeric: Optional[Callable[[pd.Series], Any]] = None
    FUN_other: Optional[Callable[[pd.Series], Any]] = None

    def build(self, model: Any) -> pd.DataFrame:
        """Resolve the grid against a fitted model."""
        return datagrid(
            model=model,
            grid_type=self.grid_type,
            FUN_numeric=self.FUN_numeric,
            FUN_other=self.FUN_other,
            **self.values,
        )


def datagrid(
    model: Any = None,
    newdata: Optional[pd.DataFrame] = None,
    grid_type: str = "typical",
    FUN_numeric: Optional[Callable[[pd.Series], Any]] = None,
    FUN_other: Optional[Callable[[pd.Series], Any]] = None,
    **values: Any,
):
    """
    Build a data grid.

    Args:
        model: Fitted model (its estimation data is used)
        newdata: Data to use instead of the model's data
        grid_type: 'typical' or 'counterfactual'
        FUN_numeric: Summary for numeric variables (default: mean)
        FUN_other: Summary for other variables (default: mode)
        **values: Variable -> value or list of values

    Returns:
        DataFrame, or a GridSpec when neither model nor newdata is given

    Raises:
        ValueError: On an unknown grid type, unknown variables, or when no
            data is available.
    """
    if grid_type not in GRID_TYPES:
        raise ValueError(f"Unknown grid_type: {grid_type}. Available: {list(GRID_TYPES)}")

    if model is None and newdata is None:
        return GridSpec(grid_type=grid_type, values=values, FUN_numeric=FUN_numeric, FUN_other=FUN_other)

    variables = None
    categorical: List[str] = []
    if model is not None:
        adapter = get_adapter(model)
        categorical = adapter.categorical_variables()
    if newdata is None:
        newdata = adapter.get_data()
        if newdata is None:
            raise ValueError(
                f"Models of class {adapter.model_type} do not store their data. "
                "Supply the `newdata` argument."
            )
        if grid_type == "typical":
            variables = adapter.find_variables()
            for name in newdata.columns:
                if name in ("const", "Intercept") and name not in variables:
                    variables.append(name)

    unknown = [name for name in values if name not in newdata.columns]
    if unknown:
        raise ValueError(f"Variables not found in the data: {unknown}")

    if grid_type == "counterfactual":
        return _counterfactual(newdata, values)
    return _typical(newdata, values, variables, categorical, FUN_numeric or np.mean, FUN_other or mode)


def _typical(
    data: pd.DataFrame,
    values: Dict[str, Any],
    variables: Optional[List[str]],
    categorical: List[str],
    FUN_numeric: Callable[[pd.Series], Any],
    FUN_other: Callable[[pd.Series], Any],
) -> pd.DataFrame:
    columns = [c for c in data.columns if c != "rowid" and (variables is None or c in variables or c in values)]

    names = list(values)
    combos = list(itertools.product(*(_as_list(values[name]) for name in names)))
    out = pd.DataFrame(combos, columns=names) if names else pd.DataFrame(index=[0])

    for name in names:
        out[name] = _restore_dtype(out[name].tolist(), data[name])

    for name in columns:
        if name in values:
            continue
        series = data[name]
        is_numeric = (
            pd.api.types.is_numeric_dtype(series)
            and not pd.api.types.is_bool_dtype(series)
            and name not in categorical
        )
        summary = FUN_numeric(series) if is_numeric else FUN_other(series)
        out[name] = _restore_dtype([summary] * len(out), series)

    return out.loc[:, columns].reset_index(drop=True)


def _counterfactual(data: pd.DataFrame, values: Dict[str, Any]) -> pd.DataFrame:
    base = data.drop(columns=["rowid"], errors="ignore").reset_index(drop=True)
    base.insert(0, "rowid_original", np.arange(len(base)))

    names = list(values)
    if not names:
        return base

    frames = []
    for combo in itertools.product(*(_as_list(values[name]) for name in names)):
        frame = base.copy()
        for name, value in zip(names, combo):
            frame[name] = _restore_dtype([value] * len(frame), data[name])
        frames.append(frame)
    return pd.concat(frames, ignore_index=True)


def typical(model: Any = None, newdata: Optional[pd.DataFrame] = None, **values: Any):
    """Shortcut for ``datagrid(..., grid_type='typical')``."""
    return datagrid(model=model, newdata=newdata, grid_type="typical", **values)


def counterfactual(model: Any = None, newdata: Optional[pd.DataFrame] = None, **values: Any):
    """Shortcut for ``datagrid(..., grid_type='counterfactual')``."""
    return datagrid(model=model, newdata=newdata, grid_type="counterfactual", **values)
