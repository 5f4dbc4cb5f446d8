"""Input validation shared by marginaleffects(), predictions() and comparisons()."""

from __future__ import annotations

import warnings
from typing import Any, List, Optional

import numpy as np
import pandas as pd

from ._typing import Float64Array, TypeLike, VcovLike
from .adapters import BaseAdapter, get_adapter
from .datagrid import GridSpec
from .targets import is_categorical


def sanity_model(model: Any) -> BaseAdapter:
    """Adapter for the model; TypeError for unsupported classes."""
    return get_adapter(model)


def sanity_type(adapter: BaseAdapter, type: Optional[TypeLike]) -> List[str]:
    """
    Validate prediction type(s).

    None selects the first type the model supports ("response" for most
    models, "probs" for multinomial ones).

    Returns:
        List of types, duplicates removed
    """
    if type is None:
        return [adapter.prediction_types[0]]
    types = [type] if isinstance(type, str) else list(type)
    if not types:
        raise ValueError("`type` must contain at least one prediction type")
    bad = [t for t in types if t not in adapter.prediction_types]
    if bad:
        raise ValueError(
            f"type={bad} is not supported for models of class {adapter.model_type}. "
            f"Available: {list(adapter.prediction_types)}"
        )
    return list(dict.fromkeys(types))


def sanity_newdata(adapter: BaseAdapter, newdata: Any) -> pd.DataFrame:
    """
    Resolve newdata to a DataFrame.

    None uses the estimation data; a GridSpec is built against the model.
    Rows with missing values in model variables are dropped.
    """
    if newdata is None:
        newdata = adapter.get_data()
        if newdata is None:
            raise ValueError(
                f"Models of class {adapter.model_type} do not store their data. "
                "Supply the `newdata` argument."
            )
    elif isinstance(newdata, GridSpec):
        newdata = newdata.build(adapter)
    elif isinstance(newdata, pd.DataFrame):
        newdata = newdata.copy()
    else:
        raise TypeError(f"`newdata` must be a pandas DataFrame, got {type(newdata).__name__}")

    if newdata.empty:
        raise ValueError("`newdata` has no rows")

    used = [v for v in adapter.find_variables() if v in newdata.columns]
    missing = newdata[used].isna().any(axis=1)
    if missing.any():
        warnings.warn(
            f"Dropping {int(missing.sum())} row(s) of `newdata` with missing values in model variables.",
            UserWarning,
        )
        newdata = newdata.loc[~missing]

    return newdata.reset_index(drop=True)


def sanitize_variables(
    adapter: BaseAdapter,
    newdata: pd.DataFrame,
    variables: Any,
) -> List[str]:
    """
    Validate the variables to compute effects for.

    None means every regressor of the model.
    """
    if variables is None:
        variables = adapter.find_variables()
    elif isinstance(variables, str):
        variables = [variables]
    else:
        variables = list(variables)

    response = adapter.response_name
    variables = [v for v in variables if v != response]

    unknown = [v for v in variables if v not in newdata.columns]
    if unknown:
        raise ValueError(f"Variables not found in `newdata`: {unknown}")
    if not variables:
        raise ValueError("No variables to compute effects for")
    return list(dict.fromkeys(variables))


def sanitize_vcov(adapter: BaseAdapter, vcov: VcovLike) -> Optional[Float64Array]:
    """
    Resolve the covariance argument to a (k, k) matrix or None.

    - True: the model's default matrix
    - False/None: no standard errors
    - 'HC0'..'HC3': heteroskedasticity-consistent matrix
    - array or DataFrame: user-supplied matrix (DataFrame labels are
      aligned with the coefficient names)
    """
    if vcov is None or vcov is False:
        return None

    k = adapter.n_coef
    if vcov is True:
        V = adapter.get_vcov()
        if V is None:
            warnings.warn(
                f"Unable to extract a variance-covariance matrix from a model of class "
                f"{adapter.model_type}. Standard errors are not computed; supply a matrix "
                "through the `vcov` argument.",
                UserWarning,
            )
            return None
    elif isinstance(vcov, str):
        V = adapter.get_robust_vcov(vcov)
    elif isinstance(vcov, pd.DataFrame):
        names = [str(c) for c in adapter.coef_names]
        rows, cols = [str(r) for r in vcov.index], [str(c) for c in vcov.columns]
        if sorted(rows) == sorted(names) and sorted(cols) == sorted(names):
            vcov = vcov.copy()
            vcov.index, vcov.columns = rows, cols
            V = vcov.loc[names, names].to_numpy(dtype=np.float64)
        elif vcov.shape == (k, k) and rows == cols == [str(i) for i in range(k)]:
            V = vcov.to_numpy(dtype=np.float64)
        else:
            raise ValueError(
                "The row and column names of `vcov` must match the coefficient names: "
                f"{names}"
            )
    elif isinstance(vcov, np.ndarray) or isinstance(vcov, list):
        V = np.asarray(vcov, dtype=np.float64)
    else:
        raise TypeError(
            "`vcov` must be True, False, None, a robust type string, a square numpy array "
            f"or a DataFrame; got {type(vcov).__name__}"
        )

    V = np.asarray(V, dtype=np.float64)
    if V.ndim != 2 or V.shape != (k, k):
        raise ValueError(
            f"`vcov` must be a square matrix with dimensions equal to the number of "
            f"coefficients ({k}); got shape {V.shape}"
        )
    if not np.isfinite(V).all():
        raise ValueError("`vcov` contains non-finite values")
    return V


def add_rowid(newdata: pd.DataFrame) -> pd.DataFrame:
    """Add a 0-based ``rowid`` column unless a unique one is already present."""
    if "rowid" in newdata.columns:
        if newdata["rowid"].duplicated().any():
            raise ValueError("The `rowid` column of `newdata` must be unique")
        return newdata
    out = newdata.copy()
    out.insert(0, "rowid", np.arange(len(out)))
    return out


def categorical_terms(adapter: BaseAdapter, newdata: pd.DataFrame, variables: List[str]) -> List[str]:
    """Variables contrasted level by level (from the model formula or the dtype)."""
    declared = set(adapter.categorical_variables())
    return [v for v in variables if v in declared or is_categorical(newdata[v])]
