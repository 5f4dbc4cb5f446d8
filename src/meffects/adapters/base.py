"""
Base protocol and classes for model adapters.

A ModelAdapter normalizes a fitted model object from an external library to
the small interface the rest of the package relies on: coefficients,
covariance, predictions, and the data the model was estimated on.
"""

from __future__ import annotations

import copy
from typing import Any, List, Optional, Protocol, Tuple, runtime_checkable

import numpy as np
import pandas as pd

from .._typing import Float64Array


@runtime_checkable
class ModelAdapter(Protocol):
    """
    Protocol for model adapters.

    An adapter defines:
    - get_coef() / set_coef(): read and replace the coefficient vector
    - get_vcov(): default variance-covariance matrix of the coefficients
    - predict(newdata, type): predictions on a data frame
    - get_data() / find_variables(): the estimation data and its regressors

    set_coef() never mutates the wrapped model: it returns a copy of the
    adapter whose predictions use the new coefficients. This is what the
    delta method relies on when it perturbs coefficients one at a time.
    """

    model: Any
    coef_names: List[str]
    prediction_types: Tuple[str, ...]

    def get_coef(self) -> Float64Array:
        """Coefficient vector, ordered like ``coef_names``."""
        ...

    def set_coef(self, coefs: Float64Array) -> "ModelAdapter":
        """Return an adapter whose predictions use ``coefs``."""
        ...

    def get_vcov(self) -> Optional[Float64Array]:
        """Default covariance matrix, or None when unavailable."""
        ...

    def predict(self, newdata: pd.DataFrame, type: str) -> Float64Array:
        """
        Predictions on ``newdata``.

        Returns:
            (n,) array, or (n, G) for models with a grouped outcome
        """
        ...

    def get_data(self) -> Optional[pd.DataFrame]:
        """Estimation data, or None when the model does not store it."""
        ...

    def find_variables(self) -> List[str]:
        """Names of the regressors (the response is excluded)."""
        ...


class BaseAdapter:
    """
    Base class for model adapters.

    Stores the coefficient vector on the adapter so that set_coef() can
    return a shallow copy without touching the wrapped model. Subclasses
    implement _predict() using ``self._coefs``.
    """

    prediction_types: Tuple[str, ...] = ("response",)
    supports_autodiff: bool = False
    group_names: Optional[List[str]] = None

    def __init__(self, model: Any, coefs: Float64Array, coef_names: List[str]):
        self.model = model
        self._coefs = np.asarray(coefs, dtype=np.float64).ravel()
        self.coef_names = list(coef_names)
        if len(self.coef_names) != self._coefs.shape[0]:
            raise ValueError(
                f"Got {self._coefs.shape[0]} coefficients but {len(self.coef_names)} names"
            )

    @property
    def model_type(self) -> str:
        """Name of the wrapped model class."""
        return type(self.model).__name__

    @property
    def n_coef(self) -> int:
        return self._coefs.shape[0]

    def get_coef(self) -> Float64Array:
        return self._coefs.copy()

    def set_coef(self, coefs: Float64Array) -> "BaseAdapter":
        coefs = np.asarray(coefs, dtype=np.float64).ravel()
        if coefs.shape[0] != self.n_coef:
            raise ValueError(
                f"Expected {self.n_coef} coefficients, got {coefs.shape[0]}"
            )
        new = copy.copy(self)
        new._coefs = coefs
        return new

    def get_vcov(self) -> Optional[Float64Array]:
        """Default: no covariance matrix available."""
        return None

    def get_robust_vcov(self, kind: str) -> Float64Array:
        """Default: robust covariance matrices are not supported."""
        raise ValueError(
            f"vcov='{kind}' is not supported for models of class {self.model_type}. "
            "Supply a covariance matrix instead."
        )

    def get_data(self) -> Optional[pd.DataFrame]:
        """Default: the model does not store its data."""
        return None

    def find_variables(self) -> List[str]:
        raise NotImplementedError("Subclasses must implement find_variables()")

    def categorical_variables(self) -> List[str]:
        """Regressors the model treats as categorical regardless of dtype."""
        return []

    @property
    def response_name(self) -> Optional[str]:
        return None

    def predict(self, newdata: pd.DataFrame, type: str = "response") -> Float64Array:
        if type not in self.prediction_types:
            raise ValueError(
                f"type='{type}' is not supported for models of class {self.model_type}. "
                f"Available: {list(self.prediction_types)}"
            )
        return np.asarray(self._predict(newdata, type), dtype=np.float64)

    def _predict(self, newdata: pd.DataFrame, type: str) -> Float64Array:
        """Must be implemented by subclasses."""
        raise NotImplementedError("Subclasses must implement _predict()")

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}: {self.model_type}, {self.n_coef} coefficients>"
