"""Adapter for scikit-learn linear estimators.

Covers estimators exposing ``coef_`` and ``intercept_`` with a single
equation: LinearRegression, Ridge, Lasso, ElasticNet, ... and binary
LogisticRegression.

scikit-learn stores neither the estimation data nor a covariance matrix, so
``newdata`` is required and standard errors need a user-supplied matrix,
ordered like ``coef_names`` (intercept first).
"""

from __future__ import annotations

from typing import Any, List

import numpy as np
import pandas as pd
from scipy.special import expit
from sklearn.base import is_classifier
from sklearn.utils.validation import check_is_fitted

from .._typing import Float64Array
from .base import BaseAdapter


def is_sklearn_linear(model: Any) -> bool:
    """True for scikit-learn estimators with linear coefficients."""
    return (
        type(model).__module__.startswith("sklearn.")
        and hasattr(model, "coef_")
        and hasattr(model, "intercept_")
    )


class SklearnLinearAdapter(BaseAdapter):
    """
    Adapter for scikit-learn linear models.

    Regressors:  E[Y|X] = b0 + X b
    Classifiers: P(Y=1|X) = σ(b0 + X b)
    """

    def __init__(self, model: Any):
        check_is_fitted(model)
        coef = np.atleast_2d(np.asarray(model.coef_, dtype=np.float64))
        if coef.shape[0] != 1:
            raise TypeError(
                f"{type(model).__name__} with {coef.shape[0]} equations is not supported; "
                "only single-equation (regression or binary) linear models are."
            )
        intercept = float(np.ravel(model.intercept_)[0]) if np.size(model.intercept_) else 0.0

        if hasattr(model, "feature_names_in_"):
            self.feature_names = [str(f) for f in model.feature_names_in_]
        else:
            self.feature_names = [f"x{i}" for i in range(coef.shape[1])]

        super().__init__(
            model,
            np.concatenate([[intercept], coef.ravel()]),
            ["Intercept"] + self.feature_names,
        )
        self.is_classifier = is_classifier(model)
        self.prediction_types = ("response", "link") if self.is_classifier else ("response",)

    def find_variables(self) -> List[str]:
        return list(self.feature_names)

    def _predict(self, newdata: pd.DataFrame, type: str) -> Float64Array:
        missing = [f for f in self.feature_names if f not in newdata.columns]
        if missing:
            raise ValueError(f"newdata is missing model columns: {missing}")
        X = newdata[self.feature_names].to_numpy(dtype=np.float64)
        eta = self._coefs[0] + X @ self._coefs[1:]
        if self.is_classifier and type == "response":
            return expit(eta)
        return eta
