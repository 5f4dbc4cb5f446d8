"""
User-defined models written with torch.

Enables users to pass an arbitrary prediction function and get marginal
effects, predictions and contrasts with exact (autodiff) derivatives.

Usage:
    def predict_fn(coefs, columns):
        eta = coefs[0] + coefs[1] * columns["x"] + coefs[2] * columns["x"] ** 2
        return torch.sigmoid(eta)

    model = model_from_fn(predict_fn, coefs=[0.1, 0.5, -0.2], data=df, vcov=V)
    mfx = marginaleffects(model)
"""

from __future__ import annotations

from typing import Callable, Dict, List, Optional, Sequence

import numpy as np
import pandas as pd
import torch
from torch import Tensor

from .._typing import Float64Array
from .base import BaseAdapter

PredictFn = Callable[[Tensor, Dict[str, Tensor]], Tensor]


class CustomModel(BaseAdapter):
    """
    Wrapper for user-provided prediction functions.

    The prediction function receives the coefficient vector and a dict of
    float64 column tensors and returns (n,) or (n, G) predictions. Each
    prediction must depend only on its own row: slopes are computed as the
    gradient of the summed predictions with respect to a column.
    """

    supports_autodiff = True

    def __init__(
        self,
        predict_fn: PredictFn,
        coefs: Sequence[float],
        data: Optional[pd.DataFrame] = None,
        vcov: Optional[np.ndarray] = None,
        coef_names: Optional[List[str]] = None,
        variables: Optional[List[str]] = None,
        group_names: Optional[List[str]] = None,
    ):
        """
        Create a model from a prediction function.

        Args:
            predict_fn: (coefs, columns) -> (n,) or (n, G) Tensor
            coefs: Coefficient values
            data: Estimation data (used as default newdata)
            vcov: (k, k) covariance matrix of the coefficients
            coef_names: Coefficient names (default: b0, b1, ...)
            variables: Regressors (default: numeric columns of data)
            group_names: Outcome labels when predictions are (n, G)
        """
        coefs = np.asarray(coefs, dtype=np.float64).ravel()
        if coef_names is None:
            coef_names = [f"b{i}" for i in range(coefs.shape[0])]
        super().__init__(predict_fn, coefs, coef_names)
        self.predict_fn = predict_fn
        self._data = data
        self._vcov = None if vcov is None else np.asarray(vcov, dtype=np.float64)
        self.group_names = group_names

        if variables is None:
            if data is None:
                raise ValueError("Provide either 'variables' or 'data' for a custom model")
            variables = [c for c in data.columns if _is_numeric(data[c])]
        self._variables = list(variables)

    @property
    def model_type(self) -> str:
        return "CustomModel"

    def get_vcov(self) -> Optional[Float64Array]:
        return None if self._vcov is None else self._vcov.copy()

    def get_data(self) -> Optional[pd.DataFrame]:
        return None if self._data is None else self._data.copy()

    def find_variables(self) -> List[str]:
        return list(self._variables)

    def columns_to_tensors(self, newdata: pd.DataFrame) -> Dict[str, Tensor]:
        """Numeric columns of ``newdata`` as float64 tensors."""
        missing = [v for v in self._variables if v not in newdata.columns]
        if missing:
            raise ValueError(f"newdata is missing model columns: {missing}")
        return {
            str(col): torch.as_tensor(newdata[col].to_numpy(dtype=np.float64))
            for col in newdata.columns
            if _is_numeric(newdata[col])
        }

    def predict_tensor(self, coefs: Tensor, columns: Dict[str, Tensor]) -> Tensor:
        return self.predict_fn(coefs, columns)

    def _predict(self, newdata: pd.DataFrame, type: str) -> Float64Array:
        columns = self.columns_to_tensors(newdata)
        with torch.no_grad():
            out = self.predict_tensor(torch.as_tensor(self._coefs), columns)
        return out.detach().cpu().numpy()


def _is_numeric(series: pd.Series) -> bool:
    return pd.api.types.is_numeric_dtype(series) or pd.api.types.is_bool_dtype(series)


def model_from_fn(
    predict_fn: PredictFn,
    coefs: Sequence[float],
    data: Optional[pd.DataFrame] = None,
    vcov: Optional[np.ndarray] = None,
    coef_names: Optional[List[str]] = None,
    variables: Optional[List[str]] = None,
    group_names: Optional[List[str]] = None,
) -> CustomModel:
    """
    Create a model from a torch prediction function.

    Returns:
        CustomModel instance
    """
    return CustomModel(
        predict_fn=predict_fn,
        coefs=coefs,
        data=data,
        vcov=vcov,
        coef_names=coef_names,
        variables=variables,
        group_names=group_names,
    )
