"""
Slopes and coefficient Jacobians via torch.func.

J = ∂estimate/∂β

Slopes are computed as ∂(Σᵢ fᵢ)/∂x, which equals the per-observation
derivative ∂fᵢ/∂xᵢ whenever row i's prediction depends only on row i.
"""

from typing import Callable, Dict

import numpy as np
import torch
from torch import Tensor
from torch.func import jacrev

from .._typing import Float64Array

PredictTensorFn = Callable[[Tensor, Dict[str, Tensor]], Tensor]


def _as_matrix(out: Tensor) -> Tensor:
    """(n,) -> (n, 1); (n, G) unchanged."""
    return out.unsqueeze(1) if out.dim() == 1 else out


def compute_slope(
    predict_fn: PredictTensorFn,
    coefs: Tensor,
    columns: Dict[str, Tensor],
    variable: str,
) -> Tensor:
    """
    Per-observation derivative of the predictions with respect to a column.

    Args:
        predict_fn: (coefs, columns) -> (n,) or (n, G) predictions
        coefs: (k,) coefficients
        columns: Column tensors, each (n,)
        variable: Column to differentiate with respect to

    Returns:
        (G * n,) slopes, group-major (all rows of group 0 first)
    """

    def summed(col: Tensor) -> Tensor:
        cols = dict(columns)
        cols[variable] = col
        return _as_matrix(predict_fn(coefs, cols)).sum(dim=0)  # (G,)

    jac = jacrev(summed)(columns[variable])  # (G, n)
    return jac.reshape(-1)


def compute_coef_jacobian(
    estimate_fn: Callable[[Tensor], Tensor],
    coefs: Float64Array,
) -> Float64Array:
    """
    Jacobian of an estimate vector with respect to the coefficients.

    Args:
        estimate_fn: coefs (k,) -> estimates (m,)
        coefs: (k,) coefficient values

    Returns:
        (m, k) Jacobian
    """
    coefs_t = torch.as_tensor(np.asarray(coefs, dtype=np.float64))
    jac = jacrev(estimate_fn)(coefs_t)
    return jac.detach().cpu().numpy().reshape(-1, coefs_t.shape[0])


def compute_estimates(
    estimate_fn: Callable[[Tensor], Tensor],
    coefs: Float64Array,
) -> Float64Array:
    """Evaluate an estimate function and return a flat numpy array."""
    coefs_t = torch.as_tensor(np.asarray(coefs, dtype=np.float64))
    out = estimate_fn(coefs_t)
    return out.detach().cpu().numpy().reshape(-1)
