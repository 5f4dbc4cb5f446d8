"""
Delta-method variance propagation.

For estimates g(β̂) with Jacobian J = ∂g/∂β:
    Var[g(β̂)] ≈ J V J'
    SE = √diag(J V J')
"""

from typing import Tuple

import numpy as np
from scipy import stats

from .._typing import Float64Array


def delta_method_se(J: Float64Array, vcov: Float64Array) -> Float64Array:
    """
    Standard errors of estimates with Jacobian J.

    Args:
        J: (m, k) Jacobian
        vcov: (k, k) covariance matrix of the coefficients

    Returns:
        (m,) standard errors (round-off below zero is clipped)
    """
    J = np.atleast_2d(np.asarray(J, dtype=np.float64))
    variance = np.einsum("ij,jk,ik->i", J, vcov, J)
    return np.sqrt(np.clip(variance, 0.0, None))


def delta_method_vcov(J: Float64Array, vcov: Float64Array) -> Float64Array:
    """Full covariance J V J' of the estimates."""
    J = np.atleast_2d(np.asarray(J, dtype=np.float64))
    return J @ vcov @ J.T


def critical_value(conf_level: float = 0.95) -> float:
    """Two-sided normal quantile z_{(1+level)/2}."""
    if not 0 < conf_level < 1:
        raise ValueError(f"conf_level must be in (0, 1), got {conf_level}")
    return float(stats.norm.ppf(1 - (1 - conf_level) / 2))


def compute_z_and_pvalue(
    estimate: Float64Array,
    se: Float64Array,
) -> Tuple[Float64Array, Float64Array]:
    """
    z-statistics and two-sided p-values.

    Entries with zero or missing standard errors get NaN.
    """
    estimate = np.asarray(estimate, dtype=np.float64)
    se = np.asarray(se, dtype=np.float64)
    with np.errstate(divide="ignore", invalid="ignore"):
        z = np.where(se > 0, estimate / se, np.nan)
    p = 2 * stats.norm.sf(np.abs(z))
    return z, p


def confidence_interval(
    estimate: Float64Array,
    se: Float64Array,
    conf_level: float = 0.95,
) -> Tuple[Float64Array, Float64Array]:
    """
    Normal confidence interval.

    CI = [est - z × SE, est + z × SE]
    """
    z = critical_value(conf_level)
    estimate = np.asarray(estimate, dtype=np.float64)
    se = np.asarray(se, dtype=np.float64)
    return estimate - z * se, estimate + z * se
