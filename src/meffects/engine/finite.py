"""Finite-difference Jacobians with respect to model coefficients."""

from typing import Callable

import numpy as np

from .._typing import Float64Array


def jacobian_finite(
    fn: Callable[[Float64Array], Float64Array],
    coefs: Float64Array,
    step: float = 1e-5,
) -> Float64Array:
    """
    Jacobian of ``fn`` at ``coefs`` by central differences.

    J[:, j] = [fn(β + h_j e_j) - fn(β - h_j e_j)] / (2 h_j),
    h_j = step * max(1, |β_j|)

    Args:
        fn: coefs (k,) -> estimates (m,)
        coefs: (k,) coefficient values
        step: Relative step size

    Returns:
        (m, k) Jacobian

    Raises:
        FloatingPointError: If fn returns non-finite values at coefs.
    """
    coefs = np.asarray(coefs, dtype=np.float64).ravel()
    base = np.asarray(fn(coefs), dtype=np.float64).ravel()
    if not np.isfinite(base).all():
        raise FloatingPointError("Non-finite estimates at the fitted coefficients.")

    jac = np.empty((base.shape[0], coefs.shape[0]), dtype=np.float64)
    for j in range(coefs.shape[0]):
        h = step * max(1.0, abs(coefs[j]))
        up = coefs.copy()
        down = coefs.copy()
        up[j] += h
        down[j] -= h
        jac[:, j] = (np.asarray(fn(up), dtype=np.float64).ravel()
                     - np.asarray(fn(down), dtype=np.float64).ravel()) / (2 * h)
    return jac
