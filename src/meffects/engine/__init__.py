"""
Numerical engine.

The engine provides:
- Finite-difference Jacobians with respect to the coefficients
- Delta-method standard errors, z statistics and confidence intervals
- Assembly of targets into result tables (see engine.assembler)
"""

from .finite import jacobian_finite
from .variance import (
    compute_z_and_pvalue,
    confidence_interval,
    critical_value,
    delta_method_se,
    delta_method_vcov,
)

__all__ = [
    "jacobian_finite",
    "delta_method_se",
    "delta_method_vcov",
    "compute_z_and_pvalue",
    "confidence_interval",
    "critical_value",
]
