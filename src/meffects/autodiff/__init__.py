"""
Automatic differentiation for models written with torch.

Uses torch.func for composable derivatives:
- slope: ∂f/∂x per observation (gradient of summed predictions)
- jacobian: ∂estimate/∂β (Jacobian with respect to the coefficients)
"""

from .jacobian import compute_coef_jacobian, compute_estimates, compute_slope

__all__ = [
    "compute_coef_jacobian",
    "compute_estimates",
    "compute_slope",
]
