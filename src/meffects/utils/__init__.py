"""Utility functions."""

from .formatting import (
    format_estimate_table,
    format_number,
    format_pvalue,
    format_short_repr,
    format_summary_header,
)
from .plotting import plot_cme, plot_estimates

__all__ = [
    "format_pvalue",
    "format_number",
    "format_summary_header",
    "format_estimate_table",
    "format_short_repr",
    "plot_estimates",
    "plot_cme",
]
