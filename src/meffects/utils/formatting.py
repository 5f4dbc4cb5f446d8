"""Summary formatting utilities for statsmodels-style output."""

from datetime import datetime
from typing import List, Optional, Tuple

import numpy as np
import pandas as pd
from tabulate import tabulate


def format_pvalue(p: float) -> str:
    """
    Format p-value for display.

    Args:
        p: p-value

    Returns:
        Formatted string (e.g., "0.042", "<0.001", "nan")
    """
    if p is None or np.isnan(p):
        return "nan"
    if p < 0.001:
        return "<0.001"
    return f"{p:.3f}"


def format_number(x: float, digits: int = 4) -> str:
    """Fixed-point number, blank for missing values."""
    if x is None or (isinstance(x, float) and np.isnan(x)):
        return ""
    return f"{x:.{digits}f}"


def format_summary_header(
    title: str,
    model_type: Optional[str] = None,
    prediction_type: Optional[str] = None,
    n_obs: Optional[int] = None,
    conf_level: Optional[float] = None,
    width: int = 78,
) -> str:
    """
    Format statsmodels-style header block.

    Args:
        title: Main title (e.g., "Average Marginal Effects")
        model_type: Class name of the fitted model
        prediction_type: Prediction type(s)
        n_obs: Number of rows in the data grid
        conf_level: Confidence level of the intervals
        width: Total width of output

    Returns:
        Formatted header string
    """
    lines = []
    sep = "=" * width

    lines.append(sep)
    lines.append(f"{title:^{width}}")
    lines.append(sep)

    now = datetime.now()
    date_str = now.strftime("%a, %d %b %Y")
    time_str = now.strftime("%H:%M:%S")

    left_col: List[Tuple[str, str]] = []
    right_col: List[Tuple[str, str]] = []

    if model_type is not None:
        left_col.append(("Model:", model_type))
    if prediction_type is not None:
        right_col.append(("Type:", prediction_type))

    if n_obs is not None:
        left_col.append(("No. Observations:", str(n_obs)))
    if conf_level is not None:
        right_col.append(("Conf. Level:", f"{conf_level:.0%}"))

    left_col.append(("Date:", date_str))
    right_col.append(("Time:", time_str))

    half_width = width // 2
    for left, right in zip(left_col, right_col):
        left_str = f"{left[0]:<18}{left[1]:<{half_width - 18}}"
        right_str = f"{right[0]:<18}{right[1]}"
        lines.append(f"{left_str}{right_str}")

    if len(left_col) > len(right_col):
        for item in left_col[len(right_col):]:
            lines.append(f"{item[0]:<18}{item[1]}")
    elif len(right_col) > len(left_col):
        for item in right_col[len(left_col):]:
            lines.append(" " * half_width + f"{item[0]:<18}{item[1]}")

    lines.append(sep)
    return "\n".join(lines)


def format_estimate_table(tidy: pd.DataFrame, label_columns: List[str], conf_level: float = 0.95) -> str:
    """
    Format the averaged estimates as a plain-text table.

    Args:
        tidy: Output of ``tidy()``
        label_columns: Columns identifying each estimate (e.g. term, contrast)
        conf_level: Confidence level, used in the interval headers

    Returns:
        Table string
    """
    lower = (1 - conf_level) / 2
    headers = [c.capitalize() for c in label_columns] + [
        "Estimate",
        "Std. Error",
        "z",
        "Pr(>|z|)",
        f"{lower:.1%}",
        f"{1 - lower:.1%}",
    ]
    rows = []
    for _, row in tidy.iterrows():
        rows.append(
            [row[c] for c in label_columns]
            + [
                format_number(row["estimate"]),
                format_number(row["std.error"]),
                format_number(row["statistic"], 3),
                format_pvalue(row["p.value"]),
                format_number(row["conf.low"]),
                format_number(row["conf.high"]),
            ]
        )
    return tabulate(rows, headers=headers, tablefmt="simple", disable_numparse=True)


def format_short_repr(class_name: str, n_rows: int, columns: List[str]) -> str:
    """
    Format short __repr__ string.

    Args:
        class_name: Name of result class
        n_rows: Number of per-row estimates
        columns: Column names

    Returns:
        Short repr string
    """
    shown = ", ".join(columns[:8]) + (", ..." if len(columns) > 8 else "")
    return f"<{class_name}: {n_rows} rows [{shown}]>"
