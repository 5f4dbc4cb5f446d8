"""Plots of averaged estimates and conditional marginal effects."""

from typing import Optional, Tuple

import numpy as np
import pandas as pd


def _pyplot():
    try:
        import matplotlib.pyplot as plt
    except ImportError:
        raise ImportError("Install matplotlib: pip install meffects[plotting]")
    return plt


def plot_estimates(
    tidy: pd.DataFrame,
    label_columns: list,
    ax=None,
    figsize: Tuple[int, int] = (6, 4),
    title: Optional[str] = None,
):
    """
    Point-range plot of averaged estimates with confidence intervals.

    Args:
        tidy: Output of ``tidy()``
        label_columns: Columns joined into the y-axis labels
        ax: Existing matplotlib Axes (a new figure is created if None)
        figsize: Figure size when creating a new figure
        title: Axes title

    Returns:
        matplotlib Axes object
    """
    plt = _pyplot()
    if ax is None:
        _, ax = plt.subplots(figsize=figsize)

    labels = [
        " ".join(str(row[c]) for c in label_columns if str(row[c]) != "")
        for _, row in tidy.iterrows()
    ]
    y = np.arange(len(tidy))[::-1]
    est = tidy["estimate"].to_numpy(dtype=float)
    low = tidy["conf.low"].to_numpy(dtype=float)
    high = tidy["conf.high"].to_numpy(dtype=float)

    ok = np.isfinite(low) & np.isfinite(high)
    ax.hlines(y[ok], low[ok], high[ok], color="black", lw=1.5)
    ax.plot(est, y, "o", color="black")
    ax.axvline(0.0, color="grey", ls=":", lw=1)
    ax.set_yticks(y)
    ax.set_yticklabels(labels)
    ax.set_xlabel("Estimate")
    if title:
        ax.set_title(title)
    ax.grid(True, axis="x", alpha=0.3)
    return ax


def plot_cme(
    model,
    effect: str,
    condition: str,
    n_points: int = 25,
    type: str = "response",
    vcov=True,
    conf_level: Optional[float] = None,
    ax=None,
    figsize: Tuple[int, int] = (6, 4),
):
    """
    Plot the conditional marginal effect of ``effect`` across ``condition``.

    The marginal effect of ``effect`` is evaluated on a typical data grid
    spanning the observed range of ``condition`` (other variables at their
    means or modes) and drawn with a delta-method confidence band.

    Args:
        model: Fitted model
        effect: Variable whose marginal effect is plotted
        condition: Numeric variable on the x-axis
        n_points: Number of grid points across the range of condition
        type: Prediction type
        vcov: Covariance argument passed to marginaleffects()
        conf_level: Confidence level (default: package option)
        ax: Existing matplotlib Axes
        figsize: Figure size when creating a new figure

    Returns:
        matplotlib Axes object
    """
    from ..adapters import get_adapter
    from ..config import get_options
    from ..datagrid import datagrid
    from ..engine.variance import critical_value
    from ..marginaleffects import marginaleffects

    plt = _pyplot()
    adapter = get_adapter(model)
    data = adapter.get_data()
    if data is None:
        raise ValueError(
            f"Models of class {adapter.model_type} do not store their data; cannot build the grid."
        )
    for name in (effect, condition):
        if name not in data.columns:
            raise ValueError(f"Variable not found in the model data: {name}")
    x = pd.to_numeric(data[condition], errors="raise")
    values = np.linspace(x.min(), x.max(), n_points)

    grid = datagrid(adapter, **{condition: values})
    mfx = marginaleffects(adapter, newdata=grid, variables=effect, vcov=vcov, type=type)
    frame = mfx.to_frame()
    if "contrast" in frame.columns and (frame["contrast"] != "").any():
        raise ValueError(f"plot_cme() requires a numeric effect variable, got '{effect}'")

    level = conf_level if conf_level is not None else get_options().conf_level
    est = frame["dydx"].to_numpy(dtype=float)

    if ax is None:
        _, ax = plt.subplots(figsize=figsize)
    ax.plot(values, est, "-", color="black", lw=2)
    if "std.error" in frame.columns:
        z = critical_value(level)
        se = frame["std.error"].to_numpy(dtype=float)
        ax.fill_between(values, est - z * se, est + z * se, color="grey", alpha=0.3)
    ax.axhline(0.0, color="grey", ls=":", lw=1)
    ax.set_xlabel(condition)
    ax.set_ylabel(f"Marginal effect of {effect}")
    ax.grid(True, alpha=0.3)
    return ax
