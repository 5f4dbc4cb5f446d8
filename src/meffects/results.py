"""Result containers for marginal effects, predictions and contrasts.

Each result wraps the per-row estimates in a DataFrame and keeps what is
needed for inference on averaged quantities: the Jacobian ``J`` of every
estimate with respect to the coefficients, the Jacobian averaged within
(type, group, term, contrast) and the covariance matrix.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence

import numpy as np
import pandas as pd

from ._typing import Float64Array
from .config import get_options
from .engine.assembler import GROUP_KEYS, mean_jacobian
from .engine.variance import compute_z_and_pvalue, confidence_interval, delta_method_se
from .targets import MAIN_GROUP
from .utils.formatting import format_estimate_table, format_short_repr, format_summary_header
from .utils.plotting import plot_estimates

TIDY_COLUMNS = ["estimate", "std.error", "statistic", "p.value", "conf.low", "conf.high"]


def finalize_frame(
    frame: pd.DataFrame,
    newdata: pd.DataFrame,
    columns: Sequence[str],
    keep_contrast: bool,
    return_data: bool,
) -> pd.DataFrame:
    """
    Order the columns of assembled estimates and attach the data grid.

    Args:
        frame: Assembled estimates
        newdata: Data grid with a ``rowid`` column
        columns: Leading columns, in order (missing ones are skipped)
        keep_contrast: Keep the contrast column
        return_data: Merge the data grid columns on ``rowid``

    Returns:
        DataFrame in the original row order
    """
    out = frame.copy()
    if "group" in out.columns and (out["group"] == MAIN_GROUP).all():
        out = out.drop(columns="group")
    if "contrast" in out.columns and not keep_contrast:
        out = out.drop(columns="contrast")
    out = out.loc[:, [c for c in columns if c in out.columns]]

    if return_data:
        data = newdata.drop(columns=[c for c in newdata.columns if c in out.columns and c != "rowid"])
        out = out.merge(data, on="rowid", how="left", validate="many_to_one")
    return out.reset_index(drop=True)


@dataclass(eq=False)
class BaseResults:
    """
    Per-row estimates with delta-method standard errors.

    Attributes
    ----------
    frame : pd.DataFrame
        One row per (rowid, type, group, term, contrast).
    model : Any
        The fitted model.
    type : list[str]
        Prediction types.
    model_type : str
        Class name of the fitted model.
    coef_names : list[str]
        Names of the model coefficients (columns of J).
    variables : list[str]
        Variables the estimates refer to.
    newdata : pd.DataFrame
        Data grid the estimates were evaluated on.
    vcov : Float64Array, optional
        Covariance matrix used for the standard errors.
    J : Float64Array, optional
        (n_rows, k) Jacobian of the estimates.
    J_mean : pd.DataFrame, optional
        Jacobian averaged within (type, group, term, contrast).
    se_at_mean_gradient : pd.DataFrame, optional
        Standard errors of the averaged estimates computed from J_mean.
    """

    estimate_column = "estimate"
    title = "Estimates"

    frame: pd.DataFrame
    model: Any
    type: List[str]
    model_type: str
    coef_names: List[str]
    variables: List[str] = field(default_factory=list)
    newdata: Optional[pd.DataFrame] = None
    vcov: Optional[Float64Array] = None
    J: Optional[Float64Array] = None
    J_mean: Optional[pd.DataFrame] = None
    se_at_mean_gradient: Optional[pd.DataFrame] = None

    # -------------------------------------------------------------------------
    # Averaged estimates
    # -------------------------------------------------------------------------

    def _keys(self) -> List[str]:
        return [k for k in GROUP_KEYS if k in self.frame.columns]

    def tidy(self, conf_level: Optional[float] = None, by: Optional[Sequence[str]] = None) -> pd.DataFrame:
        """
        Average the estimates within (type, group, term, contrast).

        Standard errors come from the delta method at the averaged
        Jacobian, which is what Stata and R ``margins`` report.

        Args:
            conf_level: Confidence level (default: package option)
            by: Extra columns of the data grid to average within

        Returns:
            DataFrame with the key columns and estimate, std.error,
            statistic, p.value, conf.low, conf.high
        """
        conf_level = conf_level if conf_level is not None else get_options().conf_level
        by = [by] if isinstance(by, str) else list(by or [])
        unknown = [b for b in by if b not in self.frame.columns]
        if unknown:
            raise ValueError(f"Columns not found in the results: {unknown}")
        keys = self._keys() + [b for b in by if b not in GROUP_KEYS]

        out = (
            self.frame.groupby(keys, sort=False, dropna=False)[self.estimate_column]
            .mean()
            .reset_index()
            .rename(columns={self.estimate_column: "estimate"})
        )
        out["std.error"] = self._averaged_se(out, keys)

        statistic, pvalue = compute_z_and_pvalue(out["estimate"], out["std.error"])
        low, high = confidence_interval(out["estimate"], out["std.error"], conf_level)
        out["statistic"] = statistic
        out["p.value"] = pvalue
        out["conf.low"] = low
        out["conf.high"] = high
        return out.loc[:, keys + TIDY_COLUMNS]

    def _averaged_se(self, out: pd.DataFrame, keys: List[str]) -> np.ndarray:
        if self.J is None or self.vcov is None:
            return np.full(len(out), np.nan)

        if keys == self._keys():
            se = self.se_at_mean_gradient.loc[:, keys + ["std.error"]]
            return out.loc[:, keys].merge(se, on=keys, how="left")["std.error"].to_numpy()

        J_mean = mean_jacobian(self.frame, self.J, self.coef_names, keys=keys)
        return delta_method_se(J_mean.loc[:, self.coef_names].to_numpy(dtype=np.float64), self.vcov)

    # -------------------------------------------------------------------------
    # Presentation
    # -------------------------------------------------------------------------

    def _label_columns(self, tidy: pd.DataFrame) -> List[str]:
        labels = [c for c in tidy.columns if c not in TIDY_COLUMNS]
        if "type" in labels and len(labels) > 1 and tidy["type"].nunique() == 1:
            labels.remove("type")
        return labels

    def summary(self, conf_level: Optional[float] = None) -> str:
        """Generate a statsmodels-style summary of the averaged estimates."""
        conf_level = conf_level if conf_level is not None else get_options().conf_level
        tidy = self.tidy(conf_level)
        n_obs = len(self.newdata) if self.newdata is not None else None

        parts = [
            format_summary_header(
                title=self.title,
                model_type=self.model_type,
                prediction_type=", ".join(self.type),
                n_obs=n_obs,
                conf_level=conf_level,
            ),
            format_estimate_table(tidy, self._label_columns(tidy), conf_level),
            "=" * 78,
        ]
        if self.vcov is None:
            parts.append("Standard errors were not computed.")
        return "\n".join(parts)

    def plot(self, conf_level: Optional[float] = None, ax=None, **kwargs):
        """
        Point-range plot of the averaged estimates.

        Returns:
            matplotlib Axes object
        """
        tidy = self.tidy(conf_level)
        return plot_estimates(tidy, self._label_columns(tidy), ax=ax, title=self.title, **kwargs)

    # -------------------------------------------------------------------------
    # DataFrame access
    # -------------------------------------------------------------------------

    def to_frame(self) -> pd.DataFrame:
        """Per-row estimates as a DataFrame (a copy)."""
        return self.frame.copy()

    def head(self, n: int = 5) -> pd.DataFrame:
        return self.frame.head(n)

    @property
    def columns(self) -> pd.Index:
        return self.frame.columns

    def __len__(self) -> int:
        return len(self.frame)

    def __getitem__(self, key):
        return self.frame[key]

    def __repr__(self) -> str:
        return format_short_repr(self.__class__.__name__, len(self.frame), list(self.frame.columns))


@dataclass(eq=False, repr=False)
class MarginalEffects(BaseResults):
    """Marginal effects (``dydx``) per row of the data grid."""

    estimate_column = "dydx"
    title = "Average Marginal Effects"


@dataclass(eq=False, repr=False)
class Predictions(BaseResults):
    """Adjusted predictions per row of the data grid."""

    estimate_column = "predicted"
    title = "Average Adjusted Predictions"


@dataclass(eq=False, repr=False)
class Comparisons(BaseResults):
    """Contrasts per row of the data grid."""

    estimate_column = "comparison"
    title = "Average Contrasts"
