"""
Result assembler.

Evaluates a list of targets on a data grid and stacks:
- the per-row estimates with delta-method standard errors
- the Jacobian J (one row per estimate)
- J_mean: the Jacobian averaged within (type, group, term, contrast),
  which gives standard errors for averaged quantities (AME, average
  predictions, average contrasts)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np
import pandas as pd
from tqdm import tqdm

from .._typing import Float64Array
from ..logger import meffects_logger
from .variance import delta_method_se

GROUP_KEYS = ("type", "group", "term", "contrast")


@dataclass
class Assembled:
    """Stacked output of a list of targets."""

    frame: pd.DataFrame
    J: Optional[Float64Array] = None
    J_mean: Optional[pd.DataFrame] = None
    se_at_mean_gradient: Optional[pd.DataFrame] = None


def group_keys(frame: pd.DataFrame) -> List[str]:
    return [k for k in GROUP_KEYS if k in frame.columns]


def mean_jacobian(
    index: pd.DataFrame,
    J: Float64Array,
    coef_names: Sequence[str],
    keys: Optional[Sequence[str]] = None,
) -> pd.DataFrame:
    """
    Average the rows of J within (type, group, term, contrast), or within
    the given key columns.

    Returns:
        DataFrame with the key columns followed by one column per coefficient
    """
    keys = group_keys(index) if keys is None else list(keys)
    codes = index.groupby(keys, sort=False, dropna=False).ngroup().to_numpy()
    n_groups = codes.max() + 1
    sums = np.zeros((n_groups, J.shape[1]))
    np.add.at(sums, codes, J)
    counts = np.bincount(codes, minlength=n_groups)[:, None]

    first = index.loc[:, keys].drop_duplicates().reset_index(drop=True)
    coef_part = pd.DataFrame(sums / counts, columns=list(coef_names))
    return pd.concat([first, coef_part], axis=1)


def assemble(
    adapter,
    targets: Sequence,
    vcov: Optional[Float64Array],
    step: float = 1e-5,
    verbose: bool = False,
) -> Assembled:
    """
    Evaluate targets and propagate uncertainty.

    Args:
        adapter: Model adapter
        targets: Prepared targets (see meffects.targets)
        vcov: (k, k) covariance matrix, or None to skip standard errors
        step: Relative step for finite-difference Jacobians
        verbose: Show a progress bar

    Returns:
        Assembled results
    """
    frames: List[pd.DataFrame] = []
    J_list: List[Float64Array] = []
    J_mean_list: List[pd.DataFrame] = []

    iterator = targets
    if verbose:
        iterator = tqdm(targets, desc="Computing", ncols=80)

    for target in iterator:
        label = getattr(target, "variable", None) or target.estimate_name
        meffects_logger.debug("Computing %s for %s (type=%s)", target.estimate_name, label, target.type)

        frame = target.index().copy()
        frame[target.estimate_name] = target.estimate(adapter)

        if vcov is not None:
            J = target.jacobian(adapter, step=step)
            frame["std.error"] = delta_method_se(J, vcov)
            J_list.append(J)
            J_mean_list.append(mean_jacobian(frame, J, adapter.coef_names))

        frames.append(frame)

    out = pd.concat(frames, ignore_index=True)
    if vcov is None:
        meffects_logger.info("Computed %d estimates without standard errors", len(out))
        return Assembled(frame=out)

    J = np.vstack(J_list)
    J_mean = pd.concat(J_mean_list, ignore_index=True)
    if "contrast" in J_mean.columns:
        J_mean["contrast"] = J_mean["contrast"].fillna("")

    keys = group_keys(J_mean)
    J_mean_mat = J_mean.iloc[:, len(keys):].to_numpy(dtype=np.float64)
    se_at_mean = J_mean.loc[:, keys].copy()
    se_at_mean["std.error"] = delta_method_se(J_mean_mat, vcov)

    meffects_logger.info("Computed %d estimates with delta-method standard errors", len(out))
    return Assembled(frame=out, J=J, J_mean=J_mean, se_at_mean_gradient=se_at_mean)
