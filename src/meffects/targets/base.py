"""
Base classes for target quantities.

A Target defines what quantity is estimated on a data grid:
- index(): one row of labels (rowid, type, group, term, contrast) per value
- values(adapter): the estimates, recomputed for any coefficient vector
- jacobian(adapter): ∂values/∂β, used by the delta method

values() only calls adapter.predict(), so the Jacobian can always be obtained
by re-evaluating values() on adapters with perturbed coefficients. Targets
can provide an exact torch version through tensor_fn() (returns None to use
finite differences).
"""

from __future__ import annotations

from typing import Callable, List, Optional, Sequence

import numpy as np
import pandas as pd
from torch import Tensor

from .._typing import Float64Array
from ..adapters.base import BaseAdapter
from ..autodiff import compute_coef_jacobian, compute_estimates
from ..engine.finite import jacobian_finite

MAIN_GROUP = "main_marginaleffect"


def as_matrix(pred: np.ndarray) -> np.ndarray:
    """(n,) -> (n, 1); (n, G) unchanged."""
    pred = np.asarray(pred, dtype=np.float64)
    return pred[:, None] if pred.ndim == 1 else pred


def group_labels(adapter: BaseAdapter, n_groups: int) -> List[str]:
    """Outcome labels for the group column."""
    if adapter.group_names is not None and len(adapter.group_names) == n_groups:
        return list(adapter.group_names)
    if n_groups == 1:
        return [MAIN_GROUP]
    return [str(g) for g in range(n_groups)]


def flatten(pred: np.ndarray) -> np.ndarray:
    """(n, G) -> (G * n,), group-major."""
    return as_matrix(pred).T.reshape(-1)


class BaseTarget:
    """
    Base class for targets.

    Subclasses implement _prepare() (build counterfactual frames) and
    values(); tensor_fn() is optional.
    """

    estimate_name: str = "estimate"

    def __init__(self, type: str = "response"):
        self.type = type
        self._index: Optional[pd.DataFrame] = None

    def prepare(self, adapter: BaseAdapter, newdata: pd.DataFrame) -> "BaseTarget":
        """Bind the target to a data grid. Returns self."""
        self.newdata = newdata
        self.rowid = newdata["rowid"].to_numpy()
        self._prepare(adapter, newdata)
        return self

    def _prepare(self, adapter: BaseAdapter, newdata: pd.DataFrame) -> None:
        """Must be implemented by subclasses."""
        raise NotImplementedError("Subclasses must implement _prepare()")

    def index(self) -> pd.DataFrame:
        """Row labels aligned with values()."""
        if self._index is None:
            raise RuntimeError("Call prepare() before index()")
        return self._index

    def values(self, adapter: BaseAdapter) -> Float64Array:
        """Must be implemented by subclasses."""
        raise NotImplementedError("Subclasses must implement values()")

    def tensor_fn(self, adapter: BaseAdapter) -> Optional[Callable[[Tensor], Tensor]]:
        """Default: no torch version (use finite differences)."""
        return None

    def estimate(self, adapter: BaseAdapter) -> Float64Array:
        """Estimates at the adapter's coefficients (exact when autodiff is available)."""
        fn = self.tensor_fn(adapter) if adapter.supports_autodiff else None
        if fn is not None:
            return compute_estimates(fn, adapter.get_coef())
        return self.values(adapter)

    def jacobian(self, adapter: BaseAdapter, step: float = 1e-5) -> Float64Array:
        """
        Jacobian of the estimates with respect to the coefficients.

        Returns:
            (m, k) Jacobian
        """
        fn = self.tensor_fn(adapter) if adapter.supports_autodiff else None
        if fn is not None:
            return compute_coef_jacobian(fn, adapter.get_coef())
        return jacobian_finite(
            lambda coefs: self.values(adapter.set_coef(coefs)),
            adapter.get_coef(),
            step=step,
        )


def build_index(
    rowid: np.ndarray,
    groups: Sequence[str],
    type: str,
    term: Optional[str] = None,
    contrasts: Optional[Sequence[str]] = None,
    predicted: Optional[np.ndarray] = None,
) -> pd.DataFrame:
    """
    Labels for L contrasts x G groups x n rows (contrast-major, then group).

    Args:
        rowid: (n,) row identifiers
        groups: G group labels
        type: Prediction type
        term: Variable name (None for predictions)
        contrasts: L contrast labels (None: a single unlabeled block)
        predicted: (n, G) predictions at the grid, repeated for each contrast
    """
    n, n_groups = len(rowid), len(groups)
    n_blocks = 1 if contrasts is None else len(contrasts)
    index = {
        "rowid": np.tile(rowid, n_groups * n_blocks),
        "type": type,
        "group": np.tile(np.repeat(np.asarray(groups, dtype=object), n), n_blocks),
    }
    if term is not None:
        index["term"] = term
        index["contrast"] = np.repeat(
            np.asarray(contrasts if contrasts is not None else [""], dtype=object), n_groups * n
        )
    frame = pd.DataFrame(index)
    if predicted is not None:
        frame["predicted"] = np.tile(flatten(predicted), n_blocks)
    return frame
