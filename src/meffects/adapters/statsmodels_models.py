"""Adapters for statsmodels results objects.

Supports results from both the array API (``sm.OLS(y, X).fit()``) and the
formula API (``smf.logit("y ~ x1 * x2", data=df).fit()``):

- linear regression (OLS, WLS, GLS): identity link
- GLM: inverse link of the family
- binary models (Logit, Probit): model cdf
- count models (Poisson, NegativeBinomial, ...): exponential mean
- MNLogit: one probability per outcome level (grouped outcome)

Predictions are computed from the design matrix and the adapter's own
coefficient vector, so the wrapped results object is never modified.
"""

from __future__ import annotations

import ast
import warnings
from typing import Any, List, Optional

import numpy as np
import pandas as pd
from patsy import DesignInfo, build_design_matrices
from statsmodels.base.model import Model
from statsmodels.discrete.discrete_model import BinaryModel, CountModel, MultinomialModel
from statsmodels.genmod.generalized_linear_model import GLM
from statsmodels.regression.linear_model import RegressionModel

from .._typing import Float64Array
from .base import BaseAdapter

ROBUST_TYPES = ("HC0", "HC1", "HC2", "HC3")
CONSTANT_NAMES = ("const", "Intercept")
OFFSET_COLUMN = "offset"
EXPOSURE_COLUMN = "exposure"


def is_statsmodels_results(model: Any) -> bool:
    """True for fitted statsmodels results (wrapped or not)."""
    return hasattr(model, "params") and isinstance(getattr(model, "model", None), Model)


def _factor_names(code: str) -> tuple[set, set]:
    """
    Variable names referenced by a patsy factor.

    Returns:
        (all names, names wrapped in C(...))
    """
    tree = ast.parse(code, mode="eval")
    names = {node.id for node in ast.walk(tree) if isinstance(node, ast.Name)}
    categorical = set()
    for node in ast.walk(tree):
        if (
            isinstance(node, ast.Call)
            and isinstance(node.func, ast.Name)
            and node.func.id == "C"
            and node.args
        ):
            categorical |= {n.id for n in ast.walk(node.args[0]) if isinstance(n, ast.Name)}
    return names, categorical


def formula_spec(sm_model: Model) -> Any:
    """
    Formula specification of a statsmodels model, or None for the array API.

    statsmodels >= 0.15 stores it as ``data.model_spec`` (a patsy DesignInfo
    or a formulaic ModelSpec), older releases as ``data.design_info``.

    Raises:
        TypeError: If the model was fitted from a formula but no
            specification can be found.
    """
    data = sm_model.data
    spec = getattr(data, "model_spec", None)
    if spec is None:
        spec = getattr(data, "design_info", None)
    if spec is None and getattr(sm_model, "formula", None) is not None:
        raise TypeError(
            f"Unable to find the formula specification of a {type(sm_model).__name__} model "
            f"fitted with formula '{sm_model.formula}'."
        )
    return spec


def _factor_codes(spec: Any) -> List[str]:
    """Source code of every factor of a patsy DesignInfo or formulaic ModelSpec."""
    codes = []
    for term in spec.terms:
        for factor in term.factors:
            code = getattr(factor, "code", None)
            if code is None:
                code = getattr(factor, "expr", str(factor))
            codes.append(code)
    return codes


class StatsmodelsAdapter(BaseAdapter):
    """
    Adapter for single-equation statsmodels models.

    Model: E[Y|X] = g⁻¹(X β)

    Extra ancillary parameters (e.g. alpha in NegativeBinomial) are kept in
    the coefficient vector so that it lines up with cov_params(), but they
    do not enter the mean, so their Jacobian column is zero.

    Offsets and exposures enter the linear predictor through the ``offset``
    and ``exposure`` columns of the data (exposure on its original scale).
    get_data() fills them with the values the model was fitted with.
    """

    prediction_types = ("response", "link")

    def __init__(self, model: Any):
        self.results = model
        self.sm_model = model.model
        params = model.params
        names = list(params.index) if isinstance(params, pd.Series) else list(self.sm_model.exog_names)
        super().__init__(model, np.asarray(params), names)
        self._init_design()

    def _init_design(self) -> None:
        self._k_exog = self.sm_model.exog.shape[1]
        self._exog_names = list(self.sm_model.exog_names)[: self._k_exog]
        self._design_info = formula_spec(self.sm_model)

        # statsmodels stores log(exposure)
        self._offsets = {}
        for column, attr in ((OFFSET_COLUMN, "offset"), (EXPOSURE_COLUMN, "exposure")):
            values = getattr(self.sm_model, attr, None)
            if values is not None:
                self._offsets[column] = np.asarray(values, dtype=np.float64)
        # shared by set_coef() copies
        self._warned = {"offset": False}

    # -------------------------------------------------------------------------
    # Coefficients and covariance
    # -------------------------------------------------------------------------

    def get_vcov(self) -> Optional[Float64Array]:
        return np.asarray(self.results.cov_params(), dtype=np.float64)

    def get_robust_vcov(self, kind: str) -> Float64Array:
        if kind not in ROBUST_TYPES:
            raise ValueError(f"Unknown robust covariance '{kind}'. Available: {list(ROBUST_TYPES)}")

        if isinstance(self.sm_model, RegressionModel):
            return np.asarray(getattr(self.results, f"cov_{kind}"), dtype=np.float64)

        refit = self.sm_model.fit(start_params=np.asarray(self.results.params), cov_type=kind, disp=0)
        return np.asarray(refit.cov_params(), dtype=np.float64)

    # -------------------------------------------------------------------------
    # Data and variables
    # -------------------------------------------------------------------------

    @property
    def response_name(self) -> Optional[str]:
        return self.sm_model.endog_names

    def _estimation_frame(self) -> pd.DataFrame:
        data = self.sm_model.data
        frame = getattr(data, "frame", None)
        if isinstance(frame, pd.DataFrame):
            return frame.copy()

        orig_exog = getattr(data, "orig_exog", None)
        if isinstance(orig_exog, pd.DataFrame):
            return orig_exog.copy()

        return pd.DataFrame(self.sm_model.exog, columns=self._exog_names)

    def get_data(self) -> Optional[pd.DataFrame]:
        frame = self._estimation_frame()
        if not self._offsets:
            return frame

        nobs = self.sm_model.exog.shape[0]
        row_labels = getattr(self.sm_model.data, "row_labels", None)
        for column, values in self._offsets.items():
            if column == EXPOSURE_COLUMN:
                values = np.exp(values)
            if len(frame) == nobs:
                frame[column] = values
            elif row_labels is not None:
                # rows dropped for missing values keep NaN
                frame[column] = pd.Series(values, index=row_labels)
            else:
                raise ValueError(
                    f"Unable to align the model {column} ({nobs} rows) with its data ({len(frame)} rows)."
                )
        return frame

    def _formula_variables(self) -> tuple[List[str], List[str]]:
        columns = set(self._estimation_frame().columns)
        found: List[str] = []
        categorical: List[str] = []
        for code in _factor_codes(self._design_info):
            names, cat = _factor_names(code)
            for name in sorted(names & columns):
                if name not in found:
                    found.append(name)
            for name in sorted(cat & columns):
                if name not in categorical:
                    categorical.append(name)
        return found, categorical

    def find_variables(self) -> List[str]:
        if self._design_info is not None:
            variables, _ = self._formula_variables()
        else:
            variables = [v for v in self._exog_names if v not in CONSTANT_NAMES]
        return [v for v in variables if v != self.response_name]

    def categorical_variables(self) -> List[str]:
        if self._design_info is None:
            return []
        return self._formula_variables()[1]

    # -------------------------------------------------------------------------
    # Predictions
    # -------------------------------------------------------------------------

    def design_matrix(self, newdata: pd.DataFrame) -> Float64Array:
        """Design matrix for ``newdata`` (k_exog columns)."""
        if self._design_info is not None:
            if isinstance(self._design_info, DesignInfo):
                (exog,) = build_design_matrices([self._design_info], newdata, return_type="dataframe")
            else:
                exog = self._design_info.get_model_matrix(newdata)
            if exog.shape[0] != newdata.shape[0]:
                raise ValueError(
                    "The design matrix lost rows; newdata contains missing values in model variables."
                )
            return np.asarray(exog, dtype=np.float64)

        frame = newdata.copy()
        for name in self._exog_names:
            if name not in frame.columns and name in CONSTANT_NAMES:
                frame[name] = 1.0
        missing = [name for name in self._exog_names if name not in frame.columns]
        if missing:
            raise ValueError(f"newdata is missing model columns: {missing}")
        return frame[self._exog_names].to_numpy(dtype=np.float64)

    def offset(self, newdata: pd.DataFrame) -> Float64Array:
        """
        Offset plus log(exposure) for each row of ``newdata``.

        Read from the ``offset``/``exposure`` columns when the model was
        fitted with them; missing columns count as zero (with a warning).
        """
        total = np.zeros(newdata.shape[0])
        missing = []
        for column in self._offsets:
            if column not in newdata.columns:
                missing.append(column)
                continue
            values = newdata[column].to_numpy(dtype=np.float64)
            total += np.log(values) if column == EXPOSURE_COLUMN else values
        if missing and not self._warned["offset"]:
            self._warned["offset"] = True
            warnings.warn(
                f"The model was fitted with {' and '.join(missing)} but `newdata` has no "
                f"{' or '.join(repr(c) for c in missing)} column; predictions treat it as zero.",
                UserWarning,
            )
        return total

    def linear_predictor(self, newdata: pd.DataFrame) -> Float64Array:
        eta = self.design_matrix(newdata) @ self._coefs[: self._k_exog]
        if self._offsets:
            eta = eta + self.offset(newdata)
        return eta

    def _predict(self, newdata: pd.DataFrame, type: str) -> Float64Array:
        eta = self.linear_predictor(newdata)
        if type == "link":
            return eta

        if isinstance(self.sm_model, GLM):
            return self.sm_model.family.link.inverse(eta)
        if isinstance(self.sm_model, BinaryModel):
            return self.sm_model.cdf(eta)
        if isinstance(self.sm_model, CountModel):
            return np.exp(eta)
        return eta


class MNLogitAdapter(StatsmodelsAdapter):
    """
    Adapter for multinomial logit.

    P(Y=j|X) = exp(X β_j) / Σ_m exp(X β_m), with β_0 = 0 for the base level.

    Coefficients are flattened equation by equation (Fortran order), which
    is the order used by cov_params().
    """

    prediction_types = ("probs", "link")

    def __init__(self, model: Any):
        self.results = model
        self.sm_model = model.model
        params = model.params
        matrix = np.asarray(params, dtype=np.float64)
        if isinstance(params, pd.DataFrame):
            rows, cols = list(params.index), [str(c) for c in params.columns]
        else:
            rows = list(self.sm_model.exog_names)
            cols = [str(j + 1) for j in range(matrix.shape[1])]
        names = [f"{col}:{row}" for col in cols for row in rows]
        BaseAdapter.__init__(self, model, matrix.ravel(order="F"), names)

        self._shape = matrix.shape
        self._init_design()

        ynames = getattr(self.sm_model, "_ynames_map", None)
        if ynames:
            self.group_names = [str(ynames[k]) for k in sorted(ynames)]
        else:
            self.group_names = [str(j) for j in range(matrix.shape[1] + 1)]

    def get_robust_vcov(self, kind: str) -> Float64Array:
        if kind not in ROBUST_TYPES:
            raise ValueError(f"Unknown robust covariance '{kind}'. Available: {list(ROBUST_TYPES)}")
        refit = self.sm_model.fit(
            start_params=np.asarray(self.results.params).ravel(order="F"), cov_type=kind, disp=0
        )
        return np.asarray(refit.cov_params(), dtype=np.float64)

    def _predict(self, newdata: pd.DataFrame, type: str) -> Float64Array:
        beta = self._coefs.reshape(self._shape, order="F")
        eta = self.design_matrix(newdata) @ beta  # (n, J-1)
        if type == "link":
            return np.column_stack([np.zeros(eta.shape[0]), eta])
        return self.sm_model.cdf(eta)


def statsmodels_adapter(model: Any) -> StatsmodelsAdapter:
    """Build the adapter matching the statsmodels model class."""
    sm_model = model.model
    if isinstance(sm_model, MultinomialModel):
        return MNLogitAdapter(model)
    if isinstance(sm_model, (RegressionModel, GLM, BinaryModel, CountModel)):
        return StatsmodelsAdapter(model)
    raise TypeError(
        f"Models of class {type(sm_model).__name__} are not supported. "
        "Supported statsmodels models: OLS, WLS, GLS, GLM, Logit, Probit, "
        "Poisson, NegativeBinomial, MNLogit."
    )
