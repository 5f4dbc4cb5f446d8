"""
Marginal effects.

For each row of the data grid, each prediction type and each variable:

- numeric variables: the slope ∂f/∂x, by centered finite differences (or
  torch autodiff for custom models)
- categorical variables: the contrast with the reference level, one row
  per non-reference level

with delta-method standard errors. ``tidy()`` on the result averages the
slopes (average marginal effects) with standard errors at the averaged
Jacobian.
"""

from typing import Any, Optional

from ._typing import TypeLike, VariablesLike, VcovLike
from .config import get_options
from .engine.assembler import assemble
from .logger import meffects_logger
from .results import MarginalEffects, finalize_frame
from .sanity import (
    add_rowid,
    categorical_terms,
    sanitize_variables,
    sanitize_vcov,
    sanity_model,
    sanity_newdata,
    sanity_type,
)
from .targets import Contrast, Slope

COLUMNS = ["rowid", "type", "group", "term", "contrast", "dydx", "std.error", "predicted"]


def marginaleffects(
    model: Any,
    newdata: Any = None,
    variables: VariablesLike = None,
    vcov: VcovLike = True,
    type: Optional[TypeLike] = None,
    eps: Optional[float] = None,
    verbose: Optional[bool] = None,
) -> MarginalEffects:
    """
    Compute marginal effects for a fitted model.

    Args:
        model: Fitted model (statsmodels results, scikit-learn linear
            estimator, or a CustomModel)
        newdata: DataFrame or datagrid() output (default: estimation data)
        variables: Variable name(s) (default: all regressors)
        vcov: True (model covariance), False/None (no standard errors),
            'HC0'..'HC3', or a (k, k) matrix / DataFrame
        type: Prediction type(s) (default: the first type the model
            supports, usually 'response')
        eps: Absolute step for numeric derivatives (default: a fraction
            of each variable's range)
        verbose: Show a progress bar (default: package option)

    Returns:
        MarginalEffects with one row per (rowid, type, group, term, contrast)

    Raises:
        TypeError: If the model class is not supported
        ValueError: On invalid type, variables, newdata or vcov

    Example:
        >>> model = smf.logit("y ~ x1 + x2", data=df).fit()
        >>> mfx = marginaleffects(model)
        >>> mfx.tidy()
    """
    options = get_options()
    verbose = options.verbose if verbose is None else verbose

    adapter = sanity_model(model)
    types = sanity_type(adapter, type)
    newdata = add_rowid(sanity_newdata(adapter, newdata))
    variables = sanitize_variables(adapter, newdata, variables)
    V = sanitize_vcov(adapter, vcov)
    categorical = categorical_terms(adapter, newdata, variables)

    meffects_logger.debug(
        "marginaleffects: model=%s, types=%s, variables=%s", adapter.model_type, types, variables
    )

    targets = []
    for t in types:
        for v in variables:
            if v in categorical:
                target = Contrast(v, type=t, categorical=True)
                target.estimate_name = "dydx"
            else:
                target = Slope(v, type=t, eps=eps, eps_scale=options.eps_scale)
            targets.append(target.prepare(adapter, newdata))

    assembled = assemble(adapter, targets, V, step=options.jacobian_step, verbose=verbose)
    frame = finalize_frame(
        assembled.frame,
        newdata,
        COLUMNS,
        keep_contrast=bool(categorical),
        return_data=options.return_data,
    )

    return MarginalEffects(
        frame=frame,
        model=model,
        type=types,
        model_type=adapter.model_type,
        coef_names=list(adapter.coef_names),
        variables=variables,
        newdata=newdata,
        vcov=V,
        J=assembled.J,
        J_mean=assembled.J_mean,
        se_at_mean_gradient=assembled.se_at_mean_gradient,
    )


meffects = marginaleffects
