"""Contrasts: differences in predictions between two values of a variable."""

from typing import Any, Optional

from ._typing import TypeLike, VariablesLike, VcovLike
from .config import get_options
from .engine.assembler import assemble
from .results import Comparisons, finalize_frame
from .sanity import (
    add_rowid,
    categorical_terms,
    sanitize_variables,
    sanitize_vcov,
    sanity_model,
    sanity_newdata,
    sanity_type,
)
from .targets import Contrast

COLUMNS = ["rowid", "type", "group", "term", "contrast", "comparison", "std.error"]


def comparisons(
    model: Any,
    newdata: Any = None,
    variables: VariablesLike = None,
    vcov: VcovLike = True,
    type: Optional[TypeLike] = None,
    contrast_numeric: float = 1,
    verbose: Optional[bool] = None,
) -> Comparisons:
    """
    Compute contrasts for a fitted model.

    Numeric variables are moved from x to x + contrast_numeric; categorical
    variables are moved from the reference level to every other level.

    Args:
        model: Fitted model
        newdata: DataFrame or datagrid() output (default: estimation data)
        variables: Variable name(s) (default: all regressors)
        vcov: True, False/None, 'HC0'..'HC3', or a (k, k) matrix
        type: Prediction type(s)
        contrast_numeric: Increment for numeric variables
        verbose: Show a progress bar

    Returns:
        Comparisons with one row per (rowid, type, group, term, contrast)
    """
    options = get_options()
    verbose = options.verbose if verbose is None else verbose

    adapter = sanity_model(model)
    types = sanity_type(adapter, type)
    newdata = add_rowid(sanity_newdata(adapter, newdata))
    variables = sanitize_variables(adapter, newdata, variables)
    V = sanitize_vcov(adapter, vcov)
    categorical = categorical_terms(adapter, newdata, variables)

    targets = [
        Contrast(v, type=t, categorical=v in categorical, step=contrast_numeric).prepare(adapter, newdata)
        for t in types
        for v in variables
    ]
    assembled = assemble(adapter, targets, V, step=options.jacobian_step, verbose=verbose)
    frame = finalize_frame(
        assembled.frame,
        newdata,
        COLUMNS,
        keep_contrast=True,
        return_data=options.return_data,
    )

    return Comparisons(
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
