"""Adjusted predictions with delta-method standard errors."""

from collections.abc import Mapping
from typing import Any, Optional

from ._typing import TypeLike, VcovLike
from .config import get_options
from .datagrid import datagrid
from .engine.assembler import assemble
from .results import Predictions, finalize_frame
from .sanity import add_rowid, sanitize_vcov, sanity_model, sanity_newdata, sanity_type
from .targets import Prediction

COLUMNS = ["rowid", "type", "group", "predicted", "std.error"]


def predictions(
    model: Any,
    newdata: Any = None,
    variables: Optional[Mapping] = None,
    vcov: VcovLike = True,
    type: Optional[TypeLike] = None,
    verbose: Optional[bool] = None,
) -> Predictions:
    """
    Compute adjusted predictions for a fitted model.

    Args:
        model: Fitted model
        newdata: DataFrame or datagrid() output (default: estimation data)
        variables: Mapping of variable -> value(s). The data grid is
            replicated once per combination (counterfactual grid).
        vcov: True, False/None, 'HC0'..'HC3', or a (k, k) matrix
        type: Prediction type(s)
        verbose: Show a progress bar

    Returns:
        Predictions with one row per (rowid, type, group)

    Example:
        >>> p = predictions(model, variables={"treat": [0, 1]})
        >>> p.tidy(by="treat")
    """
    options = get_options()
    verbose = options.verbose if verbose is None else verbose

    adapter = sanity_model(model)
    types = sanity_type(adapter, type)
    newdata = sanity_newdata(adapter, newdata)

    if variables is not None:
        if not isinstance(variables, Mapping):
            raise TypeError(
                "`variables` must be a mapping of variable names to values, "
                f"got {variables.__class__.__name__}"
            )
        newdata = datagrid(newdata=newdata, grid_type="counterfactual", **variables)
    newdata = add_rowid(newdata)
    V = sanitize_vcov(adapter, vcov)

    targets = [Prediction(type=t).prepare(adapter, newdata) for t in types]
    assembled = assemble(adapter, targets, V, step=options.jacobian_step, verbose=verbose)
    frame = finalize_frame(
        assembled.frame,
        newdata,
        COLUMNS,
        keep_contrast=False,
        return_data=options.return_data,
    )

    return Predictions(
        frame=frame,
        model=model,
        type=types,
        model_type=adapter.model_type,
        coef_names=list(adapter.coef_names),
        variables=list(variables) if variables is not None else [],
        newdata=newdata,
        vcov=V,
        J=assembled.J,
        J_mean=assembled.J_mean,
        se_at_mean_gradient=assembled.se_at_mean_gradient,
    )
