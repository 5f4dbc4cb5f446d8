"""
meffects: Marginal effects, adjusted predictions and contrasts

Per-observation marginal effects, adjusted predictions and contrasts with
delta-method standard errors, for statsmodels, scikit-learn and
user-defined torch models.

Usage:
    import statsmodels.formula.api as smf
    from meffects import marginaleffects, predictions, comparisons, datagrid

    model = smf.logit("am ~ hp + wt + C(cyl)", data=df).fit()

    # Marginal effects for every row, then averaged (AME)
    mfx = marginaleffects(model)
    print(mfx.summary())

    # Marginal effects at representative values
    marginaleffects(model, newdata=datagrid(hp=[100, 200]))

    # Counterfactual predictions and contrasts
    predictions(model, variables={"wt": [2, 3]}).tidy(by="wt")
    comparisons(model, variables="hp", contrast_numeric=10).tidy()

    # Custom model with exact derivatives
    def predict_fn(coefs, columns):
        return torch.sigmoid(coefs[0] + coefs[1] * columns["x"])

    model = model_from_fn(predict_fn, coefs=[0.1, 0.5], data=df, vcov=V)
    marginaleffects(model)
"""

from .adapters import (
    BaseAdapter,
    CustomModel,
    ModelAdapter,
    get_adapter,
    model_from_fn,
    register_adapter,
)
from .comparisons import comparisons
from .config import get_options, option_context, set_options
from .datagrid import GridSpec, counterfactual, datagrid, typical
from .logger import meffects_logger
from .marginaleffects import marginaleffects, meffects
from .predictions import predictions
from .results import Comparisons, MarginalEffects, Predictions
from .utils.plotting import plot_cme

__version__ = "0.1.0"

__all__ = [
    # Main API
    "marginaleffects",
    "meffects",
    "predictions",
    "comparisons",
    # Data grids
    "datagrid",
    "typical",
    "counterfactual",
    "GridSpec",
    # Results
    "MarginalEffects",
    "Predictions",
    "Comparisons",
    "plot_cme",
    # Models
    "ModelAdapter",
    "BaseAdapter",
    "CustomModel",
    "model_from_fn",
    "get_adapter",
    "register_adapter",
    # Options
    "get_options",
    "set_options",
    "option_context",
    "meffects_logger",
]
