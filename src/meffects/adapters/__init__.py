"""Model adapters: one interface over heterogeneous fitted-model objects."""

from typing import Any, Callable, List, Tuple

from .base import BaseAdapter, ModelAdapter
from .sklearn_models import SklearnLinearAdapter, is_sklearn_linear
from .statsmodels_models import (
    MNLogitAdapter,
    StatsmodelsAdapter,
    is_statsmodels_results,
    statsmodels_adapter,
)
from .torch_models import CustomModel, model_from_fn

# (name, predicate, factory) checked in order
ADAPTER_REGISTRY: List[Tuple[str, Callable[[Any], bool], Callable[[Any], BaseAdapter]]] = [
    ("statsmodels", is_statsmodels_results, statsmodels_adapter),
    ("sklearn", is_sklearn_linear, SklearnLinearAdapter),
]


def register_adapter(
    name: str,
    predicate: Callable[[Any], bool],
    factory: Callable[[Any], BaseAdapter],
) -> None:
    """
    Register an adapter for a new model class.

    Args:
        name: Label used in error messages
        predicate: model -> True when the factory handles it
        factory: model -> adapter instance
    """
    ADAPTER_REGISTRY.insert(0, (name, predicate, factory))


def get_adapter(model: Any) -> BaseAdapter:
    """
    Get the adapter for a fitted model.

    Adapters (including CustomModel) are returned unchanged.

    Raises:
        TypeError: If no registered adapter supports the model class.
    """
    if isinstance(model, BaseAdapter):
        return model
    for _, predicate, factory in ADAPTER_REGISTRY:
        if predicate(model):
            return factory(model)
    raise TypeError(
        f"Models of class {type(model).__name__} are not supported. "
        f"Supported: {[name for name, _, _ in ADAPTER_REGISTRY]} models, "
        "or wrap a prediction function with model_from_fn()."
    )


__all__ = [
    "ModelAdapter",
    "BaseAdapter",
    "StatsmodelsAdapter",
    "MNLogitAdapter",
    "SklearnLinearAdapter",
    "CustomModel",
    "model_from_fn",
    "get_adapter",
    "register_adapter",
    "ADAPTER_REGISTRY",
]
