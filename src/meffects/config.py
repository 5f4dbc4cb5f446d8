"""Package-wide options.

Options are stored in a single :class:`Options` dataclass instance. Read them
with :func:`get_options`, change them with :func:`set_options`, or change them
temporarily with :func:`option_context`::

    >>> from meffects.config import option_context
    >>> with option_context(return_data=False):
    ...     mfx = marginaleffects(model)
"""

from contextlib import contextmanager
from dataclasses import asdict, dataclass, fields, replace
from typing import Iterator


@dataclass
class Options:
    """meffects configuration."""
    return_data: bool = True      # Merge newdata columns into per-row results
    conf_level: float = 0.95      # Default level for tidy()/summary()/plot()
    jacobian_step: float = 1e-5   # Relative step for coefficient differences
    eps_scale: float = 1e-4       # Slope step as a fraction of the variable range
    verbose: bool = False         # Progress bar over terms


_options = Options()


def _validate(values: dict) -> None:
    valid = {f.name for f in fields(Options)}
    unknown = sorted(set(values) - valid)
    if unknown:
        raise ValueError(f"Unknown option(s): {unknown}. Available: {sorted(valid)}")
    if "conf_level" in values and not 0 < values["conf_level"] < 1:
        raise ValueError(f"conf_level must be in (0, 1), got {values['conf_level']}")
    for key in ("jacobian_step", "eps_scale"):
        if key in values and not values[key] > 0:
            raise ValueError(f"{key} must be positive, got {values[key]}")


def get_options() -> Options:
    """Return the current options (a copy; mutate with :func:`set_options`)."""
    return replace(_options)


def set_options(**kwargs) -> None:
    """Set one or more options.

    Raises:
        ValueError: On unknown option names or invalid values.
    """
    global _options
    _validate(kwargs)
    _options = replace(_options, **kwargs)


@contextmanager
def option_context(**kwargs) -> Iterator[Options]:
    """Temporarily set options inside a ``with`` block."""
    global _options
    _validate(kwargs)
    previous = _options
    _options = replace(_options, **kwargs)
    try:
        yield replace(_options)
    finally:
        _options = previous


def options_dict() -> dict:
    """Current options as a plain dict."""
    return asdict(_options)
