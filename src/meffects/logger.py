"""Contains the logger of meffects modules.

``meffects`` logs through the standard library
`logging <https://docs.python.org/3/library/logging.html>`__ module under the
``"meffects"`` name. Messages are emitted at two levels:

* ``DEBUG``: per-term progress of the marginal effects loop.
* ``INFO``: summary information about the computation (number of rows,
  whether standard errors were computed).

Nothing is displayed unless the calling application configures logging, e.g.::

    >>> import logging
    >>> logging.basicConfig(
    ...     level=logging.DEBUG,
    ...     format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
    ... )

Problems the user should act on are reported with :func:`warnings.warn`.
"""
import logging

logger_name = "meffects"
meffects_logger = logging.getLogger(logger_name)
meffects_logger.addHandler(logging.NullHandler())
