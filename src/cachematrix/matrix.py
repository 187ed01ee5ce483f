"""Matrix wrapper that remembers its own inverse.

The wrapper holds one matrix and at most one cached inverse. Replacing the
matrix drops the cache; :func:`solve_with_cache` fills it on the first miss
and returns it unchanged afterwards::

    cm = CachedMatrix(np.array([[1.0, 1.0], [0.0, 2.0]]))
    inv = solve_with_cache(cm)   # inverts
    inv = solve_with_cache(cm)   # "getting cached data"
    cm.set_matrix(None)          # clear matrix and cache
"""

from __future__ import annotations

import logging
import os
from typing import Any

import numpy as np

from .linalg import invert

logger = logging.getLogger("cachematrix.matrix")


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() in {"1", "true", "yes"}


class CachedMatrix:
    """A matrix plus an optional cached inverse.

    ``cached_inverse`` is only valid for the ``value`` it was computed from;
    :meth:`set_matrix` is the single way to change ``value`` and always
    invalidates it.
    """

    def __init__(self, value: Any = None):
        self.value = value
        self.cached_inverse: Any = None

    def set_matrix(self, new_value: Any) -> None:
        self.value = new_value
        self.cached_inverse = None

    def get_matrix(self) -> Any:
        return self.value

    def get_cached_inverse(self) -> Any:
        """Return the cached inverse, or None if nothing is cached."""
        return self.cached_inverse

    def set_cached_inverse(self, inverse: Any) -> None:
        # Not validated against value; callers own that.
        self.cached_inverse = inverse

    @property
    def has_cached_inverse(self) -> bool:
        return self.cached_inverse is not None

    def __repr__(self) -> str:
        shape = None
        if self.value is not None:
            try:
                shape = tuple(np.shape(self.value))
            except ValueError:
                # ragged nested sequences have no shape
                shape = "?"
        return f"CachedMatrix(shape={shape}, cached={self.has_cached_inverse})"


def solve_with_cache(
    x: CachedMatrix,
    *,
    verbose: bool | None = None,
    **options: Any,
) -> Any:
    """Return the inverse of ``x``'s matrix, computing it at most once.

    ``options`` are forwarded to :func:`cachematrix.linalg.invert`
    (``backend=``, ``stream=``). On failure the ``InversionError``
    propagates and nothing is cached, so the next call retries.

    ``verbose`` (default: ``CACHEMATRIX_VERBOSE``) logs cache hits at INFO
    instead of DEBUG.
    """
    cached = x.get_cached_inverse()
    if cached is not None:
        if verbose is None:
            verbose = _env_flag("CACHEMATRIX_VERBOSE")
        logger.log(logging.INFO if verbose else logging.DEBUG, "getting cached data")
        return cached

    data = x.get_matrix()
    logger.debug("cache miss: inverting matrix of shape %s", getattr(data, "shape", None))
    inverse = invert(data, **options)
    x.set_cached_inverse(inverse)
    return inverse
