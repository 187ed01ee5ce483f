"""cachematrix — a matrix wrapper that caches its inverse.

Quick start::

    import numpy as np
    from cachematrix import CachedMatrix, solve_with_cache

    cm = CachedMatrix(np.array([[1.0, 1.0], [0.0, 2.0]]))
    inv = solve_with_cache(cm)          # computed
    inv = solve_with_cache(cm)          # reused
"""

from .linalg import InversionError, invert, resolve_backend, to_numpy
from .matrix import CachedMatrix, solve_with_cache

__version__ = "0.1.0"

__all__ = [
    "CachedMatrix",
    "InversionError",
    "invert",
    "resolve_backend",
    "solve_with_cache",
    "to_numpy",
]
