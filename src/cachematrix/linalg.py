"""Matrix inversion primitive shared by the cache layer.

Two backends:
  - **numpy**: ``numpy.linalg.inv``; returns ``numpy.ndarray``.
  - **mlx**: ``mlx.core.linalg.inv`` on a CPU stream; returns ``mx.array``.

The backend is picked from the explicit ``backend=`` argument, then the
``CACHEMATRIX_BACKEND`` env var, then the input type. Every failure mode
(singular, non-square, missing matrix) surfaces as :class:`InversionError`.
"""

from __future__ import annotations

import logging
import os
from typing import Any

import numpy as np

logger = logging.getLogger("cachematrix.linalg")

BACKENDS = ("numpy", "mlx")


class InversionError(ValueError):
    """Raised when a matrix cannot be inverted (singular or malformed)."""


def to_numpy(x: Any) -> np.ndarray:
    """Convert numpy, MLX and array-like inputs to a NumPy array."""
    if isinstance(x, np.ndarray):
        return x
    if _is_mlx_array(x):
        return np.array(x)
    return np.asarray(x)


def _is_mlx_array(x: Any) -> bool:
    return type(x).__module__.startswith("mlx")


def _env_backend() -> str | None:
    raw = os.environ.get("CACHEMATRIX_BACKEND")
    if raw is None or raw.strip() == "":
        return None
    name = raw.strip().lower()
    if name not in BACKENDS:
        raise ValueError(
            f"Invalid CACHEMATRIX_BACKEND={raw!r}; expected one of {BACKENDS}."
        )
    return name


def resolve_backend(a: Any, backend: str | None = None) -> str:
    """Pick the backend for ``a``: explicit > env > input type > numpy."""
    if backend is not None:
        name = backend.strip().lower()
        if name not in BACKENDS:
            raise ValueError(
                f"Unknown backend {backend!r}; expected one of {BACKENDS}."
            )
        return name

    name = _env_backend()
    if name is not None:
        return name

    return "mlx" if _is_mlx_array(a) else "numpy"


def _check_square(shape: tuple[int, ...]) -> None:
    if len(shape) != 2:
        raise InversionError(f"expected a 2-D matrix, got shape {shape}")
    if shape[0] != shape[1]:
        raise InversionError(f"matrix must be square, got shape {shape}")


def _as_matrix(a: Any) -> np.ndarray:
    try:
        arr = to_numpy(a)
    except (ValueError, TypeError) as exc:
        raise InversionError(f"cannot read matrix: {exc}") from exc
    if arr.dtype != np.bool_ and not np.issubdtype(arr.dtype, np.number):
        raise InversionError(f"matrix must be numeric, got dtype {arr.dtype}")
    return arr


def _invert_numpy(a: Any) -> np.ndarray:
    arr = _as_matrix(a)
    _check_square(arr.shape)
    try:
        out = np.linalg.inv(arr)
    except np.linalg.LinAlgError as exc:
        raise InversionError(str(exc)) from exc
    if not np.all(np.isfinite(out)):
        raise InversionError("inverse has non-finite entries (singular matrix?)")
    return out


def _invert_mlx(a: Any, stream: Any = None) -> Any:
    try:
        import mlx.core as mx
    except ModuleNotFoundError as e:
        raise ModuleNotFoundError(
            "The mlx backend requires mlx. Install with: pip install cachematrix[mlx]"
        ) from e

    arr = a if _is_mlx_array(a) else mx.array(_as_matrix(a))
    _check_square(tuple(arr.shape))
    if not mx.issubdtype(arr.dtype, mx.floating):
        arr = arr.astype(mx.float32)

    # linalg.inv is CPU-only in MLX
    device = mx.cpu if stream is None else stream
    try:
        out = mx.linalg.inv(arr, stream=device)
        mx.eval(out)
    except (ValueError, RuntimeError) as exc:
        raise InversionError(str(exc)) from exc
    if not mx.all(mx.isfinite(out)).item():
        raise InversionError("inverse has non-finite entries (singular matrix?)")
    return out


def invert(a: Any, *, backend: str | None = None, stream: Any = None) -> Any:
    """Return the inverse of the square matrix ``a``.

    Args:
        a: numpy array, ``mx.array`` or nested sequence.
        backend: ``"numpy"`` or ``"mlx"``; see :func:`resolve_backend`.
        stream: MLX stream/device for the mlx backend (default ``mx.cpu``).

    Raises:
        InversionError: ``a`` is missing, not square, or singular.
    """
    if a is None:
        raise InversionError("no matrix to invert")

    name = resolve_backend(a, backend)
    logger.debug("invert: backend=%s", name)
    if name == "numpy":
        if stream is not None:
            raise ValueError("stream is only supported by the mlx backend.")
        return _invert_numpy(a)
    return _invert_mlx(a, stream=stream)
