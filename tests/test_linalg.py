"""Tests for the inversion primitive and backend selection."""

from __future__ import annotations

import numpy as np
import pytest

from cachematrix.linalg import InversionError, invert, resolve_backend, to_numpy


def _clear_env(monkeypatch):
    monkeypatch.delenv("CACHEMATRIX_BACKEND", raising=False)


def test_invert_list_input(monkeypatch):
    _clear_env(monkeypatch)
    out = invert([[1, 1], [0, 2]])
    assert isinstance(out, np.ndarray)
    np.testing.assert_allclose(out, [[1.0, -0.5], [0.0, 0.5]])


def test_invert_singular(monkeypatch):
    _clear_env(monkeypatch)
    with pytest.raises(InversionError) as excinfo:
        invert(np.array([[1.0, 1.0], [1.0, 1.0]]))
    assert isinstance(excinfo.value.__cause__, np.linalg.LinAlgError)


def test_inversion_error_is_value_error():
    assert issubclass(InversionError, ValueError)


@pytest.mark.parametrize(
    "bad",
    [np.ones(3), np.ones((2, 3)), np.ones((2, 2, 2)), np.float64(4.0)],
)
def test_invert_rejects_non_square(monkeypatch, bad):
    _clear_env(monkeypatch)
    with pytest.raises(InversionError):
        invert(bad)


def test_invert_none():
    with pytest.raises(InversionError, match="no matrix"):
        invert(None)


@pytest.mark.parametrize(
    "bad",
    [
        [[1, 2], [3]],
        [["a", "b"], ["c", "d"]],
        np.array([[1, None], [None, 1]], dtype=object),
    ],
)
def test_invert_rejects_malformed(monkeypatch, bad):
    _clear_env(monkeypatch)
    with pytest.raises(InversionError):
        invert(bad)


def test_invert_bool_matrix(monkeypatch):
    _clear_env(monkeypatch)
    out = invert(np.array([[True, False], [False, True]]))
    np.testing.assert_allclose(out, np.eye(2))


def test_invert_nan_input(monkeypatch):
    _clear_env(monkeypatch)
    with pytest.raises(InversionError):
        invert(np.array([[np.nan, 0.0], [0.0, 1.0]]))


def test_stream_rejected_for_numpy(monkeypatch):
    _clear_env(monkeypatch)
    with pytest.raises(ValueError, match="stream"):
        invert(np.eye(2), stream="cpu")


# ── Backend resolution ───────────────────────────────────────────────────


def test_resolve_default_numpy(monkeypatch):
    _clear_env(monkeypatch)
    assert resolve_backend(np.eye(2)) == "numpy"
    assert resolve_backend([[1.0]]) == "numpy"


def test_resolve_explicit_wins(monkeypatch):
    monkeypatch.setenv("CACHEMATRIX_BACKEND", "mlx")
    assert resolve_backend(np.eye(2), "NumPy") == "numpy"


def test_resolve_from_env(monkeypatch):
    monkeypatch.setenv("CACHEMATRIX_BACKEND", " mlx ")
    assert resolve_backend(np.eye(2)) == "mlx"


def test_resolve_empty_env_is_unset(monkeypatch):
    monkeypatch.setenv("CACHEMATRIX_BACKEND", "")
    assert resolve_backend(np.eye(2)) == "numpy"


def test_resolve_invalid_env(monkeypatch):
    monkeypatch.setenv("CACHEMATRIX_BACKEND", "torch")
    with pytest.raises(ValueError, match="CACHEMATRIX_BACKEND"):
        resolve_backend(np.eye(2))


def test_resolve_unknown_backend():
    with pytest.raises(ValueError, match="Unknown backend"):
        resolve_backend(np.eye(2), "cupy")


def test_to_numpy_passthrough():
    a = np.eye(2)
    assert to_numpy(a) is a
    np.testing.assert_array_equal(to_numpy([[1, 2], [3, 4]]), [[1, 2], [3, 4]])
