from __future__ import annotations

import logging

import numpy as np
from numba import njit
from scipy.linalg.blas import get_blas_funcs

from ..errors import ComputeError

_logger = logging.getLogger("batchmatmul.blas")

# dtype chars BLAS ?gemm understands: s, d, c, z
_BLAS_CHARS = "fdFD"


def compute_dtype(a_dtype: np.dtype, b_dtype: np.dtype) -> np.dtype:
    """The dtype a 2-D product of the two operands is accumulated in."""
    dtype = np.result_type(a_dtype, b_dtype)
    if dtype.kind == "f":
        return np.dtype(np.float32 if dtype.itemsize <= 4 else np.float64)
    if dtype.kind == "c":
        return np.dtype(np.complex64 if dtype.itemsize <= 8 else np.complex128)
    if dtype.kind == "b":
        return np.dtype(np.int64)
    if dtype.kind in "iu":
        return dtype
    raise ComputeError(f"Unsupported dtype for matrix multiplication: {dtype}")


def gemm(
    a: np.ndarray, b: np.ndarray, trans_a: bool = False, trans_b: bool = False
) -> np.ndarray:
    """
    Dense 2-D matrix product ``op(a) @ op(b)``.

    The transposes are handed to the underlying routine as flags, never
    materialized. Floating and complex operands go through BLAS ``?gemm``,
    integer and boolean ones through a compiled triple loop.

    Raises:
        ComputeError: If the operands are not compatible matrices or the
            underlying routine fails.
    """
    if a.ndim != 2 or b.ndim != 2:
        raise ComputeError(f"gemm expects 2-D operands. Got {a.shape} and {b.shape}")

    m, k_a = (a.shape[1], a.shape[0]) if trans_a else a.shape
    k_b, n = (b.shape[1], b.shape[0]) if trans_b else b.shape
    if k_a != k_b:
        raise ComputeError(
            f"gemm inner dimensions differ: op(a) is {m}x{k_a}, op(b) is {k_b}x{n}"
        )

    dtype = compute_dtype(a.dtype, b.dtype)
    if m == 0 or n == 0 or k_a == 0:
        return np.zeros((m, n), dtype=dtype)

    try:
        if dtype.char in _BLAS_CHARS:
            a = a.astype(dtype, copy=False)
            b = b.astype(dtype, copy=False)
            (routine,) = get_blas_funcs(("gemm",), (a, b))
            return routine(1.0, a, b, trans_a=int(trans_a), trans_b=int(trans_b))

        out = np.zeros((m, n), dtype=dtype)
        _gemm_loop(
            a.astype(dtype, copy=False), b.astype(dtype, copy=False), out, trans_a, trans_b
        )
        return out
    except Exception as e:
        _logger.error("gemm failed for %s x %s (%s): %s", a.shape, b.shape, dtype, e)
        raise ComputeError(f"gemm failed for {a.shape} x {b.shape}: {e}") from e


@njit(cache=True, nogil=True)
def _gemm_loop(a, b, out, trans_a, trans_b):
    """out += op(a) @ op(b) for dtypes BLAS does not cover. `out` is (m, n)."""
    m, n = out.shape
    k = a.shape[0] if trans_a else a.shape[1]
    for i in range(m):
        for j in range(n):
            for p in range(k):
                lhs = a[p, i] if trans_a else a[i, p]
                rhs = b[j, p] if trans_b else b[p, j]
                out[i, j] += lhs * rhs
