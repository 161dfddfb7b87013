from __future__ import annotations

import logging

from ..errors import ShapeError
from ..types import OperatorConfig, TensorShape

_logger = logging.getLogger("batchmatmul.shape")


def _matrix_dims(dims: tuple[int, ...], transpose: bool) -> tuple[int, int]:
    """(rows, cols) of the trailing matrix after the optional transpose."""
    if transpose:
        return dims[-1], dims[-2]
    return dims[-2], dims[-1]


def infer_shape(
    shape_a: TensorShape, shape_b: TensorShape, config: OperatorConfig
) -> TensorShape:
    """
    Predict the output shape of a batched matmul without reading any data.

    Without broadcasting both operands must have the same rank (at least 2) and
    identical batch dimensions; the output keeps A's batch dimensions followed
    by (M, N).

    With broadcasting, 1-D operands are promoted (A to a row, B to a column)
    and the batch prefix is taken verbatim from whichever operand has more
    dimensions. This is narrower than full NumPy broadcasting: no pairwise
    size-1 expansion is performed here.

    Raises:
        ShapeError: If the ranks or the contraction dimension are incompatible.
    """
    if config.broadcast:
        result = _infer_broadcast(shape_a, shape_b, config)
    else:
        result = _infer_strict(shape_a, shape_b, config)

    _logger.debug(
        "BatchMatMul %s x %s (trans_a=%d, trans_b=%d, broadcast=%d) -> %s",
        shape_a.dims,
        shape_b.dims,
        config.trans_a,
        config.trans_b,
        config.broadcast,
        result.dims,
    )
    return result


def _infer_strict(
    shape_a: TensorShape, shape_b: TensorShape, config: OperatorConfig
) -> TensorShape:
    ndim = shape_a.rank
    if ndim < 2:
        raise ShapeError(
            f"A must have rank >= 2 when broadcast=0. Got shape {shape_a.dims}"
        )
    if shape_b.rank != ndim:
        raise ShapeError(
            f"A and B must have the same rank when broadcast=0. "
            f"Got A={shape_a.dims}, B={shape_b.dims}"
        )
    if shape_a.batch_dims != shape_b.batch_dims:
        raise ShapeError(
            f"Batch dimensions of A and B must match when broadcast=0. "
            f"Got A={shape_a.batch_dims}, B={shape_b.batch_dims}"
        )

    m, k_a = _matrix_dims(shape_a.dims, config.trans_a)
    k_b, n = _matrix_dims(shape_b.dims, config.trans_b)
    if k_a != k_b:
        raise ShapeError(
            f"Contraction dimension mismatch: A={shape_a.dims} (trans_a={config.trans_a:d}) "
            f"gives K={k_a}, B={shape_b.dims} (trans_b={config.trans_b:d}) gives K={k_b}"
        )

    return TensorShape(shape_a.batch_dims + (m, n), shape_a.dtype)


def _infer_broadcast(
    shape_a: TensorShape, shape_b: TensorShape, config: OperatorConfig
) -> TensorShape:
    dims_a, dims_b = promote_vectors(shape_a.dims, shape_b.dims)
    a_promoted = shape_a.rank == 1
    b_promoted = shape_b.rank == 1

    m, k_a = _matrix_dims(dims_a, config.trans_a)
    k_b, n = _matrix_dims(dims_b, config.trans_b)
    if k_a != k_b:
        raise ShapeError(
            f"Contraction dimension mismatch: A={shape_a.dims} (trans_a={config.trans_a:d}) "
            f"gives K={k_a}, B={shape_b.dims} (trans_b={config.trans_b:d}) gives K={k_b}"
        )

    new_dims = list(broadcast_batch_dims(dims_a, dims_b))
    if not a_promoted:
        new_dims.append(m)
    if not b_promoted:
        new_dims.append(n)
    if a_promoted and b_promoted:
        new_dims.append(1)

    return TensorShape(tuple(new_dims), shape_a.dtype)


def promote_vectors(
    dims_a: tuple[int, ...], dims_b: tuple[int, ...]
) -> tuple[tuple[int, ...], tuple[int, ...]]:
    """Promote 1-D operands: A to a (1, K) row, B to a (K, 1) column."""
    if len(dims_a) == 0 or len(dims_b) == 0:
        raise ShapeError(
            f"Operands must have rank >= 1. Got A={dims_a}, B={dims_b}"
        )
    if len(dims_a) == 1:
        dims_a = (1,) + dims_a
    if len(dims_b) == 1:
        dims_b = dims_b + (1,)
    return dims_a, dims_b


def broadcast_batch_dims(
    dims_a: tuple[int, ...], dims_b: tuple[int, ...]
) -> tuple[int, ...]:
    """Batch prefix of the operand with more dims (A on a tie), both promoted."""
    if len(dims_a) >= len(dims_b):
        return dims_a[:-2]
    return dims_b[:-2]
