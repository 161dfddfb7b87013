from __future__ import annotations

import numpy as np

from ..errors import ComputeError, ShapeError
from ..types import OperatorConfig, TensorShape
from .blas import gemm
from .shape_inference import broadcast_batch_dims, infer_shape, promote_vectors


def batch_matmul(
    a: np.typing.ArrayLike, b: np.typing.ArrayLike, config: OperatorConfig | None = None
) -> np.ndarray:
    """
    Batched ``op(A) @ op(B)`` over the leading dimensions.

    The output shape and dtype are exactly those :func:`infer_shape` predicts.
    Each batch slice is handed to :func:`gemm` with the transpose flags; slices
    are visited in row-major order and each output slice is written once.

    Raises:
        ShapeError: If the operands are incompatible under ``config``.
        ComputeError: If the product of A and B cannot be stored in A's dtype,
            or the dense primitive fails on any slice.
    """
    config = config or OperatorConfig()
    a = np.asarray(a)
    b = np.asarray(b)

    out_shape = infer_shape(TensorShape.of(a), TensorShape.of(b), config)

    if config.broadcast:
        a_stack, b_stack = _broadcast_stacks(a, b)
    else:
        a_stack = _as_stack(a)
        b_stack = _as_stack(b)

    m = a_stack.shape[2] if config.trans_a else a_stack.shape[1]
    n = b_stack.shape[1] if config.trans_b else b_stack.shape[2]

    if config.broadcast:
        _check_promoted_axes(a.ndim == 1, b.ndim == 1, m, n)

    product_dtype = np.result_type(a.dtype, b.dtype)
    if not np.can_cast(product_dtype, out_shape.dtype, "same_kind"):
        raise ComputeError(
            f"Product of {a.dtype} and {b.dtype} is {product_dtype}, which cannot be "
            f"stored in the {out_shape.dtype} output without losing values"
        )

    result = np.empty((a_stack.shape[0], m, n), dtype=out_shape.dtype)
    for i in range(a_stack.shape[0]):
        result[i] = gemm(a_stack[i], b_stack[i], config.trans_a, config.trans_b)

    return result.reshape(out_shape.dims)


def _check_promoted_axes(a_promoted: bool, b_promoted: bool, m: int, n: int) -> None:
    # a transposed 1-D operand moves its length onto the axis inference drops
    if a_promoted and m != 1:
        raise ShapeError(
            f"1-D A was transposed into {m} output rows, but the promoted row axis "
            "is dropped from the output; use trans_a=0 with a 1-D A"
        )
    if b_promoted and n != 1:
        raise ShapeError(
            f"1-D B was transposed into {n} output columns, but the promoted column "
            "axis is dropped from the output; use trans_b=0 with a 1-D B"
        )


def _as_stack(x: np.ndarray) -> np.ndarray:
    """View ``(batch..., r, c)`` as ``(prod(batch), r, c)``."""
    batch = int(np.prod(x.shape[:-2], dtype=np.int64))
    return x.reshape((batch,) + x.shape[-2:])


def _broadcast_stacks(a: np.ndarray, b: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    dims_a, dims_b = promote_vectors(a.shape, b.shape)
    a = a.reshape(dims_a)
    b = b.reshape(dims_b)

    batch = broadcast_batch_dims(dims_a, dims_b)
    stacks = []
    for label, x in (("A", a), ("B", b)):
        try:
            x = np.broadcast_to(x, batch + x.shape[-2:])
        except ValueError as e:
            raise ShapeError(
                f"Batch dimensions {x.shape[:-2]} of {label} cannot be broadcast to "
                f"{batch}; batch dimensions are taken from the operand with more dims"
            ) from e
        stacks.append(_as_stack(x))
    return stacks[0], stacks[1]
