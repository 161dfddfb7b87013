import numpy as np
import pytest

from batchmatmul import OperatorConfig, OperatorDef, ShapeError, TensorShape
from batchmatmul.ops import infer_shape, infer_shapes

from .conftest import operand_shapes

BROADCAST = OperatorConfig(broadcast=True)


def shape(*dims, dtype=np.float32):
    return TensorShape(dims, dtype)


@pytest.mark.parametrize("batch", [(), (2,), (2, 3), (4, 1, 2)])
def test_output_keeps_batch_and_replaces_matrix_dims(batch, transpose_config):
    shape_a, shape_b = operand_shapes(
        batch, 3, 4, 5, transpose_config.trans_a, transpose_config.trans_b
    )

    result = infer_shape(shape(*shape_a), shape(*shape_b), transpose_config)

    assert result.rank == len(batch) + 2
    assert result.dims == batch + (3, 5)


def test_dtype_comes_from_first_input():
    result = infer_shape(
        shape(2, 3, 4, dtype=np.float64),
        shape(2, 4, 5, dtype=np.float32),
        OperatorConfig(),
    )
    assert result.dtype == np.float64


@pytest.mark.parametrize("dims_a", [(4,), ()])
def test_rank_below_two_is_rejected_without_broadcast(dims_a):
    with pytest.raises(ShapeError):
        infer_shape(shape(*dims_a), shape(4, 5), OperatorConfig())


def test_rank_mismatch_is_rejected_without_broadcast():
    with pytest.raises(ShapeError, match="same rank"):
        infer_shape(shape(2, 3, 4), shape(4, 5), OperatorConfig())


def test_batch_mismatch_is_rejected_without_broadcast():
    with pytest.raises(ShapeError, match="Batch dimensions"):
        infer_shape(shape(2, 3, 4), shape(3, 4, 5), OperatorConfig())


def test_contraction_mismatch():
    with pytest.raises(ShapeError, match="Contraction"):
        infer_shape(shape(2, 3, 4), shape(2, 5, 6), OperatorConfig())


@pytest.mark.parametrize(
    "config, dims_a, dims_b",
    [
        (OperatorConfig(trans_a=True), (2, 3, 4), (2, 4, 5)),
        (OperatorConfig(trans_b=True), (2, 3, 4), (2, 4, 5)),
        (OperatorConfig(trans_a=True, trans_b=True), (2, 3, 4), (2, 4, 5)),
    ],
)
def test_contraction_mismatch_after_transpose(config, dims_a, dims_b):
    with pytest.raises(ShapeError):
        infer_shape(shape(*dims_a), shape(*dims_b), config)


@pytest.mark.parametrize(
    "dims_a, dims_b, expected",
    [
        ((4,), (4, 5), (5,)),
        ((3, 4), (4,), (3,)),
        ((4,), (4,), (1,)),
        ((2, 3, 4), (4, 5), (2, 3, 5)),
        ((3, 4), (2, 4, 5), (2, 3, 5)),
        ((4,), (2, 4, 5), (2, 5)),
        ((2, 3, 4), (4,), (2, 3)),
        ((2, 3, 4), (2, 4, 5), (2, 3, 5)),
    ],
)
def test_broadcast_shapes(dims_a, dims_b, expected):
    assert infer_shape(shape(*dims_a), shape(*dims_b), BROADCAST).dims == expected


def test_broadcast_keeps_longer_prefix_verbatim():
    # the prefix is copied from the operand with more dims, not pairwise maxed
    result = infer_shape(shape(1, 3, 4), shape(5, 4, 6), BROADCAST)
    assert result.dims == (1, 3, 6)

    result = infer_shape(shape(3, 4), shape(7, 1, 4, 6), BROADCAST)
    assert result.dims == (7, 1, 3, 6)


def test_broadcast_honors_transpose_flags():
    config = OperatorConfig(trans_a=True, trans_b=True, broadcast=True)
    assert infer_shape(shape(2, 4, 3), shape(5, 4), config).dims == (2, 3, 5)


def test_broadcast_contraction_mismatch():
    with pytest.raises(ShapeError, match="Contraction"):
        infer_shape(shape(3,), shape(4, 5), BROADCAST)


def test_broadcast_rejects_scalars():
    with pytest.raises(ShapeError):
        infer_shape(shape(), shape(4, 5), BROADCAST)


def test_negative_dimension_is_rejected():
    with pytest.raises(ValueError):
        TensorShape((2, -1))


def test_shape_inference_entry_point_reads_op_arguments():
    op_def = OperatorDef.create(
        "BatchMatMul", ["A", "B"], ["Y"], {"trans_a": 1, "trans_b": 0}
    )

    (result,) = infer_shapes(op_def, [shape(2, 4, 3), shape(2, 4, 5)])

    assert result.dims == (2, 3, 5)


def test_shape_inference_entry_point_checks_arity():
    op_def = OperatorDef.create("BatchMatMul", ["A"], ["Y"])
    with pytest.raises(ValueError, match="inputs"):
        infer_shapes(op_def, [shape(2, 4, 3)])
