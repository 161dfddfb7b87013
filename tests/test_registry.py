import numpy as np
import pytest

from batchmatmul import OperatorConfig, OperatorDef, TensorShape, registry, run_operator
from batchmatmul.ops import OperatorRegistry, OperatorSchema, run_operators

from .conftest import operand_shapes


def test_batch_matmul_is_registered():
    schema = registry.get("BatchMatMul")

    assert schema.num_inputs == 2
    assert schema.num_outputs == 1
    assert set(schema.arg_docs) >= {"trans_a", "trans_b", "broadcast"}
    assert schema.shape_fn is not None
    assert schema.gradient_fn is not None
    assert schema.kernel is not None


def test_unknown_operator():
    assert "Conv" not in registry
    with pytest.raises(KeyError, match="Unknown operator"):
        registry.get("Conv")


def test_duplicate_registration_is_rejected():
    operators = OperatorRegistry()
    operators.register(OperatorSchema("Identity", 1, 1))
    with pytest.raises(ValueError, match="already registered"):
        operators.register(OperatorSchema("Identity", 1, 1))


def test_custom_registry_decorators():
    operators = OperatorRegistry()
    operators.register(OperatorSchema("Identity", 1, 1))

    @operators.kernel("Identity")
    def identity(op_def, x):
        return [x.copy()]

    @operators.shape_function("Identity")
    def identity_shape(op_def, shapes):
        return list(shapes)

    workspace = {"x": np.arange(3)}
    run_operator(OperatorDef.create("Identity", ["x"], ["y"]), workspace, operators)

    np.testing.assert_array_equal(workspace["y"], np.arange(3))


def test_run_operator_stores_output(rng):
    a = rng.standard_normal((2, 3, 4))
    b = rng.standard_normal((2, 5, 4))
    workspace = {"A": a, "B": b}
    op_def = OperatorDef.create("BatchMatMul", ["A", "B"], ["Y"], {"trans_b": 1})

    (y,) = run_operator(op_def, workspace)

    assert workspace["Y"] is y
    np.testing.assert_allclose(y, a @ np.swapaxes(b, -1, -2))


def test_run_operator_missing_input():
    op_def = OperatorDef.create("BatchMatMul", ["A", "B"], ["Y"])
    with pytest.raises(KeyError, match="not found"):
        run_operator(op_def, {"A": np.ones((2, 2))})


def test_run_operator_arity():
    op_def = OperatorDef.create("BatchMatMul", ["A", "B"], ["Y", "Z"])
    with pytest.raises(ValueError, match="outputs"):
        run_operator(op_def, {"A": np.ones((2, 2)), "B": np.ones((2, 2))})


def test_shape_inference_matches_execution(rng, transpose_config):
    shape_a, shape_b = operand_shapes(
        (2, 3), 4, 5, 6, transpose_config.trans_a, transpose_config.trans_b
    )
    workspace = {
        "A": rng.standard_normal(shape_a).astype(np.float32),
        "B": rng.standard_normal(shape_b).astype(np.float32),
    }
    op_def = OperatorDef.create(
        "BatchMatMul", ["A", "B"], ["Y"], transpose_config.to_args()
    )

    (inferred,) = registry.get("BatchMatMul").shape_fn(
        op_def, [TensorShape.of(workspace["A"]), TensorShape.of(workspace["B"])]
    )
    run_operators([op_def], workspace)

    assert TensorShape.of(workspace["Y"]) == inferred


def test_operator_def_arguments():
    op_def = OperatorDef.create(
        "BatchMatMul", ["A", "B"], ["Y"], {"trans_a": 1}, name="bmm"
    )

    assert op_def.has_argument("trans_a")
    assert not op_def.has_argument("trans_b")
    assert op_def.get_argument("trans_b", 0) == 0
    assert op_def.name == "bmm"

    with pytest.raises(ValueError):
        OperatorDef("BatchMatMul", ["A", "B"], ("Y",))


@pytest.mark.parametrize(
    "args, expected",
    [
        ({"trans_a": "0", "trans_b": "1"}, (False, True, False)),
        ({"trans_a": 1, "broadcast": "0"}, (True, False, False)),
        ({}, (False, False, False)),
    ],
)
def test_operator_config_reads_flags_as_ints(args, expected):
    config = OperatorConfig.from_def(OperatorDef.create("BatchMatMul", ["A", "B"], ["Y"], args))

    assert (config.trans_a, config.trans_b, config.broadcast) == expected
