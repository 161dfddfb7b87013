from . import errors, numerical, ops, types
from .errors import BatchMatMulError, ComputeError, ShapeError, UnsupportedGradientError
from .ops import (
    batch_matmul,
    gemm,
    get_gradient_defs,
    infer_shape,
    infer_shapes,
    registry,
    run_operator,
    synthesize_gradient,
)
from .types import Argument, OperatorConfig, OperatorDef, TensorShape

__all__ = [
    "errors",
    "numerical",
    "ops",
    "types",
    "Argument",
    "BatchMatMulError",
    "ComputeError",
    "OperatorConfig",
    "OperatorDef",
    "ShapeError",
    "TensorShape",
    "UnsupportedGradientError",
    "batch_matmul",
    "gemm",
    "get_gradient_defs",
    "infer_shape",
    "infer_shapes",
    "registry",
    "run_operator",
    "synthesize_gradient",
]
