from . import batch_matmul_op
from .blas import gemm
from .gradient import GRADIENT_TABLE, gradient_defs, synthesize_gradient
from .kernel import batch_matmul
from .registry import (
    OperatorRegistry,
    OperatorSchema,
    get_gradient_defs,
    infer_shapes,
    registry,
)
from .runner import run_operator, run_operators
from .shape_inference import infer_shape

__all__ = [
    "GRADIENT_TABLE",
    "OperatorRegistry",
    "OperatorSchema",
    "batch_matmul",
    "batch_matmul_op",
    "gemm",
    "get_gradient_defs",
    "gradient_defs",
    "infer_shape",
    "infer_shapes",
    "registry",
    "run_operator",
    "run_operators",
    "synthesize_gradient",
]
