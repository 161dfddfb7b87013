from __future__ import annotations

from collections.abc import Sequence

import numpy as np

from ..types import OperatorConfig, OperatorDef, TensorShape
from .gradient import OP_TYPE, gradient_defs
from .kernel import batch_matmul
from .registry import OperatorSchema, registry
from .shape_inference import infer_shape

registry.register(
    OperatorSchema(
        name=OP_TYPE,
        num_inputs=2,
        num_outputs=1,
        doc=(
            "Batch Matrix multiplication Yi = Ai * Bi, where A has shape "
            "(dim0, dim1, ... M, K), B has shape (dim0, dim1, ... K, N), Y has shape "
            "(dim0, dim1, ... M, N) and i ranges from 0 to (dim0 * dim1 ...) - 1. "
            "rank(A) == rank(B) >= 2. In case of A and B being two dimensional, it "
            "behaves like normal matrix multiplication."
        ),
        arg_docs={
            "trans_a": "Pass 1 to transpose the last two dimensions of A before "
            "doing multiplication",
            "trans_b": "Pass 1 to transpose the last two dimensions of B before "
            "doing multiplication",
            "broadcast": "Pass 1 to allow broadcasting of dimensions. 1-D operands "
            "are promoted as in numpy.matmul and batch dimensions are taken from the "
            "operand with more dimensions. Gradient is not supported in broadcast mode.",
            "use_scratch": "Opaque scratch-buffer hint, copied onto gradient ops.",
        },
    )
)


@registry.shape_function(OP_TYPE)
def batch_matmul_shape(
    op_def: OperatorDef, input_shapes: Sequence[TensorShape]
) -> list[TensorShape]:
    shape_a, shape_b = input_shapes
    return [infer_shape(shape_a, shape_b, OperatorConfig.from_def(op_def))]


@registry.kernel(OP_TYPE)
def batch_matmul_kernel(op_def: OperatorDef, a: np.ndarray, b: np.ndarray) -> list[np.ndarray]:
    return [batch_matmul(a, b, OperatorConfig.from_def(op_def))]


registry.gradient(OP_TYPE)(gradient_defs)
