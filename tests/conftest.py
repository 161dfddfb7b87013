import numpy as np
import pytest

from batchmatmul import OperatorConfig

TRANSPOSE_FLAGS = [(False, False), (False, True), (True, False), (True, True)]


@pytest.fixture
def rng():
    return np.random.default_rng(0)


@pytest.fixture(params=TRANSPOSE_FLAGS, ids=lambda f: f"trans_a={f[0]:d}-trans_b={f[1]:d}")
def transpose_config(request):
    trans_a, trans_b = request.param
    return OperatorConfig(trans_a=trans_a, trans_b=trans_b)


def operand_shapes(batch, m, k, n, trans_a, trans_b):
    """Stored shapes of A and B such that op(A) is (m, k) and op(B) is (k, n)."""
    shape_a = batch + ((k, m) if trans_a else (m, k))
    shape_b = batch + ((n, k) if trans_b else (k, n))
    return shape_a, shape_b


def reference_matmul(a, b, trans_a=False, trans_b=False):
    if trans_a:
        a = np.swapaxes(a, -1, -2)
    if trans_b:
        b = np.swapaxes(b, -1, -2)
    return np.matmul(a, b)
