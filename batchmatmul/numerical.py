from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass

import numpy as np

from .ops.gradient import grad_name
from .ops.registry import OperatorRegistry, get_gradient_defs, registry
from .ops.runner import run_operator, run_operators
from .types import OperatorDef

_logger = logging.getLogger("batchmatmul.numerical")


@dataclass
class GradientCheckConfig:
    """Configuration for finite-difference gradient checks"""

    eps: float = 1e-3
    order: int = 4
    rtol: float = 1e-4
    atol: float = 1e-4
    seed: int | None = 0


# central-difference stencils: (coefficients, points, divisor)
_STENCILS: dict[int, tuple[tuple[float, ...], tuple[int, ...], float]] = {
    2: ((-1.0, 1.0), (-1, 1), 2.0),
    4: ((1.0, -8.0, 8.0, -1.0), (-2, -1, 1, 2), 12.0),
    6: ((-1.0, 9.0, -45.0, 45.0, -9.0, 1.0), (-3, -2, -1, 1, 2, 3), 60.0),
}


def numerical_gradient(
    func: Callable[..., np.ndarray],
    inputs: Sequence[np.ndarray],
    output_grad: np.ndarray,
    eps: float = 1e-3,
    order: int = 4,
) -> list[np.ndarray]:
    """
    Central-difference estimate of ``d sum(func(*inputs) * output_grad) / d inputs[i]``.

    Every element of every input is perturbed on a float64 copy; the inputs
    passed in are never modified.
    """
    if order not in _STENCILS:
        raise ValueError(f"Unsupported finite difference order: {order}")
    coefficients, points, divisor = _STENCILS[order]

    values = [np.array(x, dtype=np.float64) for x in inputs]
    output_grad = np.asarray(output_grad, dtype=np.float64)

    def loss() -> float:
        return float(np.sum(np.asarray(func(*values), dtype=np.float64) * output_grad))

    grads = []
    for x in values:
        grad = np.zeros_like(x)
        for idx in np.ndindex(x.shape):
            original = x[idx]
            total = 0.0
            for c, p in zip(coefficients, points):
                x[idx] = original + p * eps
                total += c * loss()
            x[idx] = original
            grad[idx] = total / (divisor * eps)
        grads.append(grad)
    return grads


def check_gradients(
    op_def: OperatorDef,
    inputs: Mapping[str, np.ndarray],
    config: GradientCheckConfig | None = None,
    operators: OperatorRegistry = registry,
) -> dict[str, np.ndarray]:
    """
    Run an operator's synthesized gradient ops and compare them to finite differences.

    A random output gradient is drawn, the gradient definitions from the
    registry are executed against a workspace holding the forward inputs and
    outputs, and each resulting input gradient is compared elementwise.

    Returns:
        The analytic gradients, keyed by gradient tensor name.

    Raises:
        AssertionError: If any analytic gradient differs from its estimate.
    """
    config = config or GradientCheckConfig()
    rng = np.random.default_rng(config.seed)

    workspace = {name: np.asarray(value) for name, value in inputs.items()}
    (output,) = run_operator(op_def, workspace, operators)
    output_grad = rng.uniform(-1.0, 1.0, size=output.shape).astype(output.dtype)
    workspace[grad_name(op_def.outputs[0])] = output_grad

    run_operators(get_gradient_defs(op_def, operators), workspace, operators)

    def forward(*values: np.ndarray) -> np.ndarray:
        scratch = dict(zip(op_def.inputs, values))
        return run_operator(op_def, scratch, operators)[0]

    expected = numerical_gradient(
        forward,
        [workspace[name] for name in op_def.inputs],
        output_grad,
        eps=config.eps,
        order=config.order,
    )

    analytic = {}
    for name, numeric in zip(op_def.inputs, expected):
        actual = workspace[grad_name(name)]
        _logger.debug(
            "%s: max |analytic - numeric| = %.3e",
            grad_name(name),
            float(np.max(np.abs(actual - numeric), initial=0.0)),
        )
        np.testing.assert_allclose(
            actual,
            numeric,
            rtol=config.rtol,
            atol=config.atol,
            err_msg=f"Gradient mismatch for {grad_name(name)}",
        )
        analytic[grad_name(name)] = actual
    return analytic
