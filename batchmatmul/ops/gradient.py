from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from ..errors import UnsupportedGradientError
from ..types import OperatorConfig, OperatorDef

_logger = logging.getLogger("batchmatmul.gradient")

OP_TYPE = "BatchMatMul"

# Operand roles inside a gradient template.
A, B, G = "A", "B", "G"


@dataclass(frozen=True, slots=True)
class GradientTemplate:
    """One synthesized BatchMatMul: which operands, in which order, which flags."""

    lhs: str
    rhs: str
    trans_a: bool = False
    trans_b: bool = False

    def instantiate(
        self,
        names: dict[str, str],
        output: str,
        use_scratch: bool,
    ) -> OperatorDef:
        config = OperatorConfig(
            trans_a=self.trans_a, trans_b=self.trans_b, use_scratch=use_scratch
        )
        return OperatorDef(
            OP_TYPE,
            (names[self.lhs], names[self.rhs]),
            (output,),
            config.to_args(),
        )


# Y = op(A) . op(B); G = dL/dY.
#   A  B  : dA = G B^T,     dB = A^T G
#   A  B^T: dA = G B,       dB = G^T A
#   A^T B : dA = B G^T,     dB = A G
#   A^T B^T: dA = B^T G^T,  dB = G^T A^T
GRADIENT_TABLE: dict[tuple[bool, bool], tuple[GradientTemplate, GradientTemplate]] = {
    (False, False): (
        GradientTemplate(G, B, trans_b=True),
        GradientTemplate(A, G, trans_a=True),
    ),
    (False, True): (
        GradientTemplate(G, B),
        GradientTemplate(G, A, trans_a=True),
    ),
    (True, False): (
        GradientTemplate(B, G, trans_b=True),
        GradientTemplate(A, G),
    ),
    (True, True): (
        GradientTemplate(B, G, trans_a=True, trans_b=True),
        GradientTemplate(G, A, trans_a=True, trans_b=True),
    ),
}


def grad_name(name: str) -> str:
    return f"{name}_grad"


def synthesize_gradient(
    config: OperatorConfig,
    input_names: Sequence[str],
    output_name: str,
    output_grad_name: str,
    grad_input_names: Sequence[str] | None = None,
) -> list[OperatorDef]:
    """
    Rewrite a forward BatchMatMul into the two BatchMatMuls computing its gradients.

    The result depends only on the configuration and the symbolic names; no
    tensor is ever read. Transposes are expressed through the emitted ops'
    ``trans_a``/``trans_b`` flags rather than as separate transpose ops. The
    gradient of the first input is always emitted first.

    Args:
        config: Flags of the forward operator.
        input_names: Names of the forward inputs ``(A, B)``.
        output_name: Name of the forward output ``Y``. Not referenced by the
            emitted ops; kept so callers can pass the full forward signature.
        output_grad_name: Name of ``dL/dY``.
        grad_input_names: Names for ``dL/dA`` and ``dL/dB``. Defaults to the
            input names suffixed with ``_grad``.

    Raises:
        UnsupportedGradientError: If ``config.broadcast`` is set.
    """
    if config.broadcast:
        raise UnsupportedGradientError(
            "Gradient is currently not supported with broadcast=1 for BatchMatMul."
        )
    if len(input_names) != 2:
        raise ValueError(f"BatchMatMul takes exactly 2 inputs. Got {len(input_names)}")

    if grad_input_names is None:
        grad_input_names = [grad_name(n) for n in input_names]
    elif len(grad_input_names) != 2:
        raise ValueError(
            f"Expected 2 gradient output names. Got {len(grad_input_names)}"
        )

    names = {A: input_names[0], B: input_names[1], G: output_grad_name}
    templates = GRADIENT_TABLE[(config.trans_a, config.trans_b)]
    grad_defs = [
        template.instantiate(names, out, config.use_scratch)
        for template, out in zip(templates, grad_input_names)
    ]

    _logger.debug(
        "Synthesized %d gradient ops for %s(trans_a=%d, trans_b=%d) -> %s",
        len(grad_defs),
        output_name,
        config.trans_a,
        config.trans_b,
        [d.outputs[0] for d in grad_defs],
    )
    return grad_defs


def gradient_defs(op_def: OperatorDef) -> list[OperatorDef]:
    """Gradient entry point for the autograd pass: forward def in, gradient defs out."""
    if len(op_def.inputs) != 2:
        raise ValueError(
            f"{op_def.type} takes exactly 2 inputs. Got {len(op_def.inputs)}"
        )
    if len(op_def.outputs) != 1:
        raise ValueError(
            f"{op_def.type} produces exactly 1 output. Got {len(op_def.outputs)}"
        )

    output = op_def.outputs[0]
    return synthesize_gradient(
        OperatorConfig.from_def(op_def),
        op_def.inputs,
        output,
        grad_name(output),
    )
