from __future__ import annotations

import logging
from collections.abc import Iterable, MutableMapping

import numpy as np

from ..types import OperatorDef
from .registry import OperatorRegistry, registry

_logger = logging.getLogger("batchmatmul.runner")

Workspace = MutableMapping[str, np.ndarray]


def run_operator(
    op_def: OperatorDef, workspace: Workspace, operators: OperatorRegistry = registry
) -> list[np.ndarray]:
    """
    Execute one operator definition against a name -> array workspace.

    Inputs are read by name, outputs are stored by name. Outputs are only
    written once the kernel has returned all of them.
    """
    schema = operators.get(op_def.type)
    schema.verify(op_def)
    if schema.kernel is None:
        raise NotImplementedError(f"{schema.name} has no kernel")

    missing = [name for name in op_def.inputs if name not in workspace]
    if missing:
        raise KeyError(f"{op_def.type}: inputs {missing} not found in workspace")

    outputs = schema.kernel(op_def, *(workspace[name] for name in op_def.inputs))
    for name, value in zip(op_def.outputs, outputs):
        workspace[name] = value

    _logger.info(
        "Ran %s %s -> %s",
        op_def.type,
        list(op_def.inputs),
        {name: value.shape for name, value in zip(op_def.outputs, outputs)},
    )
    return outputs


def run_operators(
    op_defs: Iterable[OperatorDef], workspace: Workspace, operators: OperatorRegistry = registry
) -> Workspace:
    """Run op_defs in order, each seeing the outputs of those before it."""
    for op_def in op_defs:
        run_operator(op_def, workspace, operators)
    return workspace
