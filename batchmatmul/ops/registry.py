from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

import numpy as np

from ..types import OperatorDef, TensorShape


@runtime_checkable
class ShapeFunction(Protocol):
    def __call__(
        self, op_def: OperatorDef, input_shapes: Sequence[TensorShape]
    ) -> list[TensorShape]: ...


@runtime_checkable
class GradientFunction(Protocol):
    def __call__(self, op_def: OperatorDef) -> list[OperatorDef]: ...


@runtime_checkable
class KernelFunction(Protocol):
    def __call__(self, op_def: OperatorDef, *inputs: np.ndarray) -> list[np.ndarray]: ...


@dataclass
class OperatorSchema:
    """
    Everything the graph engine needs to know about one operator type.

    Attributes:
        name: Operator type name, as used in ``OperatorDef.type``.
        num_inputs: Exact number of inputs.
        num_outputs: Exact number of outputs.
        doc: Human-readable description.
        arg_docs: Documented argument names and their descriptions.
        shape_fn: Static shape inference, ``(op_def, input_shapes) -> output shapes``.
        gradient_fn: Gradient maker, ``op_def -> gradient op_defs``. ``None`` if
            the operator is not differentiable.
        kernel: Forward computation, ``(op_def, *arrays) -> output arrays``.
    """

    name: str
    num_inputs: int
    num_outputs: int
    doc: str = ""
    arg_docs: dict[str, str] = field(default_factory=dict)
    shape_fn: ShapeFunction | None = None
    gradient_fn: GradientFunction | None = None
    kernel: KernelFunction | None = None

    def verify(self, op_def: OperatorDef) -> None:
        """Check an op_def's arity against this schema."""
        if op_def.type != self.name:
            raise ValueError(f"Schema {self.name} cannot verify op of type {op_def.type}")
        if len(op_def.inputs) != self.num_inputs:
            raise ValueError(
                f"{self.name} takes {self.num_inputs} inputs. Got {len(op_def.inputs)}"
            )
        if len(op_def.outputs) != self.num_outputs:
            raise ValueError(
                f"{self.name} produces {self.num_outputs} outputs. Got {len(op_def.outputs)}"
            )


class OperatorRegistry:
    """Maps operator type names to their schemas."""

    def __init__(self):
        self._registry: dict[str, OperatorSchema] = {}

    def register(self, schema: OperatorSchema) -> OperatorSchema:
        if schema.name in self._registry:
            raise ValueError(f"Operator {schema.name} is already registered")
        self._registry[schema.name] = schema
        return schema

    def get(self, op_type: str) -> OperatorSchema:
        try:
            return self._registry[op_type]
        except KeyError:
            raise KeyError(
                f"Unknown operator '{op_type}'. Available: {sorted(self._registry)}"
            ) from None

    def __contains__(self, op_type: str) -> bool:
        return op_type in self._registry

    def shape_function(self, op_type: str) -> Callable[[ShapeFunction], ShapeFunction]:
        """Returns a decorator attaching the decorated function as ``op_type``'s shape function."""

        def decorator(func: ShapeFunction) -> ShapeFunction:
            self.get(op_type).shape_fn = func
            return func

        return decorator

    def gradient(self, op_type: str) -> Callable[[GradientFunction], GradientFunction]:
        """Returns a decorator attaching the decorated function as ``op_type``'s gradient maker."""

        def decorator(func: GradientFunction) -> GradientFunction:
            self.get(op_type).gradient_fn = func
            return func

        return decorator

    def kernel(self, op_type: str) -> Callable[[KernelFunction], KernelFunction]:
        """Returns a decorator attaching the decorated function as ``op_type``'s kernel."""

        def decorator(func: KernelFunction) -> KernelFunction:
            self.get(op_type).kernel = func
            return func

        return decorator


registry = OperatorRegistry()


def infer_shapes(
    op_def: OperatorDef,
    input_shapes: Sequence[TensorShape],
    operators: OperatorRegistry = registry,
) -> list[TensorShape]:
    """Shape-inference entry point for the graph's static shape check."""
    schema = operators.get(op_def.type)
    schema.verify(op_def)
    if len(input_shapes) != schema.num_inputs:
        raise ValueError(
            f"{schema.name} takes {schema.num_inputs} input shapes. Got {len(input_shapes)}"
        )
    if schema.shape_fn is None:
        raise NotImplementedError(f"{schema.name} has no shape function")
    return schema.shape_fn(op_def, input_shapes)


def get_gradient_defs(
    op_def: OperatorDef, operators: OperatorRegistry = registry
) -> list[OperatorDef]:
    """Gradient entry point for the autograd pass."""
    schema = operators.get(op_def.type)
    schema.verify(op_def)
    if schema.gradient_fn is None:
        raise NotImplementedError(f"{schema.name} has no gradient")
    return schema.gradient_fn(op_def)
