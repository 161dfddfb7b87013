from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any, Self


@dataclass(frozen=True, slots=True)
class Argument:
    """A single named operator argument."""

    name: str
    value: int | float | str


@dataclass(frozen=True, slots=True)
class OperatorDef:
    """
    A named operator invocation inside a computation graph.

    Operator definitions are plain values: the graph engine wires tensors to
    each other purely by the names listed here, and gradient synthesis emits
    fresh instances instead of mutating the forward definition.

    Attributes:
        type: The registered operator type name (e.g. "BatchMatMul").
        inputs: Names of the input tensors, in positional order.
        outputs: Names of the output tensors, in positional order.
        args: Ordered key/value arguments configuring the operator.
        name: Optional instance name, purely informational.
    """

    type: str
    inputs: tuple[str, ...]
    outputs: tuple[str, ...]
    args: tuple[Argument, ...] = field(default_factory=tuple)
    name: str = ""

    def __post_init__(self):
        if not isinstance(self.inputs, tuple):
            raise ValueError(f"Inputs must be a tuple. Got {type(self.inputs)}")

        if not isinstance(self.outputs, tuple):
            raise ValueError(f"Outputs must be a tuple. Got {type(self.outputs)}")

        for arg in self.args:
            if not isinstance(arg, Argument):
                raise ValueError(f"Arguments must be Argument instances. Got {type(arg)}")

    @classmethod
    def create(
        cls,
        op_type: str,
        inputs: Iterable[str],
        outputs: Iterable[str],
        args: Iterable[Argument] | dict[str, Any] = (),
        name: str = "",
    ) -> Self:
        """Build a definition from loose iterables, or a dict of arguments."""
        if isinstance(args, dict):
            args = (Argument(k, v) for k, v in args.items())
        return cls(op_type, tuple(inputs), tuple(outputs), tuple(args), name)

    def has_argument(self, name: str) -> bool:
        return any(arg.name == name for arg in self.args)

    def get_argument(self, name: str, default: Any = None) -> Any:
        # last occurrence wins, matching how repeated flags are usually read
        value = default
        for arg in self.args:
            if arg.name == name:
                value = arg.value
        return value

    @property
    def arg_dict(self) -> dict[str, Any]:
        return {arg.name: arg.value for arg in self.args}


@dataclass(frozen=True, slots=True)
class OperatorConfig:
    """
    Read-only flags of one batched matmul instance.

    Attributes:
        trans_a: Transpose the last two axes of A before multiplying.
        trans_b: Transpose the last two axes of B before multiplying.
        broadcast: NumPy-matmul-style shape broadcasting. Disables gradients.
        use_scratch: Opaque scratch-buffer hint, propagated to gradient ops.
    """

    trans_a: bool = False
    trans_b: bool = False
    broadcast: bool = False
    use_scratch: bool = False

    @classmethod
    def from_def(cls, op_def: OperatorDef) -> Self:
        return cls(
            trans_a=bool(int(op_def.get_argument("trans_a", 0))),
            trans_b=bool(int(op_def.get_argument("trans_b", 0))),
            broadcast=bool(int(op_def.get_argument("broadcast", 0))),
            use_scratch=op_def.has_argument("use_scratch"),
        )

    def to_args(self) -> tuple[Argument, ...]:
        """Arguments for the flags that are set; unset flags take the default."""
        args = []
        if self.trans_a:
            args.append(Argument("trans_a", 1))
        if self.trans_b:
            args.append(Argument("trans_b", 1))
        if self.broadcast:
            args.append(Argument("broadcast", 1))
        if self.use_scratch:
            args.append(Argument("use_scratch", 1))
        return tuple(args)
