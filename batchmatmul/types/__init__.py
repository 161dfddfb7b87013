from .operator import Argument, OperatorConfig, OperatorDef
from .shape import TensorShape

__all__ = [
    "Argument",
    "OperatorConfig",
    "OperatorDef",
    "TensorShape",
]
