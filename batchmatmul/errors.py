from __future__ import annotations


class BatchMatMulError(Exception):
    """Base class for every error raised by the batched matmul operator."""


class ShapeError(BatchMatMulError, ValueError):
    """Operand shapes are incompatible with the operator's configuration."""


class UnsupportedGradientError(BatchMatMulError, NotImplementedError):
    """A gradient was requested for a configuration that has none."""


class ComputeError(BatchMatMulError, RuntimeError):
    """The dense 2-D primitive failed while computing a batch slice."""
