from __future__ import annotations

from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True, slots=True)
class TensorShape:
    """
    Static description of a tensor: its dimensions and element type.

    Shapes are produced and consumed by shape inference before any data exists,
    so they never hold a reference to an array.

    Attributes:
        dims: The dimensions, outermost first. Every entry is a non-negative int.
        dtype: The element type, carried through inference unchanged.
    """

    dims: tuple[int, ...]
    dtype: np.dtype = np.dtype(np.float32)

    def __post_init__(self):
        dims = tuple(int(d) for d in self.dims)
        for i, d in enumerate(dims):
            if d < 0:
                raise ValueError(f"Dimension #{i} must be non-negative. Got {d}")
        # frozen dataclass, normalise through object.__setattr__
        object.__setattr__(self, "dims", dims)
        object.__setattr__(self, "dtype", np.dtype(self.dtype))

    @classmethod
    def of(cls, value: np.ndarray) -> TensorShape:
        """Shape of an existing array."""
        return cls(tuple(value.shape), value.dtype)

    @property
    def rank(self) -> int:
        return len(self.dims)

    @property
    def batch_dims(self) -> tuple[int, ...]:
        """Leading dimensions, excluding the trailing (rows, cols) pair."""
        return self.dims[:-2]

    def __repr__(self) -> str:
        return f"TensorShape(dims={self.dims}, dtype={self.dtype})"
