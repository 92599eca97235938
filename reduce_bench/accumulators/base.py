"""
Base class for summation strategies.

Every accumulator implements the same two-step contract:
- construction over a contiguous read-only range (backend setup happens here)
- __call__(): one full reduction pass returning a Python float
"""

from abc import ABC, abstractmethod

import numpy as np


class Accumulator(ABC):
    """
    Abstract summation strategy.

    Attributes:
        name: Short identifier used as the case label
        description: Human-readable description
        backend: One of "cpu", "cuda", "opencl"
        precision: Accumulator precision, "f32" or "f64"
    """

    name: str = ""
    description: str = ""
    backend: str = "cpu"
    precision: str = "f32"

    def __init__(self, data: np.ndarray):
        """
        Bind the accumulator to the range it reduces.

        Args:
            data: Contiguous 1-D array; never written to
        """
        if data.ndim != 1 or not data.flags.c_contiguous:
            raise ValueError(f"{type(self).__name__} needs a contiguous 1-D array")
        self.data = data

    @classmethod
    def available(cls) -> bool:
        """Whether the runtime this strategy needs is present. Checked before registration."""
        return True

    @abstractmethod
    def __call__(self) -> float:
        """Reduce the whole range once and return the sum."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(size={self.data.shape[0]})"
