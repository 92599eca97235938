"""
Cython reduction accumulators.

Wrappers for the compiled ``_cython.reduce`` kernels. The accumulators report
themselves unavailable when the extension was not built, so their cases are
never registered.
"""

import importlib.util

from .base import Accumulator


def _extension_built() -> bool:
    return importlib.util.find_spec("reduce_bench.accumulators._cython.reduce") is not None


class CythonF32(Accumulator):
    """Cython sequential float32 loop over a typed memoryview."""

    name = "cython_f32"
    description = "Cython sequential loop, float32 accumulator"
    precision = "f32"

    def __init__(self, data):
        super().__init__(data)
        # Raises ImportError if not compiled
        from ._cython.reduce import sum_f32
        self._kernel = sum_f32

    @classmethod
    def available(cls) -> bool:
        return _extension_built()

    def __call__(self) -> float:
        return float(self._kernel(self.data))


class CythonF32Kahan(Accumulator):
    """Cython Kahan compensated float32 loop."""

    name = "cython_f32_kahan"
    description = "Cython Kahan compensated float32 sum"
    precision = "f32"

    def __init__(self, data):
        super().__init__(data)
        from ._cython.reduce import sum_f32_kahan
        self._kernel = sum_f32_kahan

    @classmethod
    def available(cls) -> bool:
        return _extension_built()

    def __call__(self) -> float:
        return float(self._kernel(self.data))
