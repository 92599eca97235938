"""
CUDA summation strategies through CuPy.

- cuda_cub: library reduction (``cupy.sum``, dispatched to CUB)
- cuda_kernel: custom ``cupy.ReductionKernel`` with a float32 accumulator

The input is copied to the current device once at construction; every call
reduces the device-resident copy and synchronizes before returning.
"""

from .base import Accumulator
from ..exceptions import ConstructionFailure


def _cupy():
    # Imported lazily so CPU-only installs never load CUDA libraries
    import cupy
    return cupy


class CudaCub(Accumulator):
    """CuPy/CUB device-wide reduction."""

    name = "cuda_cub"
    description = "cupy.sum (CUB device reduction), float32"
    backend = "cuda"
    precision = "f32"

    def __init__(self, data):
        super().__init__(data)
        cp = _cupy()
        try:
            self._device_data = cp.asarray(data)
        except cp.cuda.memory.OutOfMemoryError as exc:
            raise ConstructionFailure(self.name, exc) from exc
        self._cp = cp

    def __call__(self) -> float:
        result = self._cp.sum(self._device_data, dtype=self._cp.float32)
        return float(result.get())


class CudaKernel(Accumulator):
    """Custom reduction kernel compiled by CuPy at construction."""

    name = "cuda_kernel"
    description = "cupy.ReductionKernel, float32 accumulator"
    backend = "cuda"
    precision = "f32"

    def __init__(self, data):
        super().__init__(data)
        cp = _cupy()
        try:
            self._device_data = cp.asarray(data)
        except cp.cuda.memory.OutOfMemoryError as exc:
            raise ConstructionFailure(self.name, exc) from exc
        self._kernel = cp.ReductionKernel(
            "float32 x",
            "float32 y",
            "x",
            "a + b",
            "y = a",
            "0",
            "reduce_sum_f32",
        )
        # Compile now rather than inside the timed loop
        self._kernel(self._device_data[:1])

    def __call__(self) -> float:
        return float(self._kernel(self._device_data).get())
