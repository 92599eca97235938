"""
Summation strategies.

All strategies derive from Accumulator and share one contract:
construct over a read-only array, call to get the sum.

CPU (always registered):
1. serial_f32 / serial_f64 - sequential loop
2. threads_f32 / threads_f64 - numba prange chunked reduction
3. unseq_f32 / unseq_f64 - numpy pairwise vectorized reduction
4. simd_f32 - lane-blocked fastmath reduction
5. simd_f32_kahan - lane-blocked compensated reduction
6. simd_f64_wide - float32 input, float64 lanes

Cython (require build):
7. cython_f32 / cython_f32_kahan

GPU (require a device):
8. cuda_cub / cuda_kernel - CuPy
9. OpenCLAccumulator - pyopencl, one case per device x kernel x group size

Usage:
    from reduce_bench.accumulators import ACCUMULATORS
    from reduce_bench.dataset import make_dataset

    data = make_dataset(1 << 20)
    total = ACCUMULATORS['simd_f32_kahan'](data)()
"""

from typing import Dict

from .base import Accumulator
from .cpu import (
    SerialF32,
    SerialF64,
    ThreadsF32,
    ThreadsF64,
    UnseqF32,
    UnseqF64,
    SimdF32,
    SimdF32Kahan,
    SimdF64Wide,
)
from .cython_reduce import CythonF32, CythonF32Kahan
from .cuda import CudaCub, CudaKernel
from .opencl import OpenCLAccumulator, OPENCL_KERNELS


# Fixed strategies in registration order; availability is checked by the registry
CPU_ACCUMULATORS: Dict[str, type] = {
    cls.name: cls
    for cls in (
        SerialF32,
        SerialF64,
        ThreadsF32,
        ThreadsF64,
        UnseqF32,
        UnseqF64,
        SimdF32,
        SimdF32Kahan,
        SimdF64Wide,
        CythonF32,
        CythonF32Kahan,
    )
}

CUDA_ACCUMULATORS: Dict[str, type] = {
    cls.name: cls
    for cls in (CudaCub, CudaKernel)
}

ACCUMULATORS: Dict[str, type] = {**CPU_ACCUMULATORS, **CUDA_ACCUMULATORS}


def list_accumulators() -> Dict[str, Dict[str, str]]:
    """
    Get metadata for all fixed strategies.

    Returns:
        Dict mapping name to a dict with name, description, backend, precision.
    """
    return {
        name: {
            'name': cls.name,
            'description': cls.description,
            'backend': cls.backend,
            'precision': cls.precision,
        }
        for name, cls in ACCUMULATORS.items()
    }
