"""
CPU summation strategies.

Scalar, thread-parallel and lane-blocked ("SIMD") kernels are compiled with
numba; the unsequenced variants use NumPy's pairwise ``add.reduce``.

Numerical behaviour differs on purpose:
- serial_f32 accumulates rounding error linearly and stalls at 2**24 for
  all-ones input
- threads_* and unseq_* reduce through a tree, so error grows with its depth
- simd_f32_kahan carries a running compensation term per lane
- simd_f64_wide folds float32 input into float64 lanes
"""

import contextlib
import threading

import numba
import numpy as np
from numba import njit, prange

from .base import Accumulator

SIMD_LANES_F32 = 8
SIMD_LANES_F64 = 4

# The workqueue threading layer aborts the process on concurrent parallel launches
_workqueue_lock = threading.Lock()


@njit(cache=True)
def _serial_f32(data):
    acc = np.float32(0.0)
    for i in range(data.shape[0]):
        acc += data[i]
    return acc


@njit(cache=True)
def _serial_f64(data):
    acc = 0.0
    for i in range(data.shape[0]):
        acc += data[i]
    return acc


@njit(parallel=True, cache=True)
def _threads_f32(data, chunks):
    n = data.shape[0]
    step = (n + chunks - 1) // chunks
    partials = np.zeros(chunks, dtype=np.float32)
    for c in prange(chunks):
        lo = c * step
        hi = min(lo + step, n)
        acc = np.float32(0.0)
        for i in range(lo, hi):
            acc += data[i]
        partials[c] = acc
    total = np.float32(0.0)
    for c in range(chunks):
        total += partials[c]
    return total


@njit(parallel=True, cache=True)
def _threads_f64(data, chunks):
    n = data.shape[0]
    step = (n + chunks - 1) // chunks
    partials = np.zeros(chunks, dtype=np.float64)
    for c in prange(chunks):
        lo = c * step
        hi = min(lo + step, n)
        acc = 0.0
        for i in range(lo, hi):
            acc += data[i]
        partials[c] = acc
    total = 0.0
    for c in range(chunks):
        total += partials[c]
    return total


@njit(fastmath=True, cache=True)
def _simd_f32(data):
    lanes = np.zeros(SIMD_LANES_F32, dtype=np.float32)
    n = data.shape[0]
    body = n - n % SIMD_LANES_F32
    for i in range(0, body, SIMD_LANES_F32):
        for j in range(SIMD_LANES_F32):
            lanes[j] += data[i + j]
    acc = np.float32(0.0)
    for j in range(SIMD_LANES_F32):
        acc += lanes[j]
    for i in range(body, n):
        acc += data[i]
    return acc


# No fastmath here: reassociation would cancel the compensation term
@njit(cache=True)
def _simd_f32_kahan(data):
    sums = np.zeros(SIMD_LANES_F32, dtype=np.float32)
    comps = np.zeros(SIMD_LANES_F32, dtype=np.float32)
    n = data.shape[0]
    body = n - n % SIMD_LANES_F32
    for i in range(0, body, SIMD_LANES_F32):
        for j in range(SIMD_LANES_F32):
            y = data[i + j] - comps[j]
            t = sums[j] + y
            comps[j] = (t - sums[j]) - y
            sums[j] = t

    total = np.float32(0.0)
    comp = np.float32(0.0)
    for j in range(SIMD_LANES_F32):
        y = sums[j] - comp
        t = total + y
        comp = (t - total) - y
        total = t
    for i in range(body, n):
        y = data[i] - comp
        t = total + y
        comp = (t - total) - y
        total = t
    return total


@njit(fastmath=True, cache=True)
def _simd_f64_wide(data):
    lanes = np.zeros(SIMD_LANES_F64, dtype=np.float64)
    n = data.shape[0]
    body = n - n % SIMD_LANES_F64
    for i in range(0, body, SIMD_LANES_F64):
        for j in range(SIMD_LANES_F64):
            lanes[j] += data[i + j]
    acc = 0.0
    for j in range(SIMD_LANES_F64):
        acc += lanes[j]
    for i in range(body, n):
        acc += data[i]
    return acc


class SerialF32(Accumulator):
    """Naive sequential loop with a float32 running sum."""

    name = "serial_f32"
    description = "Sequential loop, float32 accumulator"
    precision = "f32"

    def __call__(self) -> float:
        return float(_serial_f32(self.data))


class SerialF64(Accumulator):
    """Sequential loop with a float64 running sum."""

    name = "serial_f64"
    description = "Sequential loop, float64 accumulator"
    precision = "f64"

    def __call__(self) -> float:
        return float(_serial_f64(self.data))


def _clamp_chunks(data: np.ndarray, chunks) -> int:
    return max(1, min(chunks or numba.get_num_threads(), data.shape[0]))


def _launch_guard():
    """
    Context manager to hold around a parallel kernel launch.

    Only valid once a parallel kernel has run, since numba picks its
    threading layer lazily.
    """
    if numba.threading_layer() == "workqueue":
        return _workqueue_lock
    return contextlib.nullcontext()


class ThreadsF32(Accumulator):
    """
    Thread-parallel reduction.

    The range is split into one contiguous chunk per numba worker thread;
    chunk partials are combined sequentially, so the result depends on the
    thread count but not on scheduling. Launches from several measuring
    threads are serialized when numba runs on its workqueue layer.
    """

    name = "threads_f32"
    description = "numba prange chunks, float32 partials"
    precision = "f32"

    def __init__(self, data: np.ndarray, chunks: int = None):
        super().__init__(data)
        self.chunks = _clamp_chunks(data, chunks)
        _threads_f32(data, self.chunks)
        self._guard = _launch_guard()

    def __call__(self) -> float:
        with self._guard:
            return float(_threads_f32(self.data, self.chunks))


class ThreadsF64(Accumulator):
    name = "threads_f64"
    description = "numba prange chunks, float64 partials"
    precision = "f64"

    def __init__(self, data: np.ndarray, chunks: int = None):
        super().__init__(data)
        self.chunks = _clamp_chunks(data, chunks)
        _threads_f64(data, self.chunks)
        self._guard = _launch_guard()

    def __call__(self) -> float:
        with self._guard:
            return float(_threads_f64(self.data, self.chunks))



class UnseqF32(Accumulator):
    """NumPy's vectorized pairwise reduction in float32."""

    name = "unseq_f32"
    description = "numpy.add.reduce (pairwise, vectorized), float32"
    precision = "f32"

    def __call__(self) -> float:
        return float(np.add.reduce(self.data, dtype=np.float32))


class UnseqF64(Accumulator):
    name = "unseq_f64"
    description = "numpy.add.reduce (pairwise, vectorized), float64"
    precision = "f64"

    def __call__(self) -> float:
        return float(np.add.reduce(self.data, dtype=np.float64))


class SimdF32(Accumulator):
    name = "simd_f32"
    description = f"{SIMD_LANES_F32}-lane blocked float32 sum (fastmath)"
    precision = "f32"

    def __call__(self) -> float:
        return float(_simd_f32(self.data))


class SimdF32Kahan(Accumulator):
    """Compensated summation over float32 lanes; error growth independent of N."""

    name = "simd_f32_kahan"
    description = f"{SIMD_LANES_F32}-lane Kahan compensated float32 sum"
    precision = "f32"

    def __call__(self) -> float:
        return float(_simd_f32_kahan(self.data))


class SimdF64Wide(Accumulator):
    name = "simd_f64_wide"
    description = f"float32 input folded into {SIMD_LANES_F64} float64 lanes"
    precision = "f64"

    def __call__(self) -> float:
        return float(_simd_f64_wide(self.data))
