"""
OpenCL summation kernels through pyopencl.

Each case binds one kernel variant, one work-group size and one discovered
device. Every work-item strides over the input, the work-group reduces in
local memory, and the per-group partials are added on the host.

Kernel variants:
- reduce_simple: scalar strided loads
- reduce_unrolled: float4 vector loads
- reduce_kahan: compensated per-work-item accumulation
"""

import threading

import numpy as np

from .base import Accumulator
from ..exceptions import BackendUnavailable, ConstructionFailure

OPENCL_KERNELS = ("reduce_simple", "reduce_unrolled", "reduce_kahan")

# Work-groups launched per compute unit
GROUPS_PER_UNIT = 4

KERNEL_SOURCE = r"""
#define TREE_REDUCE(acc)                                                \
    scratch[lid] = (acc);                                               \
    barrier(CLK_LOCAL_MEM_FENCE);                                       \
    for (uint offset = get_local_size(0) / 2; offset > 0; offset >>= 1) {\
        if (lid < offset)                                               \
            scratch[lid] += scratch[lid + offset];                      \
        barrier(CLK_LOCAL_MEM_FENCE);                                   \
    }                                                                   \
    if (lid == 0)                                                       \
        partials[get_group_id(0)] = scratch[0];

__kernel void reduce_simple(__global const float *data,
                            __global float *partials,
                            __local float *scratch,
                            const uint n)
{
    const uint lid = get_local_id(0);
    const uint stride = get_global_size(0);
    float acc = 0.0f;
    for (uint i = get_global_id(0); i < n; i += stride)
        acc += data[i];
    TREE_REDUCE(acc)
}

__kernel void reduce_unrolled(__global const float *data,
                              __global float *partials,
                              __local float *scratch,
                              const uint n)
{
    const uint lid = get_local_id(0);
    const uint gid = get_global_id(0);
    const uint stride = get_global_size(0);
    const uint quads = n / 4;
    float4 acc4 = (float4)(0.0f);
    for (uint i = gid; i < quads; i += stride)
        acc4 += vload4(i, data);
    float acc = (acc4.x + acc4.y) + (acc4.z + acc4.w);
    for (uint i = quads * 4 + gid; i < n; i += stride)
        acc += data[i];
    TREE_REDUCE(acc)
}

__kernel void reduce_kahan(__global const float *data,
                           __global float *partials,
                           __local float *scratch,
                           const uint n)
{
    const uint lid = get_local_id(0);
    const uint stride = get_global_size(0);
    float acc = 0.0f;
    float comp = 0.0f;
    for (uint i = get_global_id(0); i < n; i += stride) {
        const float y = data[i] - comp;
        const float t = acc + y;
        comp = (t - acc) - y;
        acc = t;
    }
    TREE_REDUCE(acc)
}
"""


class OpenCLAccumulator(Accumulator):
    """
    One OpenCL kernel variant at one work-group size on one device.

    The context, program and input buffer are shared; kernel objects,
    queues and partial buffers are thread-local because setting kernel
    arguments is not thread-safe.
    """

    name = "opencl"
    description = "pyopencl work-group tree reduction"
    backend = "opencl"
    precision = "f32"

    def __init__(self, data, target, kernel: str = "reduce_simple", group_size: int = 256):
        super().__init__(data)
        if kernel not in OPENCL_KERNELS:
            raise ValueError(f"Unknown OpenCL kernel: {kernel}")
        if group_size < 1 or group_size & (group_size - 1):
            raise ValueError(f"Work-group size must be a power of two, got {group_size}")

        import pyopencl as cl
        from ..targets import resolve_device

        label = f"opencl/{kernel}/{group_size}/{target.name}"
        if data.shape[0] >= 2 ** 32:
            raise ConstructionFailure(label, OverflowError("element count exceeds uint32 indexing"))
        if group_size > target.max_group_size:
            raise ConstructionFailure(
                label, ValueError(f"work-group size {group_size} > device limit {target.max_group_size}")
            )

        self._cl = cl
        self.target = target
        self.kernel_name = kernel
        self.group_size = group_size
        self.groups = max(1, target.compute_units * GROUPS_PER_UNIT)

        try:
            device = resolve_device(target)
            self._context = cl.Context([device])
            self._program = cl.Program(self._context, KERNEL_SOURCE).build()
            self._data_buf = cl.Buffer(
                self._context,
                cl.mem_flags.READ_ONLY | cl.mem_flags.COPY_HOST_PTR,
                hostbuf=data,
            )
        except (BackendUnavailable, cl.Error) as exc:
            raise ConstructionFailure(label, exc) from exc

        self._local = threading.local()

    def _thread_state(self):
        state = self._local
        if not hasattr(state, "kernel"):
            cl = self._cl
            state.queue = cl.CommandQueue(self._context)
            state.kernel = cl.Kernel(self._program, self.kernel_name)
            state.partials = np.empty(self.groups, dtype=np.float32)
            state.partials_buf = cl.Buffer(self._context, cl.mem_flags.WRITE_ONLY, state.partials.nbytes)
        return state

    def __call__(self) -> float:
        cl = self._cl
        state = self._thread_state()
        state.kernel(
            state.queue,
            (self.groups * self.group_size,),
            (self.group_size,),
            self._data_buf,
            state.partials_buf,
            cl.LocalMemory(self.group_size * np.dtype(np.float32).itemsize),
            np.uint32(self.data.shape[0]),
        )
        cl.enqueue_copy(state.queue, state.partials, state.partials_buf)
        return float(np.add.reduce(state.partials, dtype=np.float32))
