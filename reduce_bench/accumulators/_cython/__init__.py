"""
Cython-compiled reduction kernels.

- reduce: sequential float32 sum and Kahan compensated float32 sum over
  read-only typed memoryviews

Kernels are imported by their wrapper accumulators only when the
extension has been built.
"""
