"""
reduce_bench
============

A measurement harness comparing summation strategies for large float32
arrays: throughput (elements/s, bytes/s) and relative error against the
exact sum, across scalar, vectorized, threaded, compensated and GPU backends.

Modules:
--------
- accumulators: The Accumulator contract and its CPU, Cython, CUDA and OpenCL strategies.
- targets: Discovery of CUDA devices and OpenCL compute targets.
- registry: Static and discovered measurement cases.
- measure: The shared timing loop and its published metrics.
- runner: Runs cases over one shared dataset.
- system_spec: Hardware and numerical stack specification.
"""

__version__ = "0.1.0"

from .dataset import DEFAULT_SIZE, make_dataset, expected_sum, relative_error
from .exceptions import BackendUnavailable, ConstructionFailure
from .accumulators import Accumulator, ACCUMULATORS, list_accumulators
from .targets import ComputeTarget, discover_opencl_targets, count_cuda_devices
from .registry import Case, build_cases, discover_cases, opencl_cases, static_cases
from .measure import MeasureSettings, Measurement, measure
from .runner import run_cases, save_results
