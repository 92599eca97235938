"""Shared fixtures: small datasets and discovery pinned to "no accelerators"."""

import pytest

from reduce_bench.dataset import make_dataset
from reduce_bench.measure import MeasureSettings


@pytest.fixture
def small_data():
    """1024 read-only ones; the exact sum is 1024."""
    return make_dataset(1024)


@pytest.fixture
def quick_settings():
    """Settings that finish after a handful of invocations."""
    return MeasureSettings(min_time=0.0, min_iterations=3, warmup=0)


@pytest.fixture
def no_accelerators(monkeypatch):
    """Make discovery report no CUDA device and no OpenCL target."""
    monkeypatch.setattr("reduce_bench.registry.count_cuda_devices", lambda: 0)
    monkeypatch.setattr("reduce_bench.registry.discover_opencl_targets", lambda: [])
    monkeypatch.setattr("reduce_bench.system_spec.count_cuda_devices", lambda: 0)
    monkeypatch.setattr("reduce_bench.system_spec.discover_opencl_targets", lambda: [])
