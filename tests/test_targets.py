"""Tests for compute target discovery, using stand-in runtime modules."""

import sys
import types

import pytest

from reduce_bench.exceptions import BackendUnavailable
from reduce_bench.targets import (
    ComputeTarget,
    count_cuda_devices,
    discover_opencl_targets,
    resolve_device,
)


class FakeCLError(Exception):
    pass


def _device(name):
    return types.SimpleNamespace(
        name=f"  {name} ",
        version="OpenCL 3.0 ",
        driver_version="535.54",
        opencl_c_version="OpenCL C 1.2 ",
        max_compute_units=40,
        max_work_group_size=1024,
    )


def _platform(name, devices):
    def get_devices(device_type=None):
        if not devices:
            raise FakeCLError("DEVICE_NOT_FOUND")
        return devices
    return types.SimpleNamespace(name=name, get_devices=get_devices)


def _fake_opencl(platforms=None, error=None):
    module = types.ModuleType("pyopencl")
    module.Error = FakeCLError
    module.device_type = types.SimpleNamespace(GPU=4)

    def get_platforms():
        if error is not None:
            raise error
        return platforms
    module.get_platforms = get_platforms
    return module


def test_missing_pyopencl_yields_no_targets(monkeypatch) -> None:
    monkeypatch.setitem(sys.modules, "pyopencl", None)
    assert discover_opencl_targets() == []


def test_missing_platform_yields_no_targets(monkeypatch) -> None:
    monkeypatch.setitem(sys.modules, "pyopencl", _fake_opencl(error=FakeCLError("PLATFORM_NOT_FOUND_KHR")))
    assert discover_opencl_targets() == []


def test_targets_carry_device_metadata(monkeypatch) -> None:
    platforms = [
        _platform("CPU Only", []),
        _platform("GPU Vendor", [_device("Card A"), _device("Card B")]),
    ]
    monkeypatch.setitem(sys.modules, "pyopencl", _fake_opencl(platforms))

    targets = discover_opencl_targets()

    assert [t.name for t in targets] == ["Card A", "Card B"]
    first = targets[0]
    assert first.platform == "GPU Vendor"
    assert first.device_version == "OpenCL 3.0"
    assert first.driver_version == "535.54"
    assert first.language_version == "OpenCL C 1.2"
    assert (first.platform_index, first.device_index) == (1, 0)
    assert first.compute_units == 40
    assert "Card A" in first.describe()


def test_resolve_device(monkeypatch) -> None:
    card = _device("Card A")
    monkeypatch.setitem(sys.modules, "pyopencl", _fake_opencl([_platform("GPU Vendor", [card])]))

    target = discover_opencl_targets()[0]
    assert resolve_device(target) is card

    missing = ComputeTarget("GPU Vendor", "Gone", "", "", "", platform_index=0, device_index=5)
    with pytest.raises(BackendUnavailable):
        resolve_device(missing)


def test_missing_cupy_means_zero_cuda_devices(monkeypatch) -> None:
    monkeypatch.setitem(sys.modules, "cupy", None)
    assert count_cuda_devices() == 0


def _fake_cupy(count=None, error=None):
    class CUDARuntimeError(RuntimeError):
        pass

    def get_device_count():
        if error:
            raise CUDARuntimeError(error)
        return count

    runtime = types.SimpleNamespace(getDeviceCount=get_device_count, CUDARuntimeError=CUDARuntimeError)
    module = types.ModuleType("cupy")
    module.cuda = types.SimpleNamespace(runtime=runtime)
    return module


def test_cuda_runtime_error_means_zero_devices(monkeypatch) -> None:
    monkeypatch.setitem(sys.modules, "cupy", _fake_cupy(error="cudaErrorNoDevice"))
    assert count_cuda_devices() == 0


def test_cuda_device_count(monkeypatch) -> None:
    monkeypatch.setitem(sys.modules, "cupy", _fake_cupy(count=2))
    assert count_cuda_devices() == 2


def test_target_to_dict_round_trips_fields() -> None:
    target = ComputeTarget("P", "D", "OpenCL 3.0", "1.0", "OpenCL C 3.0", 0, 0)
    assert target.to_dict()["name"] == "D"
