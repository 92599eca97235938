"""
targets.py
==========

Discovery of non-CPU compute targets.

Runs once at startup, before any case is registered, so a case can never be
registered for hardware that is not present.

Classes:
--------
- ComputeTarget: Immutable description of one OpenCL device.

Functions:
----------
- discover_opencl_targets: Enumerate OpenCL GPU devices on every platform.
- count_cuda_devices: Number of CUDA devices visible through CuPy.
- resolve_device: Map a ComputeTarget back to its live pyopencl device.
"""
# standard imports
from dataclasses import dataclass, asdict
from typing import Any, Dict, List

# local imports
from .exceptions import BackendUnavailable
from .logging import setup_tagged_logger

logger = setup_tagged_logger(__name__)


@dataclass(frozen=True)
class ComputeTarget:
    """One discovered OpenCL device and the metadata reported at startup."""

    platform: str
    name: str
    device_version: str
    driver_version: str
    language_version: str
    platform_index: int
    device_index: int
    compute_units: int = 1
    max_group_size: int = 1024

    def describe(self) -> str:
        return (
            f"{self.name} ({self.platform}): {self.device_version}, "
            f"driver {self.driver_version}, {self.language_version}"
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _opencl():
    try:
        import pyopencl
    except ImportError as exc:
        raise BackendUnavailable("opencl", f"pyopencl not installed ({exc})") from exc
    return pyopencl


def _opencl_platforms(cl) -> list:
    try:
        return cl.get_platforms()
    except cl.Error as exc:
        raise BackendUnavailable("opencl", f"no OpenCL platform ({exc})") from exc


def discover_opencl_targets() -> List[ComputeTarget]:
    """
    Enumerate OpenCL GPU devices.

    Returns:
        One ComputeTarget per GPU device of every platform; empty when
        pyopencl or an OpenCL runtime is missing.
    """
    try:
        cl = _opencl()
        platforms = _opencl_platforms(cl)
    except BackendUnavailable as exc:
        logger.debug(str(exc))
        return []

    targets = []
    for platform_index, platform in enumerate(platforms):
        try:
            devices = platform.get_devices(device_type=cl.device_type.GPU)
        except cl.Error:
            # Platforms without GPU devices report DEVICE_NOT_FOUND
            logger.debug(f"No GPU devices on OpenCL platform {platform.name}")
            continue

        for device_index, device in enumerate(devices):
            targets.append(ComputeTarget(
                platform=platform.name.strip(),
                name=device.name.strip(),
                device_version=device.version.strip(),
                driver_version=device.driver_version.strip(),
                language_version=device.opencl_c_version.strip(),
                platform_index=platform_index,
                device_index=device_index,
                compute_units=device.max_compute_units,
                max_group_size=device.max_work_group_size,
            ))

    return targets


def resolve_device(target: ComputeTarget):
    """
    Look up the pyopencl device a target was discovered from.

    Raises:
        BackendUnavailable: If the device is no longer enumerable
    """
    cl = _opencl()
    platforms = _opencl_platforms(cl)
    try:
        platform = platforms[target.platform_index]
        return platform.get_devices(device_type=cl.device_type.GPU)[target.device_index]
    except (IndexError, cl.Error) as exc:
        raise BackendUnavailable("opencl", f"device {target.name} disappeared") from exc


def count_cuda_devices() -> int:
    """
    Count CUDA devices through the CuPy runtime.

    Returns:
        Device count, 0 when CuPy, the driver or the runtime is missing.
    """
    try:
        import cupy
    except ImportError:
        logger.debug("cupy not installed, CUDA cases disabled")
        return 0

    try:
        return cupy.cuda.runtime.getDeviceCount()
    except cupy.cuda.runtime.CUDARuntimeError as exc:
        logger.debug(f"CUDA runtime unavailable: {exc}")
        return 0
