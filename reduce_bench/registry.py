"""
Case registration.

A case is an immutable descriptor pairing a label with a factory that builds
the accumulator over the shared dataset. The case list is enumerated in full
(fixed strategies, then discovered device x kernel x work-group size) before
anything is measured; accumulators are only constructed when a case runs.
"""

import re
from dataclasses import dataclass
from functools import partial
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

import numpy as np
from rich.console import Console

from .accumulators import CPU_ACCUMULATORS, CUDA_ACCUMULATORS, OPENCL_KERNELS, OpenCLAccumulator
from .accumulators.base import Accumulator
from .exceptions import ConstructionFailure
from .logging import setup_tagged_logger
from .targets import ComputeTarget, count_cuda_devices, discover_opencl_targets

logger = setup_tagged_logger(__name__)

# Candidate work-group sizes for OpenCL kernels
GROUP_SIZES = (64, 128, 256, 512)


@dataclass(frozen=True)
class Case:
    """
    One registered measurement case.

    ``threads`` pins the number of measuring threads for this case; None
    uses the run-wide setting.
    """

    name: str
    backend: str
    factory: Callable[[np.ndarray], Accumulator]
    description: str = ""
    target: Optional[ComputeTarget] = None
    kernel: Optional[str] = None
    group_size: Optional[int] = None
    threads: Optional[int] = None

    def construct(self, data: np.ndarray) -> Accumulator:
        """
        Build this case's accumulator over ``data``.

        Raises:
            ConstructionFailure: If the backend fails to initialize
        """
        try:
            return self.factory(data)
        except ConstructionFailure:
            raise
        except Exception as exc:
            raise ConstructionFailure(self.name, exc) from exc


def _fixed_case(cls: type) -> Case:
    return Case(name=cls.name, backend=cls.backend, factory=cls, description=cls.description)


def static_cases(cuda_devices: int) -> List[Case]:
    """
    Cases for the fixed strategies.

    Args:
        cuda_devices: Number of discovered CUDA devices; 0 disables CUDA cases

    Returns:
        One case per available CPU strategy, then one per CUDA strategy
    """
    cases = []
    for name, cls in CPU_ACCUMULATORS.items():
        if cls.available():
            cases.append(_fixed_case(cls))
        else:
            logger.debug(f"Skipping {name}: backend not built")

    if cuda_devices > 0:
        cases.extend(_fixed_case(cls) for cls in CUDA_ACCUMULATORS.values())

    return cases


def opencl_case_name(kernel: str, group_size: int, target: ComputeTarget) -> str:
    return f"opencl/{kernel}/{group_size}/{target.name}"


def opencl_cases(
    targets: Iterable[ComputeTarget],
    kernels: Sequence[str] = OPENCL_KERNELS,
    group_sizes: Sequence[int] = GROUP_SIZES,
) -> List[Case]:
    """
    Enumerate target x kernel x work-group size.

    Returns:
        One lazily constructed case per combination; empty when there are no targets
    """
    return [
        Case(
            name=opencl_case_name(kernel, group_size, target),
            backend="opencl",
            factory=partial(OpenCLAccumulator, target=target, kernel=kernel, group_size=group_size),
            description=f"{kernel} with {group_size}-wide work-groups on {target.name}",
            target=target,
            kernel=kernel,
            group_size=group_size,
        )
        for target in targets
        for kernel in kernels
        for group_size in group_sizes
    ]


def build_cases(
    cuda_devices: int,
    targets: Sequence[ComputeTarget],
    pattern: Optional[str] = None,
) -> List[Case]:
    """
    Full case list: fixed strategies followed by discovered OpenCL combinations.

    Args:
        cuda_devices: Discovered CUDA device count
        targets: Discovered OpenCL targets
        pattern: Optional regular expression; only matching case names are kept

    Raises:
        ValueError: If the pattern is not a valid regular expression
    """
    cases = static_cases(cuda_devices) + opencl_cases(targets)
    if pattern:
        try:
            regex = re.compile(pattern)
        except re.error as exc:
            raise ValueError(f"Invalid filter {pattern!r}: {exc}") from exc
        cases = [case for case in cases if regex.search(case.name)]
    return cases


def report_targets(cuda_devices: int, targets: Sequence[ComputeTarget], console: Optional[Console] = None) -> None:
    """Print startup diagnostics for discovered compute targets."""
    console = console or Console(stderr=True)
    for target in targets:
        console.print(
            f"[cyan]OpenCL target:[/cyan] {target.name} "
            f"[dim]|[/dim] {target.device_version} "
            f"[dim]|[/dim] driver {target.driver_version} "
            f"[dim]|[/dim] {target.language_version}"
        )
    if cuda_devices == 0:
        logger.info("No CUDA-capable devices found, skipping CUDA cases")
    else:
        logger.info(f"Found {cuda_devices} CUDA device(s)")


def discover_targets() -> Tuple[int, List[ComputeTarget]]:
    """Query the CUDA device count and the OpenCL targets."""
    return count_cuda_devices(), discover_opencl_targets()


def discover_cases(pattern: Optional[str] = None, console: Optional[Console] = None) -> List[Case]:
    """
    Run discovery, print diagnostics and return the registered cases.

    Discovery happens before registration, so no case exists for absent hardware.
    """
    cuda_devices, targets = discover_targets()
    report_targets(cuda_devices, targets, console=console)
    return build_cases(cuda_devices, targets, pattern=pattern)
