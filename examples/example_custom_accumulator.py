"""
example_custom_accumulator.py
=============================

Measures a user-defined summation strategy next to the built-in ones.
Any class implementing the Accumulator contract can be wrapped in a Case.
"""

import math

from reduce_bench.accumulators.base import Accumulator
from reduce_bench.logging import setup_tagged_logger
from reduce_bench.measure import MeasureSettings
from reduce_bench.registry import Case, static_cases
from reduce_bench.runner import run_cases

logger = setup_tagged_logger()


class FsumAccumulator(Accumulator):
    """Exactly rounded sum through math.fsum (slow, but error-free)."""

    name = "python_fsum"
    description = "math.fsum over the array"
    precision = "f64"

    def __call__(self) -> float:
        return math.fsum(self.data)


def main():
    cases = [case for case in static_cases(cuda_devices=0) if case.name.startswith("serial")]
    cases.append(Case(name=FsumAccumulator.name, backend="cpu", factory=FsumAccumulator))

    results = run_cases(cases, size=1 << 20, settings=MeasureSettings(min_time=0.2))

    for name, result in results['results'].items():
        logger.info(f"{name}: {result['elements_per_second'] / 1e6:.1f} M elements/s, "
                    f"error {result['error_percent']:.3g}%")


if __name__ == "__main__":
    main()
