"""
Timed measurement loop shared by every case.

The loop invokes one accumulator repeatedly until both a minimum wall-clock
time and a minimum iteration count have been reached. It may run on several
threads at once for the same accumulator; each thread owns its invocation
sequence and writes only its own slot, and only the lead thread (index 0)
publishes the derived metrics.
"""

import threading
import time
from dataclasses import dataclass, asdict
from typing import Any, Callable, Dict, List, Optional

from .dataset import relative_error

# Shortest interval the timer can tell apart from zero
_CLOCK_RESOLUTION = time.get_clock_info("perf_counter").resolution


@dataclass
class MeasureSettings:
    """
    Knobs of the timing loop.

    Attributes:
        min_time: Minimum wall-clock seconds per thread
        min_iterations: Minimum invocations per thread
        max_iterations: Hard cap on invocations per thread
        warmup: Untimed invocations per thread before timing starts
        threads: Measuring threads running the loop concurrently
    """

    min_time: float = 0.5
    min_iterations: int = 1
    max_iterations: int = 1_000_000_000
    warmup: int = 1
    threads: int = 1

    def __post_init__(self):
        if self.min_time < 0:
            raise ValueError(f"min_time must be >= 0, got {self.min_time}")
        if self.min_iterations < 1:
            raise ValueError(f"min_iterations must be >= 1, got {self.min_iterations}")
        if self.max_iterations < self.min_iterations:
            raise ValueError("max_iterations must be >= min_iterations")
        if self.warmup < 0:
            raise ValueError(f"warmup must be >= 0, got {self.warmup}")
        if self.threads < 1:
            raise ValueError(f"threads must be >= 1, got {self.threads}")


@dataclass
class Measurement:
    """Metrics published for one case. Only the latest values are kept."""

    name: str
    threads: int
    iterations: int
    elapsed_seconds: float
    last_sum: float
    error: float
    elements_per_second: float
    bytes_per_second: float

    @property
    def error_percent(self) -> float:
        return self.error * 100.0

    @property
    def counters(self) -> Dict[str, float]:
        """The three reported counters keyed by their published names."""
        return {
            "elements/s": self.elements_per_second,
            "bytes/s": self.bytes_per_second,
            "error,%": self.error_percent,
        }

    def to_dict(self) -> Dict[str, Any]:
        out = asdict(self)
        out["error_percent"] = self.error_percent
        return out


@dataclass
class _ThreadRecord:
    iterations: int = 0
    elapsed: float = 0.0
    last_sum: float = 0.0
    error: float = 0.0


def _run_loop(accumulator: Callable[[], float], expected: float, settings: MeasureSettings,
              record: _ThreadRecord) -> None:
    for _ in range(settings.warmup):
        accumulator()

    iterations = 0
    result = 0.0
    error = 0.0
    start = time.perf_counter()
    while True:
        result = accumulator()
        error = relative_error(expected, result)
        iterations += 1
        elapsed = time.perf_counter() - start
        if iterations >= settings.max_iterations:
            break
        if iterations >= settings.min_iterations and elapsed >= settings.min_time:
            break

    record.iterations = iterations
    record.elapsed = elapsed
    record.last_sum = result
    record.error = error


def measure(
    accumulator: Callable[[], float],
    size: int,
    expected: float,
    itemsize: int = 4,
    settings: Optional[MeasureSettings] = None,
    name: str = "",
) -> Measurement:
    """
    Measure one accumulator.

    Args:
        accumulator: Zero-argument callable returning the sum
        size: Elements reduced per invocation
        expected: Exact sum the result is compared against
        itemsize: Bytes per element of the dataset
        settings: Loop settings (default: MeasureSettings())
        name: Case label recorded in the result

    Returns:
        Measurement published by the lead thread
    """
    settings = settings or MeasureSettings()
    records = [_ThreadRecord() for _ in range(settings.threads)]

    if settings.threads == 1:
        _run_loop(accumulator, expected, settings, records[0])
        return _publish(name, records, size, itemsize)

    start_barrier = threading.Barrier(settings.threads)
    done_barrier = threading.Barrier(settings.threads)
    failures: List[Exception] = []
    published: List[Measurement] = []

    def worker(index: int) -> None:
        try:
            start_barrier.wait()
            _run_loop(accumulator, expected, settings, records[index])
        except Exception as exc:
            failures.append(exc)
            start_barrier.abort()
            done_barrier.abort()
            return
        try:
            done_barrier.wait()
        except threading.BrokenBarrierError:
            return
        if index == 0:
            published.append(_publish(name, records, size, itemsize))

    workers = [
        threading.Thread(target=worker, args=(i,), name=f"measure-{name}-{i}")
        for i in range(settings.threads)
    ]
    for thread in workers:
        thread.start()
    for thread in workers:
        thread.join()

    # BrokenBarrierError comes from threads released by abort()
    errors = [f for f in failures if not isinstance(f, threading.BrokenBarrierError)]
    if errors:
        raise errors[0]
    return published[0]


def _publish(name: str, records: List[_ThreadRecord], size: int, itemsize: int) -> Measurement:
    """Aggregate per-thread records; called from the lead context only."""
    lead = records[0]
    total_iterations = sum(r.iterations for r in records)
    elapsed = max(max(r.elapsed for r in records), _CLOCK_RESOLUTION)
    elements = float(total_iterations) * size
    rate = elements / elapsed

    return Measurement(
        name=name,
        threads=len(records),
        iterations=total_iterations,
        elapsed_seconds=elapsed,
        last_sum=lead.last_sum,
        error=lead.error,
        elements_per_second=rate,
        bytes_per_second=rate * itemsize,
    )
