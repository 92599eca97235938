"""Tests for the shared timing loop."""

import json
import os
import subprocess
import sys
import threading

import pytest

from reduce_bench.accumulators import cpu
from reduce_bench.accumulators.cpu import SerialF32, ThreadsF32, ThreadsF64, UnseqF32
from reduce_bench.dataset import make_dataset
from reduce_bench.dataset import expected_sum
from reduce_bench.measure import MeasureSettings, _publish, _ThreadRecord, measure


def test_scalar_small_scenario(small_data, quick_settings) -> None:
    """N = 1024 of 1.0: expected 1024, zero error, positive throughput."""
    result = measure(SerialF32(small_data), size=1024, expected=expected_sum(1024),
                     itemsize=small_data.itemsize, settings=quick_settings, name="serial_f32")

    assert result.name == "serial_f32"
    assert result.last_sum == 1024.0
    assert result.error == 0.0
    assert result.error_percent == 0.0
    assert result.iterations == 3
    assert result.elements_per_second > 0
    assert result.bytes_per_second == pytest.approx(result.elements_per_second * 4)


def test_counters_use_published_names(small_data, quick_settings) -> None:
    result = measure(SerialF32(small_data), size=1024, expected=1024.0, settings=quick_settings)
    assert set(result.counters) == {"elements/s", "bytes/s", "error,%"}


def test_error_is_relative_to_expected(small_data, quick_settings) -> None:
    """The error is measured, never asserted: a wrong sum only shows up as a percentage."""
    result = measure(lambda: 900.0, size=1024, expected=1000.0, settings=quick_settings)
    assert result.error == pytest.approx(0.1)
    assert result.error_percent == pytest.approx(10.0)


def test_loop_runs_until_min_time() -> None:
    settings = MeasureSettings(min_time=0.05, min_iterations=1, warmup=0)
    result = measure(lambda: 1.0, size=1, expected=1.0, settings=settings)
    assert result.elapsed_seconds >= 0.05
    assert result.iterations > 1


def test_max_iterations_caps_the_loop() -> None:
    settings = MeasureSettings(min_time=60.0, min_iterations=1, max_iterations=5, warmup=0)
    result = measure(lambda: 1.0, size=1, expected=1.0, settings=settings)
    assert result.iterations == 5


def test_warmup_calls_are_not_counted() -> None:
    calls = []

    def accumulator():
        calls.append(1)
        return 1.0

    settings = MeasureSettings(min_time=0.0, min_iterations=2, warmup=3)
    result = measure(accumulator, size=1, expected=1.0, settings=settings)
    assert len(calls) == 5
    assert result.iterations == 2


def test_multithreaded_run_publishes_once(small_data) -> None:
    """Every thread runs its own loop; the lead publishes the aggregate once."""
    callers = set()
    lock = threading.Lock()
    accumulator = UnseqF32(small_data)

    def tracked():
        with lock:
            callers.add(threading.current_thread().name)
        return accumulator()

    settings = MeasureSettings(min_time=0.0, min_iterations=4, warmup=0, threads=3)
    result = measure(tracked, size=1024, expected=1024.0, settings=settings, name="unseq_f32")

    assert result.threads == 3
    assert result.iterations == 12
    assert result.last_sum == 1024.0
    assert len(callers) == 3


def test_multithreaded_failure_propagates() -> None:
    def failing():
        if threading.current_thread().name.endswith("-1"):
            raise RuntimeError("scratch buffer lost")
        return 1.0

    settings = MeasureSettings(min_time=0.0, min_iterations=2, warmup=0, threads=2)
    with pytest.raises(RuntimeError, match="scratch buffer lost"):
        measure(failing, size=1, expected=1.0, settings=settings, name="flaky")


@pytest.mark.parametrize("kwargs", [
    {"min_time": -1.0},
    {"min_iterations": 0},
    {"min_iterations": 10, "max_iterations": 5},
    {"warmup": -1},
    {"threads": 0},
])
def test_invalid_settings(kwargs) -> None:
    with pytest.raises(ValueError):
        MeasureSettings(**kwargs)


@pytest.mark.parametrize("cls", [ThreadsF32, ThreadsF64], ids=lambda cls: cls.name)
def test_parallel_kernel_measured_from_several_threads(cls) -> None:
    """numba parallel kernels stay correct when several measuring threads invoke them."""
    size = 1 << 20
    settings = MeasureSettings(min_time=0.0, min_iterations=3, warmup=1, threads=4)
    result = measure(cls(make_dataset(size)), size=size, expected=float(size),
                     settings=settings, name=cls.name)

    assert result.threads == 4
    assert result.iterations == 12
    assert result.last_sum == float(size)


def test_workqueue_layer_serializes_parallel_launches(small_data, monkeypatch) -> None:
    monkeypatch.setattr(cpu.numba, "threading_layer", lambda: "workqueue")
    assert ThreadsF32(small_data)._guard is cpu._workqueue_lock
    assert ThreadsF64(small_data)._guard is cpu._workqueue_lock


_WORKQUEUE_SCRIPT = """
from reduce_bench.accumulators.cpu import ThreadsF32
from reduce_bench.dataset import make_dataset
from reduce_bench.measure import MeasureSettings, measure

size = 1 << 20
settings = MeasureSettings(min_time=0.0, min_iterations=5, warmup=1, threads=4)
result = measure(ThreadsF32(make_dataset(size)), size=size, expected=float(size), settings=settings)
print(result.last_sum)
"""


def test_parallel_kernel_under_workqueue_layer_does_not_abort() -> None:
    """The workqueue layer aborts the interpreter on concurrent launches unless they are serialized."""
    env = dict(os.environ, NUMBA_THREADING_LAYER="workqueue")
    proc = subprocess.run([sys.executable, "-c", _WORKQUEUE_SCRIPT], env=env,
                          capture_output=True, text=True, timeout=600)

    assert proc.returncode == 0, proc.stderr
    assert float(proc.stdout.strip().splitlines()[-1]) == float(1 << 20)


def test_zero_elapsed_time_gives_finite_rates() -> None:
    """A loop faster than the clock resolution still publishes JSON-safe numbers."""
    records = [_ThreadRecord(iterations=1, elapsed=0.0, last_sum=4.0)]
    result = _publish("instant", records, size=4, itemsize=4)

    assert result.elapsed_seconds > 0
    assert result.bytes_per_second == result.elements_per_second * 4
    json.dumps(result.to_dict(), allow_nan=False)
