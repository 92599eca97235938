"""
Run registered cases against one shared dataset.

Usage:
    from reduce_bench.registry import discover_cases
    from reduce_bench.runner import run_cases
    from reduce_bench.measure import MeasureSettings

    cases = discover_cases()
    results = run_cases(cases, size=1 << 24, settings=MeasureSettings(min_time=0.2))
"""

import dataclasses
import datetime
import json
from typing import Any, Dict, Iterable, Optional

from .dataset import DEFAULT_FILL, expected_sum, make_dataset
from .exceptions import ConstructionFailure
from .logging import setup_tagged_logger
from .measure import MeasureSettings, measure
from .registry import Case

logger = setup_tagged_logger(__name__)


def run_cases(
    cases: Iterable[Case],
    size: int,
    settings: Optional[MeasureSettings] = None,
    fill: float = DEFAULT_FILL,
    include_system_info: bool = True,
    progress=None,
) -> Dict[str, Any]:
    """
    Measure every case in order.

    Args:
        cases: Registered cases
        size: Dataset element count
        settings: Timing loop settings
        fill: Value of every dataset element
        include_system_info: Record CPU model, core count and architecture
        progress: Optional callable receiving each case name before it runs

    Returns:
        Dict with structure:
        {
            'timestamp': ISO timestamp,
            'system': {...} or None,
            'size': N,
            'fill': fill value,
            'expected': exact sum,
            'settings': {...},
            'results': {case_name: Measurement.to_dict(), ...},
            'errors': {case_name: message, ...},
        }
    """
    settings = settings or MeasureSettings()

    system_info = None
    if include_system_info:
        from .system_spec import get_hardware_spec

        hw = get_hardware_spec()
        system_info = {
            'cpu': hw.get('cpu_model', 'unknown'),
            'cores': hw.get('cpu_cores_logical', '?'),
            'arch': hw.get('architecture', 'unknown'),
        }

    data = make_dataset(size, fill)
    expected = expected_sum(size, fill)

    results = {}
    errors = {}

    for case in cases:
        if progress is not None:
            progress(case.name)
        try:
            measurement = _measure_case(case, data, expected, settings)
        except ConstructionFailure as e:
            logger.warning(f"Construction failed: {e}")
            errors[case.name] = f"Construction failed: {e.cause}"
            continue
        except Exception as e:
            logger.exception(f"Measurement of {case.name} failed")
            errors[case.name] = f"Error: {e}"
            continue

        result = measurement.to_dict()
        result['backend'] = case.backend
        results[case.name] = result
        logger.debug(
            f"{case.name}: {measurement.iterations} iterations, "
            f"{measurement.bytes_per_second / 1e9:.2f} GB/s, error {measurement.error_percent:.4g}%"
        )

    return {
        'timestamp': datetime.datetime.now().isoformat(),
        'system': system_info,
        'size': size,
        'fill': fill,
        'expected': expected,
        'settings': {
            'min_time': settings.min_time,
            'min_iterations': settings.min_iterations,
            'warmup': settings.warmup,
            'threads': settings.threads,
        },
        'results': results,
        'errors': errors,
    }


def _measure_case(case: Case, data, expected: float, settings: MeasureSettings):
    """
    Construct one accumulator and measure it; the accumulator is released on return.

    A case with its own thread count overrides the run-wide one.
    """
    if case.threads is not None:
        settings = dataclasses.replace(settings, threads=case.threads)
    accumulator = case.construct(data)
    return measure(
        accumulator,
        size=data.shape[0],
        expected=expected,
        itemsize=data.itemsize,
        settings=settings,
        name=case.name,
    )


def save_results(results: Dict[str, Any], filepath: str) -> None:
    """
    Save run results to a JSON file.

    Args:
        results: Results dict from run_cases()
        filepath: Output path
    """
    with open(filepath, 'w') as f:
        json.dump(results, f, indent=2)
