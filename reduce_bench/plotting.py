"""
Throughput vs. accuracy plot of a run.

Each case becomes one point: bytes/s on the x axis, percent error on the y
axis, colored by backend. Exact results (zero error) are drawn on the floor
of the log axis so they stay visible.
"""

import math
from typing import Any, Dict

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt  # noqa: E402

_BACKEND_COLORS = {"cpu": "tab:blue", "cuda": "tab:green", "opencl": "tab:orange"}

# Floor for exact results on the log-scaled error axis
_ERROR_FLOOR = 1e-9


def plot_results(results: Dict[str, Any], path: str) -> str:
    """
    Save a scatter plot of throughput against percent error.

    Args:
        results: Results dict from run_cases()
        path: Output image path

    Returns:
        The output path
    """
    measurements = results.get('results', {})

    fig, ax = plt.subplots(figsize=(10, 6))
    seen_backends = set()
    for name, result in measurements.items():
        backend = result.get('backend', 'cpu')
        x = result['bytes_per_second'] / 1e9
        if not math.isfinite(x) or x <= 0:
            continue
        y = max(result['error_percent'], _ERROR_FLOOR)
        ax.scatter(
            x, y,
            color=_BACKEND_COLORS.get(backend, "tab:gray"),
            label=backend if backend not in seen_backends else None,
        )
        seen_backends.add(backend)
        ax.annotate(name, (x, y), fontsize=7, xytext=(4, 2), textcoords="offset points")

    ax.set_xscale("log")
    ax.set_yscale("log")
    ax.set_xlabel("Throughput (GB/s)")
    ax.set_ylabel("Relative error (%)")
    size = results.get('size')
    ax.set_title(f"Sum of {size:,} elements" if size else "Sum throughput vs. error")
    if seen_backends:
        ax.legend()
    ax.grid(True, which="both", alpha=0.3)

    try:
        fig.tight_layout()
        fig.savefig(path, dpi=120)
    finally:
        plt.close(fig)
    return path
