"""
Dataset construction and the accuracy metric shared by every case.

The workload is an array of N copies of one constant, so the exact sum is
known analytically and every backend is compared against the same value.
"""

import numpy as np

# Elements filling one GiB of single-precision floats
DEFAULT_SIZE = (1 << 30) // np.dtype(np.float32).itemsize

DEFAULT_FILL = 1.0


def make_dataset(size: int, fill: float = DEFAULT_FILL, dtype=np.float32) -> np.ndarray:
    """
    Build the read-only workload array.

    Args:
        size: Number of elements (>= 1)
        fill: Value every element is set to (non-zero)
        dtype: Element type (default: float32)

    Returns:
        Contiguous 1-D array with ``writeable=False``

    Raises:
        ValueError: If size < 1 or fill == 0
    """
    if size < 1:
        raise ValueError(f"Dataset size must be >= 1, got {size}")
    if fill == 0:
        raise ValueError("Fill value must be non-zero for relative error to be defined")

    data = np.full(size, fill, dtype=dtype)
    data.flags.writeable = False
    return data


def expected_sum(size: int, fill: float = DEFAULT_FILL) -> float:
    """Exact sum of ``size`` copies of ``fill``."""
    return float(size) * float(fill)


def relative_error(expected: float, observed: float) -> float:
    """``|expected - observed| / expected``, the accuracy metric compared across strategies."""
    return abs(expected - observed) / abs(expected)


def parse_size(text: str) -> int:
    """
    Parse a text-encoded element count such as ``"1048576"`` or ``"1_000_000"``.

    Raises:
        ValueError: If the text is not a positive integer
    """
    try:
        size = int(text.replace("_", ""), 10)
    except (AttributeError, ValueError):
        raise ValueError(f"Element count must be an integer, got {text!r}") from None
    if size < 1:
        raise ValueError(f"Element count must be positive, got {size}")
    return size
