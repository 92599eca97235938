"""Tests for the workload array and the relative error metric."""

import numpy as np
import pytest

from reduce_bench.dataset import (
    DEFAULT_SIZE,
    expected_sum,
    make_dataset,
    parse_size,
    relative_error,
)


def test_default_size_fills_one_gibibyte() -> None:
    """The default element count is one GiB of float32."""
    assert DEFAULT_SIZE * 4 == 1 << 30


@pytest.mark.parametrize("size", [1, 7, 1024, 1 << 20])
def test_expected_sum_of_ones_is_size(size) -> None:
    """Filled with 1.0, the exact sum equals the element count."""
    assert expected_sum(size) == float(size)


def test_dataset_is_read_only(small_data) -> None:
    """Accumulators cannot write into the shared dataset."""
    assert small_data.dtype == np.float32
    assert small_data.shape == (1024,)
    assert small_data.flags.c_contiguous
    assert not small_data.flags.writeable
    with pytest.raises(ValueError):
        small_data[0] = 2.0


def test_dataset_fill_value() -> None:
    data = make_dataset(16, fill=0.5)
    assert np.all(data == 0.5)
    assert expected_sum(16, fill=0.5) == 8.0


@pytest.mark.parametrize("size,fill", [(0, 1.0), (-3, 1.0), (10, 0.0)])
def test_dataset_rejects_invalid_arguments(size, fill) -> None:
    with pytest.raises(ValueError):
        make_dataset(size, fill)


def test_relative_error() -> None:
    assert relative_error(1024.0, 1024.0) == 0.0
    assert relative_error(100.0, 90.0) == pytest.approx(0.1)
    assert relative_error(100.0, 110.0) == pytest.approx(0.1)


@pytest.mark.parametrize("text,expected", [("1024", 1024), ("1_000_000", 1000000), ("268435456", 268435456)])
def test_parse_size(text, expected) -> None:
    assert parse_size(text) == expected


@pytest.mark.parametrize("text", ["", "abc", "1.5", "0", "-4"])
def test_parse_size_rejects_bad_counts(text) -> None:
    with pytest.raises(ValueError):
        parse_size(text)
