"""
example_kahan_vs_naive.py
=========================

Shows how the float32 running sum stalls at 2**24 while compensated
summation keeps counting.
"""

from reduce_bench.accumulators.cpu import SerialF32, SimdF32Kahan, UnseqF32
from reduce_bench.dataset import expected_sum, make_dataset, relative_error


def main():
    for exponent in (20, 24, 25, 26):
        size = 1 << exponent
        data = make_dataset(size)
        expected = expected_sum(size)
        print(f"N = 2**{exponent}")
        for cls in (SerialF32, UnseqF32, SimdF32Kahan):
            observed = cls(data)()
            print(f"  {cls.name:<16} sum={observed:<14.1f} error={relative_error(expected, observed) * 100:.4g}%")


if __name__ == "__main__":
    main()
