from setuptools import setup, find_packages, Extension
import os

# Check for Cython availability
try:
    from Cython.Build import cythonize
    import numpy as np
    CYTHON_AVAILABLE = True
except ImportError:
    CYTHON_AVAILABLE = False
    cythonize = None
    np = None


def get_extensions():
    """
    Get Cython extension modules if Cython is available.

    Returns empty list if Cython or NumPy is not installed,
    allowing pure-Python installation to proceed; the Cython
    accumulators are then simply not registered.
    """
    if not CYTHON_AVAILABLE:
        return []

    pyx_files = [
        ("reduce_bench.accumulators._cython.reduce", "reduce_bench/accumulators/_cython/reduce.pyx"),
    ]

    existing_pyx = [
        (name, path) for name, path in pyx_files
        if os.path.exists(path)
    ]

    if not existing_pyx:
        return []

    extensions = [
        Extension(
            name,
            [path],
            include_dirs=[np.get_include()],
            # Keep IEEE semantics: -ffast-math would cancel Kahan compensation
            extra_compile_args=["-O3", "-fno-fast-math"],
        )
        for name, path in existing_pyx
    ]

    return cythonize(
        extensions,
        compiler_directives={'language_level': "3"},
        quiet=True
    )


setup(
    name="reduce-bench",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    ext_modules=get_extensions(),
    install_requires=[
        "numpy>=1.20",
        "numba>=0.57",
        "matplotlib>=3.0",
        "rich>=10.0",
    ],
    extras_require={
        "cython": ["Cython>=0.29", "numpy>=1.20"],
        "cuda": ["cupy-cuda12x>=12.0"],
        "opencl": ["pyopencl>=2022.1"],
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "reducebench=reduce_bench.cli.main:main",
        ],
    },
    python_requires=">=3.8",
    author="NeuroFieldz",
    description="Throughput and accuracy measurement of float32 summation across CPU and GPU backends",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Intended Audience :: Science/Research",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Cython",
        "Topic :: System :: Benchmark",
    ],
)
