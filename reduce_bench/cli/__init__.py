"""
reduce_bench.cli
================

Command-line interface for reduce-bench.

Provides CLI commands for:
- run/list/targets: case discovery and measurement
- sysspec: System specification display/export
"""

__all__ = ['main']

from .main import main
