"""
Benchmark dataset package.
"""

from .dataset import RENDER_SIZES, make_row, make_rows, iter_rows, write_dataset

__all__ = [
    "RENDER_SIZES",
    "make_row",
    "make_rows",
    "iter_rows",
    "write_dataset",
]
