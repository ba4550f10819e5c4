"""Sparse matrix loading and preparation."""

from .io import MatrixFormatError, load_cluto, save_cluto
from .ops import compact, normalize, sort_rows, transpose

__all__ = [
    "MatrixFormatError",
    "compact",
    "load_cluto",
    "normalize",
    "save_cluto",
    "sort_rows",
    "transpose",
]
