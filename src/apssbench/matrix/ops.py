"""Preparation operations applied to loaded matrices before a trial."""

from __future__ import annotations

import numpy as np
import scipy.sparse as sp


def compact(matrix: sp.spmatrix) -> sp.csr_matrix:
    """Drop explicit zeros, then empty rows and empty columns."""
    csr = sp.csr_matrix(matrix, dtype=np.float64, copy=True)
    csr.sum_duplicates()
    csr.eliminate_zeros()
    rows = np.flatnonzero(np.diff(csr.indptr) > 0)
    csr = csr[rows]
    cols = np.flatnonzero(np.bincount(csr.indices, minlength=csr.shape[1]) > 0)
    return sp.csr_matrix(csr[:, cols])


def normalize(matrix: sp.spmatrix) -> sp.csr_matrix:
    """Scale every non-empty row to unit L2 norm."""
    csr = sp.csr_matrix(matrix, dtype=np.float64, copy=True)
    row_nnz = np.diff(csr.indptr)
    row_ids = np.repeat(np.arange(csr.shape[0]), row_nnz)
    norms = np.sqrt(np.bincount(row_ids, weights=csr.data**2, minlength=csr.shape[0]))
    scale = np.ones(csr.shape[0], dtype=np.float64)
    valid = norms > 0
    scale[valid] = 1.0 / norms[valid]
    csr.data *= np.repeat(scale, row_nnz)
    return csr


def sort_rows(matrix: sp.spmatrix) -> sp.csr_matrix:
    """Return a copy with column indices sorted ascending within each row."""
    csr = sp.csr_matrix(matrix, copy=True)
    csr.sort_indices()
    return csr


def transpose(matrix: sp.spmatrix) -> sp.csr_matrix:
    """Build the inverted index: row ``k`` lists the vectors holding feature ``k``."""
    index = sp.csr_matrix(matrix).transpose().tocsr()
    index.sort_indices()
    return index
