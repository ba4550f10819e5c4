"""CLUTO sparse matrix text format.

The format stores one header line ``nrows ncols nnz`` followed by exactly
``nrows`` lines, one per row, each holding ``col val`` pairs with 1-based
column indices. Empty rows are empty lines. Lines starting with ``%`` are
comments.
"""

from __future__ import annotations

from pathlib import Path

import numpy as np
import scipy.sparse as sp


class MatrixFormatError(ValueError):
    """Raised when a sparse matrix file cannot be decoded."""


def _parse_header(line: str, path: Path) -> tuple[int, int, int]:
    tokens = line.split()
    if len(tokens) != 3:
        raise MatrixFormatError(
            f"{path}: header must be 'nrows ncols nnz', got {line.strip()!r}"
        )
    try:
        nrows, ncols, nnz = (int(token) for token in tokens)
    except ValueError as exc:
        raise MatrixFormatError(f"{path}: non-integer header {line.strip()!r}") from exc
    if nrows < 0 or ncols < 0 or nnz < 0:
        raise MatrixFormatError(f"{path}: negative header value {line.strip()!r}")
    return nrows, ncols, nnz


def load_cluto(path: str | Path) -> sp.csr_matrix:
    """Load a CLUTO sparse matrix file into a CSR matrix."""
    source = Path(path)
    with source.open("r", encoding="utf-8") as handle:
        lines = [line for line in handle.read().splitlines() if not line.startswith("%")]
    if not lines:
        raise MatrixFormatError(f"{source}: empty file")

    nrows, ncols, nnz = _parse_header(lines[0], source)
    body = lines[1:]
    if len(body) < nrows or any(line.strip() for line in body[nrows:]):
        raise MatrixFormatError(
            f"{source}: expected {nrows} rows, found {len(body)} lines"
        )

    indptr = np.zeros(nrows + 1, dtype=np.int64)
    indices: list[np.ndarray] = []
    data: list[np.ndarray] = []
    for row, line in enumerate(body[:nrows]):
        tokens = line.split()
        if len(tokens) % 2:
            raise MatrixFormatError(f"{source}: row {row + 1} has an odd token count")
        try:
            cols = np.asarray(tokens[0::2], dtype=np.int64) - 1
            vals = np.asarray(tokens[1::2], dtype=np.float64)
        except ValueError as exc:
            raise MatrixFormatError(f"{source}: row {row + 1} is malformed") from exc
        if cols.size and (cols.min() < 0 or cols.max() >= ncols):
            raise MatrixFormatError(
                f"{source}: row {row + 1} has a column outside 1..{ncols}"
            )
        indices.append(cols)
        data.append(vals)
        indptr[row + 1] = indptr[row] + cols.size

    if indptr[-1] != nnz:
        raise MatrixFormatError(
            f"{source}: header declares {nnz} non-zeros, found {int(indptr[-1])}"
        )

    flat_indices = np.concatenate(indices) if indices else np.zeros(0, dtype=np.int64)
    flat_data = np.concatenate(data) if data else np.zeros(0, dtype=np.float64)
    return sp.csr_matrix((flat_data, flat_indices, indptr), shape=(nrows, ncols))


def save_cluto(path: str | Path, matrix: sp.spmatrix) -> None:
    """Write ``matrix`` in CLUTO format."""
    csr = sp.csr_matrix(matrix)
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    nrows, ncols = csr.shape
    with target.open("w", encoding="utf-8") as handle:
        handle.write(f"{nrows} {ncols} {csr.nnz}\n")
        for row in range(nrows):
            start, end = csr.indptr[row], csr.indptr[row + 1]
            pairs = (
                f"{int(col) + 1} {float(val)!r}"
                for col, val in zip(csr.indices[start:end], csr.data[start:end])
            )
            handle.write(" ".join(pairs) + "\n")
