"""Shared contract and data models for all-pairs similarity search algorithms."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, TypeAlias

import numpy as np
import scipy.sparse as sp

COUNTER_NAMES: tuple[str, ...] = ("ncand", "nprun", "nvdot", "nmacs1", "nmacs2", "nsims")

CounterSet: TypeAlias = Mapping[str, int]


@dataclass(slots=True)
class WorkCounters:
    """Work performed by one ``run`` call.

    Attributes
    ----------
    ncand:
        Candidate pairs generated.
    nprun:
        Candidates discarded by a bound before verification.
    nvdot:
        Explicit dot products evaluated.
    nmacs1:
        Multiply-accumulate operations in the candidate generation phase.
    nmacs2:
        Multiply-accumulate operations in the verification phase.
    nsims:
        Similar pairs reported.
    """

    ncand: int = 0
    nprun: int = 0
    nvdot: int = 0
    nmacs1: int = 0
    nmacs2: int = 0
    nsims: int = 0

    def snapshot(self) -> CounterSet:
        """Return a read-only copy of the current values."""
        return MappingProxyType({name: int(getattr(self, name)) for name in COUNTER_NAMES})


@dataclass(slots=True)
class SimilarityPairs:
    """Accumulator of ``(i, j, similarity)`` triples with ``i < j``."""

    rows: list[int] = field(default_factory=list)
    cols: list[int] = field(default_factory=list)
    values: list[float] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.values)

    def append(self, row: int, col: int, value: float) -> None:
        self.rows.append(int(row))
        self.cols.append(int(col))
        self.values.append(float(value))

    def extend(self, rows: np.ndarray, cols: np.ndarray, values: np.ndarray) -> None:
        self.rows.extend(np.asarray(rows, dtype=np.int64).tolist())
        self.cols.extend(np.asarray(cols, dtype=np.int64).tolist())
        self.values.extend(np.asarray(values, dtype=np.float64).tolist())

    def pairs(self) -> set[tuple[int, int]]:
        """Return the unordered set of matched index pairs."""
        return {(min(i, j), max(i, j)) for i, j in zip(self.rows, self.cols)}

    def to_coo(self, n_vectors: int) -> sp.coo_matrix:
        return sp.coo_matrix(
            (self.values, (self.rows, self.cols)), shape=(n_vectors, n_vectors)
        )


@dataclass(slots=True)
class InputState:
    """Prepared problem instance owned by one trial.

    Parameters
    ----------
    matrix:
        Compacted, row-normalized vectors in CSR form.
    index:
        Optional inverted index (transpose of ``matrix``).
    aux:
        Auxiliary structures built by an algorithm's preprocessing step.
    output:
        Empty result accumulator for the trial.
    """

    matrix: sp.csr_matrix
    index: sp.csr_matrix | None = None
    aux: dict[str, Any] = field(default_factory=dict)
    output: SimilarityPairs = field(default_factory=SimilarityPairs)

    @property
    def n_vectors(self) -> int:
        return int(self.matrix.shape[0])


class APSSAlgorithm(ABC):
    """Contract every benchmarked algorithm implements."""

    name: str = "apss"
    requires_index: bool = False

    def preprocess(self, minsim: float, state: InputState) -> None:
        """Build auxiliary structures in ``state`` (no-op by default)."""
        del minsim, state

    @abstractmethod
    def run(
        self,
        minsim: float,
        state: InputState,
        output: SimilarityPairs,
        counters: WorkCounters,
    ) -> None:
        """Find every pair with similarity ``>= minsim`` and record the work done."""


def sparse_dot(
    idx_a: np.ndarray,
    val_a: np.ndarray,
    idx_b: np.ndarray,
    val_b: np.ndarray,
) -> tuple[float, int]:
    """Return the dot product of two sparse vectors and the number of MACs."""
    _, pos_a, pos_b = np.intersect1d(idx_a, idx_b, assume_unique=True, return_indices=True)
    return float(np.dot(val_a[pos_a], val_b[pos_b])), int(pos_a.size)


def column_max_weights(matrix: sp.csr_matrix) -> np.ndarray:
    """Return the largest value of each column (0 for empty columns)."""
    weights = np.zeros(matrix.shape[1], dtype=np.float64)
    np.maximum.at(weights, matrix.indices, matrix.data)
    return weights
