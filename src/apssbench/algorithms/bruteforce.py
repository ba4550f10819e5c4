"""Exhaustive pairwise search."""

from __future__ import annotations

import numpy as np
import scipy.sparse as sp

from .base import APSSAlgorithm, InputState, SimilarityPairs, WorkCounters


class BruteForce(APSSAlgorithm):
    """Compute one explicit dot product for every pair of vectors."""

    name = "bruteforce"

    def run(
        self,
        minsim: float,
        state: InputState,
        output: SimilarityPairs,
        counters: WorkCounters,
    ) -> None:
        matrix = state.matrix
        pattern = sp.csr_matrix(
            (np.ones_like(matrix.data), matrix.indices, matrix.indptr),
            shape=matrix.shape,
        )
        n_vectors = matrix.shape[0]
        for row in range(n_vectors - 1):
            n_rest = n_vectors - row - 1
            scores = (matrix[row + 1 :] @ matrix[row].T).toarray().ravel()
            overlap = (pattern[row + 1 :] @ pattern[row].T).toarray().ravel()
            counters.ncand += n_rest
            counters.nvdot += n_rest
            counters.nmacs1 += int(overlap.sum())

            hits = np.flatnonzero(scores >= minsim)
            output.extend(np.full(hits.size, row), hits + row + 1, scores[hits])
            counters.nsims += int(hits.size)
