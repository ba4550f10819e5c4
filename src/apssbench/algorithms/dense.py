"""Dense reference search."""

from __future__ import annotations

import numpy as np

from .base import APSSAlgorithm, InputState, SimilarityPairs, WorkCounters


class DenseReference(APSSAlgorithm):
    """Score every pair with one dense ``M @ M.T`` product.

    Memory grows with the square of the number of vectors, so this is only
    meant as a correctness and speed reference on small datasets.
    """

    name = "dense"

    def run(
        self,
        minsim: float,
        state: InputState,
        output: SimilarityPairs,
        counters: WorkCounters,
    ) -> None:
        dense = state.matrix.toarray()
        n_vectors, n_features = dense.shape
        scores = dense @ dense.T
        rows, cols = np.triu_indices(n_vectors, k=1)
        counters.ncand += int(rows.size)
        counters.nvdot += int(rows.size)
        counters.nmacs1 += int(rows.size) * int(n_features)

        keep = scores[rows, cols] >= minsim
        output.extend(rows[keep], cols[keep], scores[rows[keep], cols[keep]])
        counters.nsims += int(np.count_nonzero(keep))
