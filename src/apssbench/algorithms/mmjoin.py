"""Matrix-multiplication join."""

from __future__ import annotations

import numpy as np
import scipy.sparse as sp

from apssbench.matrix import transpose

from .base import APSSAlgorithm, InputState, SimilarityPairs, WorkCounters


class MMJoin(APSSAlgorithm):
    """Score all pairs at once with a sparse ``M @ M.T`` product."""

    name = "mmjoin"

    def preprocess(self, minsim: float, state: InputState) -> None:
        del minsim
        if state.index is None:
            state.index = transpose(state.matrix)

    def run(
        self,
        minsim: float,
        state: InputState,
        output: SimilarityPairs,
        counters: WorkCounters,
    ) -> None:
        matrix = state.matrix
        index = state.index if state.index is not None else transpose(matrix)

        posting_sizes = np.diff(index.indptr).astype(np.int64)
        counters.nmacs1 += int(np.sum(posting_sizes**2))

        product = sp.triu(matrix @ index, k=1).tocoo()
        counters.ncand += int(product.nnz)
        keep = product.data >= minsim
        output.extend(product.row[keep], product.col[keep], product.data[keep])
        counters.nsims += int(np.count_nonzero(keep))
