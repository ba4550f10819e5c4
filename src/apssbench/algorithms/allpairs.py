"""AllPairs search with a max-weight prefix bound.

Each vector is indexed only from the feature where the running bound
``sum(x_i * maxweight_i)`` first reaches the threshold. The unindexed prefix
can never produce a match on its own, so candidates found through the partial
index are complete. Before verification, a candidate is dropped when its
accumulated score plus its prefix bound is still below the threshold.
"""

from __future__ import annotations

import numpy as np

from .base import (
    APSSAlgorithm,
    InputState,
    SimilarityPairs,
    WorkCounters,
    column_max_weights,
    sparse_dot,
)


class AllPairs(APSSAlgorithm):
    """Partial-index candidate generation followed by prefix verification."""

    name = "allpairs"

    def preprocess(self, minsim: float, state: InputState) -> None:
        del minsim
        state.aux["maxweight"] = column_max_weights(state.matrix)

    def run(
        self,
        minsim: float,
        state: InputState,
        output: SimilarityPairs,
        counters: WorkCounters,
    ) -> None:
        matrix = state.matrix
        maxweight = state.aux.get("maxweight")
        if maxweight is None:
            maxweight = column_max_weights(matrix)

        n_vectors, n_features = matrix.shape
        postings: list[list[tuple[int, float]]] = [[] for _ in range(n_features)]
        prefix_end = np.array(matrix.indptr[:-1], dtype=np.int64)
        prefix_bound = np.zeros(n_vectors, dtype=np.float64)
        scores = np.zeros(n_vectors, dtype=np.float64)

        for row in range(n_vectors):
            start, end = matrix.indptr[row], matrix.indptr[row + 1]
            cols = matrix.indices[start:end]
            vals = matrix.data[start:end]

            touched: set[int] = set()
            for feature, weight in zip(cols, vals):
                for partner, partner_weight in postings[feature]:
                    scores[partner] += weight * partner_weight
                    touched.add(partner)
                counters.nmacs1 += len(postings[feature])

            for partner in sorted(touched):
                counters.ncand += 1
                if scores[partner] + prefix_bound[partner] < minsim:
                    counters.nprun += 1
                    scores[partner] = 0.0
                    continue
                similarity = scores[partner]
                p_start, p_end = matrix.indptr[partner], prefix_end[partner]
                if p_end > p_start:
                    partial, macs = sparse_dot(
                        cols,
                        vals,
                        matrix.indices[p_start:p_end],
                        matrix.data[p_start:p_end],
                    )
                    similarity += partial
                    counters.nvdot += 1
                    counters.nmacs2 += macs
                if similarity >= minsim:
                    output.append(partner, row, similarity)
                    counters.nsims += 1
                scores[partner] = 0.0

            bound = 0.0
            prefix_end[row] = end
            for offset, (feature, weight) in enumerate(zip(cols, vals)):
                contribution = weight * maxweight[feature]
                if bound + contribution >= minsim:
                    prefix_end[row] = start + offset
                    for indexed, indexed_weight in zip(cols[offset:], vals[offset:]):
                        postings[indexed].append((row, float(indexed_weight)))
                    break
                bound += contribution
            prefix_bound[row] = bound
