"""Inverted-index join."""

from __future__ import annotations

import numpy as np

from apssbench.matrix import transpose

from .base import APSSAlgorithm, InputState, SimilarityPairs, WorkCounters


class IndexJoin(APSSAlgorithm):
    """Accumulate exact scores for each vector by walking the posting lists.

    Only partners with a larger row index are accumulated, so every pair is
    scored once.
    """

    name = "idxjoin"
    requires_index = True

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
        scores = np.zeros(matrix.shape[0], dtype=np.float64)

        for row in range(matrix.shape[0]):
            start, end = matrix.indptr[row], matrix.indptr[row + 1]
            touched: list[np.ndarray] = []
            for feature, weight in zip(matrix.indices[start:end], matrix.data[start:end]):
                p_start, p_end = index.indptr[feature], index.indptr[feature + 1]
                partners = index.indices[p_start:p_end]
                offset = int(np.searchsorted(partners, row, side="right"))
                partners = partners[offset:]
                if partners.size == 0:
                    continue
                scores[partners] += weight * index.data[p_start + offset : p_end]
                counters.nmacs1 += int(partners.size)
                touched.append(partners)

            if not touched:
                continue
            candidates = np.unique(np.concatenate(touched))
            counters.ncand += int(candidates.size)
            hits = candidates[scores[candidates] >= minsim]
            output.extend(np.full(hits.size, row), hits, scores[hits])
            counters.nsims += int(hits.size)
            scores[candidates] = 0.0
