from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest
import scipy.sparse as sp

from apssbench.algorithms import (
    AllPairs,
    APSSAlgorithm,
    BruteForce,
    DenseReference,
    IndexJoin,
    InputState,
    MMJoin,
    SimilarityPairs,
    WorkCounters,
)
from apssbench.benchmark.adapter import AlgorithmAdapter, AlgorithmExecutionError
from apssbench.matrix import compact, load_cluto, normalize, sort_rows, transpose

from conftest import TOY_PAIRS_AT_0_3, TOY_PAIRS_AT_0_6

ALGORITHMS = [BruteForce, IndexJoin, AllPairs, MMJoin, DenseReference]


def _prepare(matrix: sp.csr_matrix, algorithm: APSSAlgorithm) -> InputState:
    matrix = normalize(compact(matrix))
    index = None
    if algorithm.requires_index:
        matrix = sort_rows(matrix)
        index = transpose(matrix)
    return InputState(matrix=matrix, index=index)


def _search(
    algorithm: APSSAlgorithm, matrix: sp.csr_matrix, minsim: float
) -> tuple[SimilarityPairs, WorkCounters]:
    state = _prepare(matrix, algorithm)
    algorithm.preprocess(minsim, state)
    counters = WorkCounters()
    algorithm.run(minsim, state, state.output, counters)
    return state.output, counters


@pytest.mark.parametrize("factory", ALGORITHMS)
@pytest.mark.parametrize(
    ("minsim", "expected"),
    [(0.6, TOY_PAIRS_AT_0_6), (0.3, TOY_PAIRS_AT_0_3)],
)
def test_algorithms_find_toy_pairs(
    toy_path: Path, factory: type[APSSAlgorithm], minsim: float, expected: set
) -> None:
    output, counters = _search(factory(), load_cluto(toy_path), minsim)
    assert output.pairs() == expected
    assert counters.nsims == len(expected)
    assert all(value >= minsim for value in output.values)


@pytest.mark.parametrize("factory", ALGORITHMS)
def test_algorithms_match_dense_reference(factory: type[APSSAlgorithm]) -> None:
    rng = np.random.default_rng(7)
    raw = sp.random(40, 25, density=0.2, random_state=rng, format="csr")
    minsim = 0.3
    margin = 1e-9

    prepared = normalize(compact(raw)).toarray()
    dense = prepared @ prepared.T
    upper = np.triu_indices(dense.shape[0], k=1)
    sure = {
        (int(i), int(j))
        for i, j, value in zip(*upper, dense[upper])
        if value >= minsim + margin
    }
    possible = {
        (int(i), int(j))
        for i, j, value in zip(*upper, dense[upper])
        if value >= minsim - margin
    }

    output, _ = _search(factory(), raw, minsim)
    found = output.pairs()
    assert sure <= found <= possible
    for i, j, value in zip(output.rows, output.cols, output.values):
        assert value == pytest.approx(dense[i, j])


def test_bruteforce_counts_every_pair(toy_path: Path) -> None:
    _, counters = _search(BruteForce(), load_cluto(toy_path), 0.6)
    assert counters.ncand == 10
    assert counters.nvdot == 10
    assert counters.nprun == 0


def test_allpairs_generates_fewer_candidates_than_bruteforce(toy_path: Path) -> None:
    _, allpairs = _search(AllPairs(), load_cluto(toy_path), 0.6)
    _, brute = _search(BruteForce(), load_cluto(toy_path), 0.6)
    assert allpairs.ncand < brute.ncand
    assert allpairs.ncand >= allpairs.nprun


def test_allpairs_runs_without_preprocessing(toy_path: Path) -> None:
    algorithm = AllPairs()
    state = _prepare(load_cluto(toy_path), algorithm)
    algorithm.run(0.6, state, state.output, WorkCounters())
    assert state.output.pairs() == TOY_PAIRS_AT_0_6


@pytest.mark.parametrize("factory", ALGORITHMS)
def test_adapter_counters_describe_only_the_last_run(
    toy_path: Path, factory: type[APSSAlgorithm]
) -> None:
    adapter = AlgorithmAdapter(factory())
    snapshots = []
    for _ in range(3):
        state = _prepare(load_cluto(toy_path), adapter)
        adapter.preprocess(0.6, state)
        adapter.run(0.6, state, state.output)
        snapshots.append(dict(adapter.counters()))
    assert snapshots[0] == snapshots[1] == snapshots[2]
    assert snapshots[0]["nsims"] == len(TOY_PAIRS_AT_0_6)


def test_adapter_counters_are_zero_before_first_run() -> None:
    adapter = AlgorithmAdapter(BruteForce())
    assert set(adapter.counters().values()) == {0}


class _FailingAlgorithm(APSSAlgorithm):
    name = "failing"

    def preprocess(self, minsim: float, state: InputState) -> None:
        raise MemoryError("no room")

    def run(self, minsim, state, output, counters) -> None:
        raise ValueError("boom")


def test_adapter_wraps_algorithm_failures() -> None:
    adapter = AlgorithmAdapter(_FailingAlgorithm())
    state = InputState(matrix=sp.csr_matrix((1, 1)))
    with pytest.raises(AlgorithmExecutionError, match="preprocessing failed"):
        adapter.preprocess(0.5, state)
    with pytest.raises(AlgorithmExecutionError, match="boom"):
        adapter.run(0.5, state, state.output)
