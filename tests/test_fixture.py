from __future__ import annotations

from pathlib import Path

import pytest

from apssbench.algorithms import APSSAlgorithm, IndexJoin, InputState, MMJoin
from apssbench.benchmark.adapter import AlgorithmAdapter
from apssbench.benchmark.catalog import DatasetCatalog
from apssbench.benchmark.fixture import (
    DataPreparationError,
    FixtureState,
    FixtureStateError,
    TrialFixture,
)


class RecordingAlgorithm(APSSAlgorithm):
    """Checks what the fixture hands over and reports fixed counters."""

    name = "recording"

    def __init__(self, requires_index: bool = False) -> None:
        self.requires_index = requires_index
        self.preprocess_calls = 0
        self.seen_minsim: list[float] = []
        self.seen_index: list[bool] = []

    def preprocess(self, minsim: float, state: InputState) -> None:
        self.preprocess_calls += 1

    def run(self, minsim, state, output, counters) -> None:
        self.seen_minsim.append(minsim)
        self.seen_index.append(state.index is not None)
        counters.ncand += state.n_vectors
        counters.nsims += 1


def _fixture(path: Path, algorithm: APSSAlgorithm, **kwargs) -> TrialFixture:
    return TrialFixture(
        AlgorithmAdapter(algorithm), DatasetCatalog.single(0.6, path), **kwargs
    )


def test_fixture_lifecycle_harvests_one_value_per_trial(toy_path: Path) -> None:
    algorithm = RecordingAlgorithm()
    fixture = _fixture(toy_path, algorithm)
    collector = fixture.start_experiment()

    for _ in range(3):
        fixture.prepare(0)
        assert fixture.state is FixtureState.PREPARED
        assert fixture.input_state.n_vectors == 5
        elapsed = fixture.run_once()
        assert elapsed >= 0.0
        assert fixture.state is FixtureState.RAN
        fixture.teardown()
        assert fixture.state is FixtureState.TORN_DOWN
        assert fixture.input_state is None

    series = collector.series()
    assert series["ncand"] == [5, 5, 5]
    assert series["nsims"] == [1, 1, 1]
    assert series["nprun"] == [0, 0, 0]
    assert algorithm.seen_minsim == [0.6, 0.6, 0.6]
    assert algorithm.preprocess_calls == 0


def test_fixture_preprocess_flag_runs_preprocessing(toy_path: Path) -> None:
    algorithm = RecordingAlgorithm()
    fixture = _fixture(toy_path, algorithm, preprocess=True)
    fixture.prepare(0)
    fixture.run_once()
    fixture.teardown()
    assert algorithm.preprocess_calls == 1


def test_fixture_builds_index_only_when_required(toy_path: Path) -> None:
    plain = RecordingAlgorithm(requires_index=False)
    indexed = RecordingAlgorithm(requires_index=True)
    for algorithm in (plain, indexed):
        fixture = _fixture(toy_path, algorithm)
        fixture.prepare(0)
        fixture.run_once()
        fixture.teardown()
    assert plain.seen_index == [False]
    assert indexed.seen_index == [True]


def test_fixture_rejects_out_of_order_calls(toy_path: Path) -> None:
    fixture = _fixture(toy_path, RecordingAlgorithm())
    with pytest.raises(FixtureStateError):
        fixture.run_once()
    with pytest.raises(FixtureStateError):
        fixture.teardown()
    fixture.prepare(0)
    with pytest.raises(FixtureStateError):
        fixture.prepare(0)


def test_fixture_run_without_input_raises_state_error(toy_path: Path) -> None:
    algorithm = RecordingAlgorithm()
    fixture = _fixture(toy_path, algorithm)
    fixture.state = FixtureState.PREPARED
    with pytest.raises(FixtureStateError, match="no prepared input"):
        fixture.run_once()
    assert fixture.state is FixtureState.PREPARED
    assert algorithm.seen_minsim == []


def test_fixture_wraps_missing_dataset(tmp_path: Path) -> None:
    fixture = _fixture(tmp_path / "missing.clu", RecordingAlgorithm())
    with pytest.raises(DataPreparationError, match="missing.clu"):
        fixture.prepare(0)
    assert fixture.state is FixtureState.UNINITIALIZED


def test_fixture_wraps_malformed_dataset(tmp_path: Path) -> None:
    path = tmp_path / "bad.clu"
    path.write_text("1 2 5\n1 1.0\n", encoding="utf-8")
    fixture = _fixture(path, RecordingAlgorithm())
    with pytest.raises(DataPreparationError):
        fixture.prepare(0)


@pytest.mark.parametrize("factory", [IndexJoin, MMJoin])
def test_fixture_output_is_fresh_each_trial(toy_path: Path, factory) -> None:
    fixture = _fixture(toy_path, factory(), preprocess=True)
    fixture.start_experiment()
    counts = []
    for _ in range(2):
        fixture.prepare(0)
        state = fixture.input_state
        fixture.run_once()
        counts.append(len(state.output))
        fixture.teardown()
    assert counts == [2, 2]
    assert fixture.collector.series()["nsims"] == [2, 2]
