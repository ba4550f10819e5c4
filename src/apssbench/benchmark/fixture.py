"""Per-sample trial lifecycle: prepare, run, tear down, harvest."""

from __future__ import annotations

from enum import Enum
import logging
import time
from typing import Sequence

from apssbench.algorithms import COUNTER_NAMES, InputState, SimilarityPairs
from apssbench.matrix import compact, load_cluto, normalize, sort_rows, transpose

from .adapter import AlgorithmAdapter
from .catalog import DatasetCatalog
from .measurements import MeasurementCollector

LOGGER = logging.getLogger(__name__)


class DataPreparationError(RuntimeError):
    """Raised when a dataset cannot be loaded or prepared for a trial."""


class FixtureStateError(RuntimeError):
    """Raised on an out-of-order lifecycle call."""


class FixtureState(str, Enum):
    UNINITIALIZED = "uninitialized"
    PREPARED = "prepared"
    RAN = "ran"
    TORN_DOWN = "torn_down"


class TrialFixture:
    """Own the input state of one trial at a time.

    The cycle is ``prepare -> run_once -> teardown`` and may repeat any number
    of times. Nothing survives from one cycle to the next except the
    measurement series.
    """

    def __init__(
        self,
        adapter: AlgorithmAdapter,
        catalog: DatasetCatalog,
        *,
        preprocess: bool = False,
        counter_names: Sequence[str] = COUNTER_NAMES,
    ) -> None:
        self.adapter = adapter
        self.catalog = catalog
        self.preprocess = preprocess
        self.counter_names = tuple(counter_names)
        self.collector = MeasurementCollector(self.counter_names)
        self.state = FixtureState.UNINITIALIZED
        self._input: InputState | None = None
        self._minsim = 0.0

    @property
    def input_state(self) -> InputState | None:
        return self._input

    def experiment_values(self) -> list[int]:
        return self.catalog.experiment_values()

    def start_experiment(self) -> MeasurementCollector:
        """Start fresh counter series for a new experiment value."""
        self.collector = MeasurementCollector(self.counter_names)
        return self.collector

    def prepare(self, experiment_value: int) -> None:
        self._expect(FixtureState.UNINITIALIZED, FixtureState.TORN_DOWN)
        entry = self.catalog[experiment_value]
        try:
            matrix = normalize(compact(load_cluto(entry.path)))
            index = None
            if self.adapter.requires_index:
                matrix = sort_rows(matrix)
                index = transpose(matrix)
        except (OSError, ValueError) as exc:
            self.state = FixtureState.UNINITIALIZED
            raise DataPreparationError(
                f"Could not prepare '{entry.path}': {exc}"
            ) from exc

        self._minsim = entry.threshold
        self._input = InputState(matrix=matrix, index=index, output=SimilarityPairs())
        self.state = FixtureState.PREPARED

    def run_once(self) -> float:
        """Run the algorithm once and return the elapsed seconds of ``run``."""
        self._expect(FixtureState.PREPARED)
        state = self._input
        if state is None:
            raise FixtureStateError(f"{self.adapter.name}: no prepared input")
        if self.preprocess:
            self.adapter.preprocess(self._minsim, state)
        start = time.perf_counter()
        self.adapter.run(self._minsim, state, state.output)
        elapsed = time.perf_counter() - start
        self.state = FixtureState.RAN
        LOGGER.debug(
            "%s: %d pairs in %.6fs", self.adapter.name, len(state.output), elapsed
        )
        return elapsed

    def teardown(self) -> None:
        self._expect(FixtureState.RAN)
        self._input = None
        self.collector.harvest(self.adapter.counters())
        self.state = FixtureState.TORN_DOWN

    def _expect(self, *allowed: FixtureState) -> None:
        if self.state not in allowed:
            expected = " or ".join(state.value for state in allowed)
            raise FixtureStateError(
                f"{self.adapter.name}: fixture is {self.state.value}, expected {expected}"
            )
