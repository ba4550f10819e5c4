"""Uniform adapter around one algorithm implementation."""

from __future__ import annotations

from apssbench.algorithms import (
    APSSAlgorithm,
    CounterSet,
    InputState,
    SimilarityPairs,
    WorkCounters,
)


class AlgorithmExecutionError(RuntimeError):
    """Raised when an algorithm fails during preprocessing or a run."""


class AlgorithmAdapter:
    """Expose ``preprocess`` / ``run`` / ``counters`` for any algorithm.

    Every ``run`` gets a fresh :class:`WorkCounters` owned by the adapter, so
    the harvested values always describe exactly the last call.
    """

    def __init__(self, algorithm: APSSAlgorithm) -> None:
        self._algorithm = algorithm
        self._counters = WorkCounters()

    @property
    def name(self) -> str:
        return self._algorithm.name

    @property
    def requires_index(self) -> bool:
        return bool(self._algorithm.requires_index)

    def preprocess(self, minsim: float, state: InputState) -> None:
        try:
            self._algorithm.preprocess(minsim, state)
        except Exception as exc:
            raise AlgorithmExecutionError(
                f"{self.name}: preprocessing failed: {exc}"
            ) from exc

    def run(self, minsim: float, state: InputState, output: SimilarityPairs) -> None:
        counters = WorkCounters()
        try:
            self._algorithm.run(minsim, state, output, counters)
        except Exception as exc:
            raise AlgorithmExecutionError(f"{self.name}: run failed: {exc}") from exc
        self._counters = counters

    def counters(self) -> CounterSet:
        return self._counters.snapshot()
