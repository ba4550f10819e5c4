"""Sequential benchmarking engine.

Registrations are grouped; each group has one baseline that anchors relative
speed at 1.0. For every registration and every experiment value exposed by its
fixture, the engine runs ``samples x iterations`` independent trials in order.
A sample's timing is the mean elapsed time of its iterations, in microseconds.
Errors raised by a fixture abort the whole session.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
import math
from typing import Callable

from .fixture import TrialFixture
from .measurements import TimingStatistics

LOGGER = logging.getLogger(__name__)

FixtureFactory = Callable[[], TrialFixture]


@dataclass(frozen=True)
class Registration:
    """One benchmark submitted to the engine."""

    group: str
    name: str
    samples: int
    iterations: int
    threads: int
    factory: FixtureFactory
    is_baseline: bool


@dataclass
class BenchmarkResult:
    """Measurements of one registration on one experiment value.

    Attributes
    ----------
    trial_us:
        Elapsed time of every trial, in execution order.
    sample_us:
        Mean microseconds per iteration for each sample.
    counters:
        Raw counter series, one value per trial.
    baseline_ratio:
        ``statistics.mean`` divided by the group baseline's mean on the same
        experiment value.
    """

    group: str
    name: str
    experiment_value: int
    is_baseline: bool
    samples: int
    iterations: int
    trial_us: list[float] = field(default_factory=list)
    sample_us: list[float] = field(default_factory=list)
    counters: dict[str, list[int]] = field(default_factory=dict)
    statistics: TimingStatistics | None = None
    baseline_ratio: float = float("nan")


class BenchmarkEngine:
    """Collect registrations and run them one trial at a time."""

    def __init__(self) -> None:
        self._registrations: list[Registration] = []

    def register_baseline(
        self,
        group: str,
        name: str,
        samples: int,
        iterations: int,
        threads: int,
        factory: FixtureFactory,
    ) -> Registration:
        if any(reg.group == group and reg.is_baseline for reg in self._registrations):
            raise ValueError(f"Group '{group}' already has a baseline.")
        return self._add(group, name, samples, iterations, threads, factory, True)

    def register_test(
        self,
        group: str,
        name: str,
        samples: int,
        iterations: int,
        threads: int,
        factory: FixtureFactory,
    ) -> Registration:
        return self._add(group, name, samples, iterations, threads, factory, False)

    def registrations(self) -> list[Registration]:
        return list(self._registrations)

    def run_all(self) -> list[BenchmarkResult]:
        results: list[BenchmarkResult] = []
        for group in dict.fromkeys(reg.group for reg in self._registrations):
            ordered = sorted(
                (reg for reg in self._registrations if reg.group == group),
                key=lambda reg: not reg.is_baseline,
            )
            group_results: list[BenchmarkResult] = []
            for registration in ordered:
                group_results.extend(self._run_registration(registration))
            _assign_baseline_ratios(group_results)
            results.extend(group_results)
        return results

    def _add(
        self,
        group: str,
        name: str,
        samples: int,
        iterations: int,
        threads: int,
        factory: FixtureFactory,
        is_baseline: bool,
    ) -> Registration:
        if samples <= 0 or iterations <= 0:
            raise ValueError(
                f"{group}/{name}: samples and iterations must be > 0, "
                f"got samples={samples}, iterations={iterations}"
            )
        if threads != 1:
            raise ValueError(f"{group}/{name}: only single-threaded runs are supported")
        if any(reg.group == group and reg.name == name for reg in self._registrations):
            raise ValueError(f"Benchmark '{group}/{name}' is already registered.")
        registration = Registration(
            group=group,
            name=name,
            samples=int(samples),
            iterations=int(iterations),
            threads=int(threads),
            factory=factory,
            is_baseline=is_baseline,
        )
        self._registrations.append(registration)
        return registration

    def _run_registration(self, registration: Registration) -> list[BenchmarkResult]:
        fixture = registration.factory()
        results: list[BenchmarkResult] = []
        for value in fixture.experiment_values():
            LOGGER.info(
                "Running %s/%s on experiment %d (%d samples x %d iterations)",
                registration.group,
                registration.name,
                value,
                registration.samples,
                registration.iterations,
            )
            collector = fixture.start_experiment()
            result = BenchmarkResult(
                group=registration.group,
                name=registration.name,
                experiment_value=value,
                is_baseline=registration.is_baseline,
                samples=registration.samples,
                iterations=registration.iterations,
            )
            for _ in range(registration.samples):
                elapsed_total = 0.0
                for _ in range(registration.iterations):
                    fixture.prepare(value)
                    elapsed = fixture.run_once()
                    fixture.teardown()
                    result.trial_us.append(elapsed * 1e6)
                    elapsed_total += elapsed
                result.sample_us.append(elapsed_total * 1e6 / registration.iterations)
            result.counters = collector.series()
            result.statistics = TimingStatistics.from_samples(result.sample_us)
            results.append(result)
        return results


def _assign_baseline_ratios(results: list[BenchmarkResult]) -> None:
    baseline_means = {
        result.experiment_value: result.statistics.mean
        for result in results
        if result.is_baseline and result.statistics is not None
    }
    for result in results:
        base = baseline_means.get(result.experiment_value)
        if result.is_baseline:
            result.baseline_ratio = 1.0
        elif base is None or result.statistics is None or base == 0 or math.isnan(base):
            result.baseline_ratio = float("nan")
        else:
            result.baseline_ratio = result.statistics.mean / base
