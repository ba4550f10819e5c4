"""Bind a resolved configuration and a registry into engine registrations."""

from __future__ import annotations

from dataclasses import dataclass
import logging
import sys
from typing import Sequence, TextIO

from .catalog import DatasetCatalog
from .config_schema import ExperimentConfig
from .engine import BenchmarkEngine
from .registry import ImplementationRegistry, Role

LOGGER = logging.getLogger(__name__)

BASELINE_PREFERENCE: tuple[str, ...] = ("idxjoin", "bruteforce")
DEFAULT_GROUP = "apss"


class NoBaselineError(RuntimeError):
    """Raised when no preferred baseline algorithm is registered."""


@dataclass(frozen=True)
class RunPlan:
    """Outcome of registration: what will run and what was skipped."""

    baseline: str
    references: tuple[str, ...]
    benchmarks: tuple[str, ...]
    not_implemented: tuple[str, ...]


def select_baseline(
    registry: ImplementationRegistry,
    preference: Sequence[str] = BASELINE_PREFERENCE,
) -> str:
    """Return the first name in ``preference`` registered as a baseline."""
    eligible = set(registry.list_by_role(Role.BASELINE))
    for name in preference:
        if name in eligible:
            return name
    raise NoBaselineError(
        "No baseline algorithm is available. Expected one of: "
        + ", ".join(preference)
    )


def resolve_benchmarks(
    registry: ImplementationRegistry,
    algorithm_filter: Sequence[str],
    baseline: str,
) -> tuple[list[str], list[str]]:
    """Resolve the algorithms to benchmark.

    Returns ``(selected, missing)``. Only benchmark-role registrations can be
    selected. With an empty filter every one of them except ``baseline`` is
    selected. Otherwise the filter is intersected with them, keeping filter
    order, and every other name is reported once in ``missing``. A filter
    entry naming ``baseline`` is dropped since the baseline is already
    registered.
    """
    available = registry.list_by_role(Role.BENCHMARK)
    if not algorithm_filter:
        return [name for name in available if name != baseline], []

    selected: list[str] = []
    missing: list[str] = []
    for name in dict.fromkeys(algorithm_filter):
        if name == baseline:
            LOGGER.info("%s already runs as the baseline", name)
        elif name in available:
            selected.append(name)
        else:
            missing.append(name)
    return selected, missing


def register_experiments(
    engine: BenchmarkEngine,
    registry: ImplementationRegistry,
    config: ExperimentConfig,
    catalog: DatasetCatalog,
    *,
    group: str = DEFAULT_GROUP,
    baseline_preference: Sequence[str] = BASELINE_PREFERENCE,
    notice_stream: TextIO | None = None,
) -> RunPlan:
    """Register the baseline, the references and the selected benchmarks.

    Reference implementations run with the configured sample and iteration
    counts whatever the filter says. Each unknown filter entry is written to
    ``notice_stream`` (stderr by default) as ``<name> is not implemented``.
    """
    baseline = select_baseline(registry, baseline_preference)
    engine.register_baseline(
        group,
        baseline,
        1,
        1,
        1,
        registry.require(baseline).fixture_factory(
            catalog, preprocess=config.preprocess
        ),
    )

    references = registry.list_by_role(Role.REFERENCE)
    for name in references:
        engine.register_test(
            group,
            name,
            config.samples,
            config.iterations,
            1,
            registry.require(name).fixture_factory(
                catalog, preprocess=config.preprocess
            ),
        )

    selected, missing = resolve_benchmarks(registry, config.algorithm_filter, baseline)
    stream = notice_stream if notice_stream is not None else sys.stderr
    for name in missing:
        print(f"{name} is not implemented", file=stream)

    for name in selected:
        engine.register_test(
            group,
            name,
            config.samples,
            config.iterations,
            1,
            registry.require(name).fixture_factory(
                catalog, preprocess=config.preprocess
            ),
        )

    LOGGER.info(
        "Registered baseline %s, %d reference(s) and %d benchmark(s): %s",
        baseline,
        len(references),
        len(selected),
        ", ".join([*references, *selected]) or "<none>",
    )
    return RunPlan(
        baseline=baseline,
        references=tuple(references),
        benchmarks=tuple(selected),
        not_implemented=tuple(missing),
    )
