from __future__ import annotations

from pathlib import Path

import pytest

from apssbench.algorithms import AllPairs, BruteForce, IndexJoin
from apssbench.benchmark.catalog import DatasetCatalog
from apssbench.benchmark.fixture import FixtureState, TrialFixture
from apssbench.benchmark.registry import (
    DuplicateNameError,
    ImplementationRegistry,
    Role,
    UnknownAlgorithmError,
    default_registry,
)


def test_register_and_partition_by_role() -> None:
    registry = ImplementationRegistry()
    registry.register("idxjoin", Role.BASELINE, IndexJoin)
    registry.register("allpairs", Role.BENCHMARK, AllPairs)
    registry.register("bruteforce", "baseline", BruteForce)

    assert registry.names() == ["idxjoin", "allpairs", "bruteforce"]
    assert registry.list_by_role(Role.BASELINE) == ["idxjoin", "bruteforce"]
    assert registry.list_by_role(Role.BENCHMARK) == ["allpairs"]
    assert "allpairs" in registry
    assert len(registry) == 3


def test_register_rejects_duplicate_name() -> None:
    registry = ImplementationRegistry()
    registry.register("allpairs", Role.BENCHMARK, AllPairs)
    with pytest.raises(DuplicateNameError):
        registry.register("allpairs", Role.BASELINE, AllPairs)
    assert registry.lookup("allpairs").role is Role.BENCHMARK


def test_lookup_and_require_unknown_name() -> None:
    registry = default_registry()
    assert registry.lookup("ghost") is None
    with pytest.raises(UnknownAlgorithmError, match="ghost"):
        registry.require("ghost")


def test_default_registry_features_limit_registrations() -> None:
    registry = default_registry(["allpairs", "bruteforce"])
    assert registry.names() == ["bruteforce", "allpairs"]
    assert registry.list_by_role(Role.BASELINE) == ["bruteforce"]

    with pytest.raises(ValueError, match="nova"):
        default_registry(["nova"])


def test_fixture_factory_builds_fresh_fixtures(toy_path: Path) -> None:
    registry = default_registry()
    catalog = DatasetCatalog.single(0.6, toy_path)
    build = registry.require("idxjoin").fixture_factory(catalog, preprocess=True)

    first, second = build(), build()
    assert isinstance(first, TrialFixture)
    assert first is not second
    assert first.adapter.name == "idxjoin"
    assert first.preprocess is True
    assert first.state is FixtureState.UNINITIALIZED


def test_reference_role_is_opt_in() -> None:
    assert "dense" not in default_registry()

    registry = default_registry(["idxjoin", "allpairs", "dense"])
    assert registry.list_by_role(Role.REFERENCE) == ["dense"]
    assert registry.list_by_role(Role.BENCHMARK) == ["allpairs"]
    assert registry.require("dense").role is Role.REFERENCE
