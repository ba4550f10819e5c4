"""Registry of benchmarkable algorithm implementations."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterable

from apssbench.algorithms import (
    AllPairs,
    APSSAlgorithm,
    BruteForce,
    DenseReference,
    IndexJoin,
    MMJoin,
)

from .adapter import AlgorithmAdapter
from .catalog import DatasetCatalog
from .fixture import TrialFixture

AlgorithmFactory = Callable[[], APSSAlgorithm]
FixtureFactory = Callable[[], TrialFixture]


class RegistryError(RuntimeError):
    """Raised for invalid registry operations."""


class DuplicateNameError(RegistryError):
    """Raised when an algorithm name is registered twice."""


class UnknownAlgorithmError(RegistryError):
    """Raised when a requested algorithm name is not registered."""


class Role(str, Enum):
    """Registry partition an algorithm belongs to."""

    BASELINE = "baseline"
    BENCHMARK = "benchmark"
    REFERENCE = "reference"


@dataclass(frozen=True)
class AlgorithmDescriptor:
    """Registered algorithm: a stable name, its role and a constructor."""

    name: str
    role: Role
    factory: AlgorithmFactory

    def fixture_factory(
        self,
        catalog: DatasetCatalog,
        *,
        preprocess: bool,
    ) -> FixtureFactory:
        """Return a zero-argument constructor of a ready-to-run trial fixture."""

        def build() -> TrialFixture:
            return TrialFixture(
                AlgorithmAdapter(self.factory()),
                catalog,
                preprocess=preprocess,
            )

        return build


@dataclass
class ImplementationRegistry:
    """Name-to-descriptor mapping that keeps registration order."""

    _descriptors: dict[str, AlgorithmDescriptor] = field(default_factory=dict)

    def register(self, name: str, role: Role, factory: AlgorithmFactory) -> None:
        if name in self._descriptors:
            raise DuplicateNameError(f"Algorithm '{name}' is already registered.")
        self._descriptors[name] = AlgorithmDescriptor(
            name=name, role=Role(role), factory=factory
        )

    def lookup(self, name: str) -> AlgorithmDescriptor | None:
        return self._descriptors.get(name)

    def require(self, name: str) -> AlgorithmDescriptor:
        descriptor = self.lookup(name)
        if descriptor is None:
            available = ", ".join(self._descriptors) or "<none>"
            raise UnknownAlgorithmError(
                f"Unknown algorithm '{name}'. Available algorithms: {available}"
            )
        return descriptor

    def list_by_role(self, role: Role) -> list[str]:
        return [
            name
            for name, descriptor in self._descriptors.items()
            if descriptor.role is Role(role)
        ]

    def names(self) -> list[str]:
        return list(self._descriptors)

    def __contains__(self, name: object) -> bool:
        return name in self._descriptors

    def __len__(self) -> int:
        return len(self._descriptors)


BUILTIN_ALGORITHMS: dict[str, tuple[Role, AlgorithmFactory]] = {
    "bruteforce": (Role.BASELINE, BruteForce),
    "idxjoin": (Role.BASELINE, IndexJoin),
    "allpairs": (Role.BENCHMARK, AllPairs),
    "mmjoin": (Role.BENCHMARK, MMJoin),
    "dense": (Role.REFERENCE, DenseReference),
}

BUILTIN_FEATURES: tuple[str, ...] = tuple(BUILTIN_ALGORITHMS)

# dense scales quadratically in memory and must be asked for by name
DEFAULT_FEATURES: tuple[str, ...] = ("bruteforce", "idxjoin", "allpairs", "mmjoin")


def default_registry(features: Iterable[str] | None = None) -> ImplementationRegistry:
    """Create a registry holding the bundled algorithms enabled by ``features``.

    ``features`` plays the role of a build-time feature list: algorithms not
    named are simply never registered. ``None`` enables
    ``DEFAULT_FEATURES``.
    """
    enabled = DEFAULT_FEATURES if features is None else tuple(features)
    unknown = sorted(set(enabled) - set(BUILTIN_ALGORITHMS))
    if unknown:
        available = ", ".join(BUILTIN_FEATURES)
        raise ValueError(
            f"Unknown algorithm features: {', '.join(unknown)}. Available: {available}"
        )

    registry = ImplementationRegistry()
    for name, (role, factory) in BUILTIN_ALGORITHMS.items():
        if name in enabled:
            registry.register(name, role, factory)
    return registry
