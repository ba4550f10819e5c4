"""Benchmark harness APIs."""

from .adapter import AlgorithmAdapter, AlgorithmExecutionError
from .catalog import DatasetCatalog, DatasetEntry
from .config_schema import (
    ConfigurationError,
    ExperimentConfig,
    MissingConfigError,
    RuntimeConfig,
    resolve_config,
)
from .driver import NoBaselineError, RunPlan, register_experiments, select_baseline
from .engine import BenchmarkEngine, BenchmarkResult
from .fixture import DataPreparationError, FixtureState, TrialFixture
from .measurements import MeasurementCollector, TimingStatistics
from .registry import (
    AlgorithmDescriptor,
    DuplicateNameError,
    ImplementationRegistry,
    Role,
    UnknownAlgorithmError,
    default_registry,
)

__all__ = [
    "AlgorithmAdapter",
    "AlgorithmDescriptor",
    "AlgorithmExecutionError",
    "BenchmarkEngine",
    "BenchmarkResult",
    "ConfigurationError",
    "DataPreparationError",
    "DatasetCatalog",
    "DatasetEntry",
    "DuplicateNameError",
    "ExperimentConfig",
    "FixtureState",
    "ImplementationRegistry",
    "MeasurementCollector",
    "MissingConfigError",
    "NoBaselineError",
    "Role",
    "RunPlan",
    "RuntimeConfig",
    "TimingStatistics",
    "TrialFixture",
    "UnknownAlgorithmError",
    "default_registry",
    "register_experiments",
    "resolve_config",
    "select_baseline",
]
