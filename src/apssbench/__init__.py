"""apssbench public API."""

from .algorithms import (
    AllPairs,
    APSSAlgorithm,
    BruteForce,
    DenseReference,
    IndexJoin,
    MMJoin,
    SimilarityPairs,
    WorkCounters,
)
from .benchmark import (
    BenchmarkEngine,
    DatasetCatalog,
    ExperimentConfig,
    ImplementationRegistry,
    Role,
    default_registry,
    register_experiments,
    resolve_config,
)
from .configs import load_yaml, save_yaml
from .logging_utils import ResultLog, configure_logging, write_records

__all__ = [
    "APSSAlgorithm",
    "AllPairs",
    "BenchmarkEngine",
    "BruteForce",
    "DatasetCatalog",
    "DenseReference",
    "ExperimentConfig",
    "ImplementationRegistry",
    "IndexJoin",
    "ResultLog",
    "MMJoin",
    "Role",
    "SimilarityPairs",
    "WorkCounters",
    "default_registry",
    "load_yaml",
    "configure_logging",
    "register_experiments",
    "resolve_config",
    "save_yaml",
    "write_records",
]
