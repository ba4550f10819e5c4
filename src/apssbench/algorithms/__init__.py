"""Bundled all-pairs similarity search implementations."""

from .allpairs import AllPairs
from .base import (
    APSSAlgorithm,
    COUNTER_NAMES,
    CounterSet,
    InputState,
    SimilarityPairs,
    WorkCounters,
)
from .bruteforce import BruteForce
from .dense import DenseReference
from .idxjoin import IndexJoin
from .mmjoin import MMJoin

__all__ = [
    "APSSAlgorithm",
    "AllPairs",
    "BruteForce",
    "COUNTER_NAMES",
    "CounterSet",
    "DenseReference",
    "IndexJoin",
    "InputState",
    "MMJoin",
    "SimilarityPairs",
    "WorkCounters",
]
