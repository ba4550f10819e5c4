"""Per-trial measurement series and timing statistics."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Iterable, Mapping, Sequence

import numpy as np
from scipy import stats


class CounterMeasurement:
    """Append-only series of one integer work counter.

    Counters are reported as raw values only; no mean or spread is derived
    from them.
    """

    reported_statistics: tuple[str, ...] = ()

    def __init__(self, name: str) -> None:
        self.name = name
        self._values: list[int] = []

    def add_value(self, value: int) -> None:
        value = int(value)
        if value < 0:
            raise ValueError(f"Counter '{self.name}' received negative value {value}")
        self._values.append(value)

    @property
    def values(self) -> tuple[int, ...]:
        return tuple(self._values)

    def __len__(self) -> int:
        return len(self._values)


class MeasurementCollector:
    """Named counter series for one experiment."""

    def __init__(self, names: Iterable[str]) -> None:
        self._measurements = {name: CounterMeasurement(name) for name in names}

    @property
    def names(self) -> list[str]:
        return list(self._measurements)

    def harvest(self, counters: Mapping[str, int]) -> None:
        """Append one value per metric; metrics missing from ``counters`` record 0."""
        for name, measurement in self._measurements.items():
            measurement.add_value(counters.get(name, 0))

    def series(self) -> dict[str, list[int]]:
        return {
            name: list(measurement.values)
            for name, measurement in self._measurements.items()
        }

    def __len__(self) -> int:
        lengths = {len(measurement) for measurement in self._measurements.values()}
        return lengths.pop() if lengths else 0


@dataclass(frozen=True)
class TimingStatistics:
    """Distributional summary of per-sample timings (microseconds)."""

    size: int
    mean: float
    variance: float
    stddev: float
    skewness: float
    kurtosis: float
    min: float
    max: float
    median: float
    p90: float
    p99: float

    @classmethod
    def from_samples(cls, values: Sequence[float]) -> "TimingStatistics":
        data = np.asarray(values, dtype=np.float64)
        if data.size == 0:
            nan = float("nan")
            return cls(0, nan, nan, nan, nan, nan, nan, nan, nan, nan, nan)

        variance = float(np.var(data, ddof=1)) if data.size > 1 else 0.0
        stddev = float(np.sqrt(variance))
        if data.size > 2 and stddev > 0:
            skewness = float(stats.skew(data))
            kurtosis = float(stats.kurtosis(data))
        else:
            skewness = 0.0
            kurtosis = 0.0
        p50, p90, p99 = np.percentile(data, [50.0, 90.0, 99.0])
        return cls(
            size=int(data.size),
            mean=float(np.mean(data)),
            variance=variance,
            stddev=stddev,
            skewness=skewness,
            kurtosis=kurtosis,
            min=float(np.min(data)),
            max=float(np.max(data)),
            median=float(p50),
            p90=float(p90),
            p99=float(p99),
        )

    def to_dict(self) -> dict[str, float]:
        return asdict(self)
