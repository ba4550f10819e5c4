"""Experiment configuration resolution and runtime schema.

Experiment settings come from named sources (a YAML ``experiment`` section,
``APSS_*`` environment variables, CLI overrides) merged into one flat mapping
and resolved once per process. Missing required settings fail before any
trial runs.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
import importlib
from pathlib import Path
import re
from typing import Any, Iterable, Mapping, TypeVar, cast

import yaml

from apssbench.configs import load_yaml, merge_overrides

try:
    OmegaConf = importlib.import_module("omegaconf").OmegaConf
    OmegaConfBaseException = importlib.import_module(
        "omegaconf.errors"
    ).OmegaConfBaseException
except ModuleNotFoundError as exc:  # pragma: no cover
    raise RuntimeError(
        "apssbench.benchmark.config_schema requires 'omegaconf'. "
        "Install dependencies with `pip install -e .`."
    ) from exc

ENV_KEYS: dict[str, str] = {
    "minsim": "APSS_MINSIM",
    "dataset": "APSS_DATASET",
    "preprocess": "APSS_PREPROCESS",
    "samples": "APSS_SAMPLES",
    "iterations": "APSS_ITERATIONS",
    "algorithm": "APSS_ALGORITHM",
}

_FLOAT_PREFIX = re.compile(r"\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")

# failures of YAML parsing, OmegaConf merging or schema validation
READ_ERRORS = (OSError, TypeError, yaml.YAMLError, OmegaConfBaseException)


class ConfigurationError(ValueError):
    """Raised when a setting is present but unusable."""


class MissingConfigError(ConfigurationError):
    """Raised when a required setting is absent."""


@dataclass(frozen=True)
class ExperimentConfig:
    """Resolved run parameters shared by every trial of a process."""

    minsim: float
    dataset: str
    preprocess: bool
    samples: int
    iterations: int
    algorithm_filter: tuple[str, ...] = ()


@dataclass
class RuntimeConfig:
    """Process-level options that do not affect measurements."""

    log_level: str = "INFO"
    output_dir: str | None = None
    features: list[str] | None = None
    group: str = "apss"
    plot: bool = False


TSchema = TypeVar("TSchema")


def _decode_schema(
    data: Mapping[str, object],
    schema: type[TSchema],
) -> TSchema:
    base = OmegaConf.structured(schema)
    loaded = OmegaConf.create(dict(data))
    merged = OmegaConf.merge(base, loaded)
    decoded = OmegaConf.to_object(merged)
    if not isinstance(decoded, schema):
        raise TypeError(f"Failed to decode config as {schema.__name__}")
    return cast(TSchema, decoded)


def parse_runtime_config(
    data: Mapping[str, object],
    overrides: Iterable[str] | None = None,
) -> RuntimeConfig:
    """Decode a mapping, plus dotlist ``overrides``, into :class:`RuntimeConfig`."""
    try:
        return _decode_schema(merge_overrides(dict(data), overrides), RuntimeConfig)
    except READ_ERRORS as exc:
        raise ConfigurationError(f"Invalid runtime configuration: {exc}") from exc


def parse_minsim(value: object) -> float:
    """Parse a threshold the way ``strtod`` does: leading number or ``0.0``."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    match = _FLOAT_PREFIX.match(str(value))
    if match is None:
        return 0.0
    return float(match.group(0))


def _require(
    source: Mapping[str, object], key: str, *, allow_blank: bool = False
) -> object:
    value = source.get(key)
    blank = isinstance(value, str) and not value.strip()
    if value is None or (blank and not allow_blank):
        raise MissingConfigError(
            f"Required setting '{key}' (environment variable {ENV_KEYS[key]}) "
            "was not specified"
        )
    return value


def _positive_int(key: str, value: object) -> int:
    if isinstance(value, bool):
        raise ConfigurationError(f"Setting '{key}' must be a positive integer, got {value!r}")
    try:
        parsed = int(str(value).strip())
    except ValueError as exc:
        raise ConfigurationError(
            f"Setting '{key}' must be a positive integer, got {value!r}"
        ) from exc
    if parsed <= 0:
        raise ConfigurationError(f"Setting '{key}' must be > 0, got {parsed}")
    return parsed


def parse_algorithm_filter(value: object) -> tuple[str, ...]:
    """Split a comma-delimited (or list) filter into unique, ordered names."""
    if value is None:
        return ()
    items: Iterable[object] = value.split(",") if isinstance(value, str) else value
    names = (str(item).strip() for item in items)
    return tuple(dict.fromkeys(name for name in names if name))


def parse_preprocess_flag(value: object) -> bool:
    if isinstance(value, bool):
        return value
    return value is not None and str(value).lower() == "true"


def resolve_config(source: Mapping[str, object]) -> ExperimentConfig:
    """Build an :class:`ExperimentConfig` from a flat settings mapping.

    Required keys are ``minsim``, ``dataset``, ``samples`` and
    ``iterations``. ``algorithm`` and ``preprocess`` are optional.
    """
    minsim = parse_minsim(_require(source, "minsim", allow_blank=True))
    dataset = str(_require(source, "dataset"))
    samples = _positive_int("samples", _require(source, "samples"))
    iterations = _positive_int("iterations", _require(source, "iterations"))
    return ExperimentConfig(
        minsim=minsim,
        dataset=dataset,
        preprocess=parse_preprocess_flag(source.get("preprocess")),
        samples=samples,
        iterations=iterations,
        algorithm_filter=parse_algorithm_filter(source.get("algorithm")),
    )


def source_from_environ(environ: Mapping[str, str]) -> dict[str, object]:
    """Translate ``APSS_*`` environment variables into a settings mapping."""
    return {key: environ[env] for key, env in ENV_KEYS.items() if env in environ}


def merge_sources(*sources: Mapping[str, object] | None) -> dict[str, object]:
    """Merge settings mappings; later sources win and ``None`` values are skipped."""
    merged: dict[str, object] = {}
    for source in sources:
        for key, value in (source or {}).items():
            if value is not None:
                merged[key] = value
    return merged


def load_config_file(
    path: str | Path,
    *,
    overrides: Iterable[str] | None = None,
) -> tuple[dict[str, object], dict[str, Any]]:
    """Load ``experiment`` and ``runtime`` sections from a YAML file."""
    try:
        data = load_yaml(path, overrides=overrides)
    except READ_ERRORS as exc:
        raise ConfigurationError(f"Could not read config file {path}: {exc}") from exc
    unknown = sorted(set(data) - {"experiment", "runtime"})
    if unknown:
        raise ConfigurationError(
            f"{path}: unknown top-level sections: {', '.join(unknown)}"
        )
    experiment = dict(data.get("experiment") or {})
    unknown_keys = sorted(set(experiment) - set(ENV_KEYS))
    if unknown_keys:
        raise ConfigurationError(
            f"{path}: unknown experiment settings: {', '.join(unknown_keys)}"
        )
    return experiment, dict(data.get("runtime") or {})


def config_to_dict(config: ExperimentConfig) -> dict[str, Any]:
    """Convert :class:`ExperimentConfig` to a plain dictionary."""
    data = asdict(config)
    data["algorithm_filter"] = list(config.algorithm_filter)
    return data
