"""YAML reading and writing with OmegaConf dotlist overrides."""

from __future__ import annotations

import importlib
from pathlib import Path
from typing import Any, Iterable, Mapping

import yaml

try:
    OmegaConf = importlib.import_module("omegaconf").OmegaConf
except ModuleNotFoundError as exc:
    raise RuntimeError(
        "apssbench requires 'omegaconf'. Install dependencies with `pip install -e .`."
    ) from exc


def _dotlist(overrides: Iterable[str] | None) -> list[str]:
    return [item.strip() for item in (overrides or []) if item and item.strip()]


def _resolved(cfg: Any, context: str) -> dict[str, Any]:
    container = OmegaConf.to_container(cfg, resolve=True)
    if container is None:
        return {}
    if not isinstance(container, dict):
        raise TypeError(
            f"{context}: expected a mapping at the top level, "
            f"got {type(container).__name__}"
        )
    return {str(key): value for key, value in container.items()}


def load_yaml(
    path: str | Path,
    *,
    overrides: Iterable[str] | None = None,
) -> dict[str, Any]:
    """Read ``path`` and apply ``key=value`` dotlist overrides on top of it."""
    source = Path(path).expanduser()
    if not source.is_file():
        raise FileNotFoundError(f"YAML file not found: {source}")
    cfg = OmegaConf.load(source)
    dotlist = _dotlist(overrides)
    if dotlist:
        cfg = OmegaConf.merge(cfg, OmegaConf.from_dotlist(dotlist))
    return _resolved(cfg, str(source))


def merge_overrides(
    data: Mapping[str, Any],
    overrides: Iterable[str] | None = None,
) -> dict[str, Any]:
    """Return ``data`` with dotlist overrides applied."""
    dotlist = _dotlist(overrides)
    if not dotlist:
        return dict(data)
    merged = OmegaConf.merge(OmegaConf.create(dict(data)), OmegaConf.from_dotlist(dotlist))
    return _resolved(merged, "overrides")


def dump_yaml(data: Mapping[str, Any]) -> str:
    return yaml.safe_dump(dict(data), sort_keys=False, default_flow_style=False)


def save_yaml(path: str | Path, data: Mapping[str, Any]) -> Path:
    """Write ``data`` as YAML, creating parent directories."""
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(dump_yaml(data), encoding="utf-8")
    return target
