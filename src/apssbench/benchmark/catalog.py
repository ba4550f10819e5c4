"""Dataset catalog and problem-space enumeration.

A catalog is an ordered, read-only list of ``(threshold, path)`` entries. The
position of an entry is its experiment value, so the problem space of a run is
always ``0..len(catalog) - 1`` in catalog order.

Catalog files are YAML::

    data_path: /data/apss        # optional, relative paths resolve against it
    threshold: 0.3               # optional default threshold
    datasets:
      - wiki.clu
      - {path: rcv1.clu, threshold: 0.5}
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable

from apssbench.configs import load_yaml

DEFAULT_CATALOG_THRESHOLD = 0.10
CATALOG_SUFFIXES = (".yaml", ".yml")


@dataclass(frozen=True)
class DatasetEntry:
    """One dataset and the similarity threshold it is searched with."""

    threshold: float
    path: str


@dataclass(frozen=True)
class DatasetCatalog:
    """Ordered collection of :class:`DatasetEntry` items."""

    entries: tuple[DatasetEntry, ...]

    def __post_init__(self) -> None:
        if not self.entries:
            raise ValueError("Dataset catalog is empty.")

    def __len__(self) -> int:
        return len(self.entries)

    def __getitem__(self, value: int) -> DatasetEntry:
        if not 0 <= value < len(self.entries):
            raise IndexError(
                f"Experiment value {value} is outside the problem space "
                f"0..{len(self.entries) - 1}"
            )
        return self.entries[value]

    def experiment_values(self) -> list[int]:
        return list(range(len(self.entries)))

    def describe(self) -> list[str]:
        """Return one ``Prob. Space`` line per entry."""
        return [
            f'  {value}: {{ t: {entry.threshold:.2f}, filename: "{entry.path}" }}'
            for value, entry in enumerate(self.entries)
        ]

    @classmethod
    def single(cls, minsim: float, path: str | Path) -> "DatasetCatalog":
        return cls((DatasetEntry(threshold=float(minsim), path=str(path)),))

    @classmethod
    def from_directory(
        cls,
        data_path: str | Path,
        names: Iterable[str],
        *,
        threshold: float = DEFAULT_CATALOG_THRESHOLD,
    ) -> "DatasetCatalog":
        root = Path(data_path)
        return cls(
            tuple(
                DatasetEntry(threshold=float(threshold), path=str(root / name))
                for name in names
            )
        )

    @classmethod
    def from_yaml(
        cls,
        path: str | Path,
        *,
        default_threshold: float = DEFAULT_CATALOG_THRESHOLD,
    ) -> "DatasetCatalog":
        source = Path(path)
        data = load_yaml(source)
        datasets = data.get("datasets")
        if not isinstance(datasets, list) or not datasets:
            raise ValueError(f"{source}: 'datasets' must be a non-empty list")

        data_path = data.get("data_path")
        root = source.parent if data_path is None else Path(str(data_path)).expanduser()
        if not root.is_absolute():
            root = source.parent / root
        threshold = float(data.get("threshold", default_threshold))

        entries = [_entry_from_item(item, root, threshold, source) for item in datasets]
        return cls(tuple(entries))

    @classmethod
    def from_selector(cls, selector: str, minsim: float) -> "DatasetCatalog":
        """Build a catalog from a dataset selector.

        Selectors ending in ``.yaml``/``.yml`` name a catalog file whose
        default threshold is ``minsim``. Any other selector is a single
        dataset path searched with ``minsim``.
        """
        if Path(selector).suffix.lower() in CATALOG_SUFFIXES:
            return cls.from_yaml(selector, default_threshold=minsim)
        return cls.single(minsim, selector)


def _entry_from_item(
    item: Any,
    root: Path,
    threshold: float,
    source: Path,
) -> DatasetEntry:
    if isinstance(item, str):
        raw_path, item_threshold = item, threshold
    elif isinstance(item, dict) and "path" in item:
        raw_path = str(item["path"])
        item_threshold = float(item.get("threshold", threshold))
    else:
        raise ValueError(f"{source}: invalid dataset entry {item!r}")
    resolved = Path(raw_path).expanduser()
    if not resolved.is_absolute():
        resolved = root / resolved
    return DatasetEntry(threshold=item_threshold, path=str(resolved))
