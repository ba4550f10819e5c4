from __future__ import annotations

from pathlib import Path

import pytest

from apssbench.benchmark.catalog import DatasetCatalog
from apssbench.benchmark.config_schema import (
    ConfigurationError,
    MissingConfigError,
    load_config_file,
    merge_sources,
    parse_algorithm_filter,
    parse_minsim,
    parse_preprocess_flag,
    parse_runtime_config,
    resolve_config,
    source_from_environ,
)

ENVIRON = {
    "APSS_MINSIM": "0.5",
    "APSS_DATASET": "toy.clu",
    "APSS_SAMPLES": "2",
    "APSS_ITERATIONS": "1",
    "APSS_ALGORITHM": "allpairs,mmjoin",
    "UNRELATED": "x",
}


def test_resolve_config_from_environment() -> None:
    config = resolve_config(source_from_environ(ENVIRON))
    assert config.minsim == 0.5
    assert config.dataset == "toy.clu"
    assert config.samples == 2
    assert config.iterations == 1
    assert config.preprocess is False
    assert config.algorithm_filter == ("allpairs", "mmjoin")


@pytest.mark.parametrize("missing", ["APSS_MINSIM", "APSS_DATASET", "APSS_SAMPLES", "APSS_ITERATIONS"])
def test_resolve_config_requires_settings(missing: str) -> None:
    environ = {key: value for key, value in ENVIRON.items() if key != missing}
    with pytest.raises(MissingConfigError, match=missing):
        resolve_config(source_from_environ(environ))


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("0.75", 0.75), ("  .5", 0.5), ("0.3abc", 0.3), ("abc", 0.0), ("", 0.0), (1, 1.0)],
)
def test_parse_minsim_is_permissive(raw: object, expected: float) -> None:
    assert parse_minsim(raw) == expected


def test_blank_minsim_resolves_to_zero() -> None:
    config = resolve_config(source_from_environ({**ENVIRON, "APSS_MINSIM": ""}))
    assert config.minsim == 0.0


@pytest.mark.parametrize("value", ["0", "-3", "two", "1.5"])
def test_sample_count_must_be_positive_integer(value: str) -> None:
    with pytest.raises(ConfigurationError, match="samples"):
        resolve_config(source_from_environ({**ENVIRON, "APSS_SAMPLES": value}))


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("true", True), ("TRUE", True), (True, True), ("1", False), ("yes", False), (" true", False), (None, False)],
)
def test_parse_preprocess_flag(raw: object, expected: bool) -> None:
    assert parse_preprocess_flag(raw) is expected


def test_parse_algorithm_filter_dedupes_and_keeps_order() -> None:
    assert parse_algorithm_filter("allpairs,,mmjoin, allpairs") == ("allpairs", "mmjoin")
    assert parse_algorithm_filter(["mmjoin", "idxjoin"]) == ("mmjoin", "idxjoin")
    assert parse_algorithm_filter("") == ()
    assert parse_algorithm_filter(None) == ()


def test_merge_sources_later_sources_win() -> None:
    merged = merge_sources(
        {"minsim": 0.1, "dataset": "a.clu"},
        None,
        {"minsim": "0.9", "dataset": None},
    )
    assert merged == {"minsim": "0.9", "dataset": "a.clu"}


def test_load_config_file_sections(tmp_path: Path) -> None:
    path = tmp_path / "bench.yaml"
    path.write_text(
        "experiment:\n"
        "  minsim: 0.4\n"
        "  dataset: toy.clu\n"
        "  samples: 3\n"
        "  iterations: 2\n"
        "  preprocess: true\n"
        "runtime:\n"
        "  log_level: DEBUG\n",
        encoding="utf-8",
    )
    experiment, runtime = load_config_file(path, overrides=["experiment.samples=5"])
    config = resolve_config(experiment)
    assert config.samples == 5
    assert config.preprocess is True
    assert parse_runtime_config(runtime).log_level == "DEBUG"


def test_load_config_file_rejects_unknown_keys(tmp_path: Path) -> None:
    path = tmp_path / "bench.yaml"
    path.write_text("experiment:\n  threads: 4\n", encoding="utf-8")
    with pytest.raises(ConfigurationError, match="threads"):
        load_config_file(path)

    path.write_text("reports: {}\n", encoding="utf-8")
    with pytest.raises(ConfigurationError, match="reports"):
        load_config_file(path)


def test_parse_runtime_config_defaults_and_unknown_key() -> None:
    runtime = parse_runtime_config({})
    assert runtime.log_level == "INFO"
    assert runtime.group == "apss"
    assert runtime.features is None
    with pytest.raises(Exception):
        parse_runtime_config({"workers": 4})


def test_catalog_from_single_selector() -> None:
    catalog = DatasetCatalog.from_selector("data/toy.clu", 0.5)
    assert catalog.experiment_values() == [0]
    assert catalog[0].threshold == 0.5
    assert catalog.describe() == ['  0: { t: 0.50, filename: "data/toy.clu" }']
    with pytest.raises(IndexError):
        catalog[1]


def test_catalog_from_yaml_file(tmp_path: Path) -> None:
    path = tmp_path / "catalog.yaml"
    path.write_text(
        "data_path: data\n"
        "datasets:\n"
        "  - wiki.clu\n"
        "  - {path: /abs/rcv1.clu, threshold: 0.9}\n",
        encoding="utf-8",
    )
    catalog = DatasetCatalog.from_selector(str(path), 0.25)
    assert catalog.experiment_values() == [0, 1]
    assert catalog[0].path == str(tmp_path / "data" / "wiki.clu")
    assert catalog[0].threshold == 0.25
    assert catalog[1].path == "/abs/rcv1.clu"
    assert catalog[1].threshold == 0.9


def test_catalog_from_directory_uses_default_threshold(tmp_path: Path) -> None:
    catalog = DatasetCatalog.from_directory(tmp_path, ["a.clu", "b.clu"])
    assert [entry.threshold for entry in catalog.entries] == [0.10, 0.10]
    with pytest.raises(ValueError):
        DatasetCatalog.from_directory(tmp_path, [])
