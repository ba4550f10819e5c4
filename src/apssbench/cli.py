"""CLI for running and inspecting all-pairs similarity search benchmarks.

Settings are read, in increasing precedence, from the ``--config`` YAML file,
``APSS_*`` environment variables and ``--set`` overrides.

Usage
-----
``APSS_MINSIM=0.5 APSS_DATASET=data/toy.clu APSS_SAMPLES=5 APSS_ITERATIONS=1 apssbench run``

``apssbench run --config bench.yaml --set algorithm=allpairs,mmjoin --set runtime.output_dir=out``
"""

from __future__ import annotations

import argparse
import logging
import os
from pathlib import Path
from typing import Any, Mapping, Sequence

from .benchmark.adapter import AlgorithmExecutionError
from .benchmark.catalog import DatasetCatalog
from .benchmark.config_schema import (
    READ_ERRORS,
    ConfigurationError,
    ExperimentConfig,
    RuntimeConfig,
    config_to_dict,
    load_config_file,
    merge_sources,
    parse_runtime_config,
    resolve_config,
    source_from_environ,
)
from .benchmark.driver import NoBaselineError, register_experiments
from .benchmark.engine import BenchmarkEngine
from .benchmark.fixture import DataPreparationError
from .benchmark.registry import Role, default_registry
from .benchmark.reporting import format_table, write_report
from .configs import dump_yaml, save_yaml
from .logging_utils import configure_logging

LOGGER = logging.getLogger(__name__)

FATAL_ERRORS = (
    ConfigurationError,
    NoBaselineError,
    DataPreparationError,
    AlgorithmExecutionError,
)


def _split_overrides(items: Sequence[str]) -> tuple[dict[str, object], list[str]]:
    """Split ``--set`` items into experiment settings and runtime dotlist entries."""
    experiment: dict[str, object] = {}
    runtime: list[str] = []
    for raw_item in items:
        item = raw_item.strip()
        if not item:
            continue
        if "=" not in item:
            raise ConfigurationError(f"Invalid override '{item}'. Expected 'key=value'.")
        key, value = item.split("=", 1)
        key = key.strip()
        if key.startswith("runtime."):
            runtime.append(f"{key[len('runtime.'):]}={value}")
            continue
        if key.startswith("experiment."):
            key = key[len("experiment.") :]
        experiment[key] = value
    return experiment, runtime


def resolve_inputs(
    args: argparse.Namespace,
    environ: Mapping[str, str] | None = None,
) -> tuple[ExperimentConfig, RuntimeConfig]:
    """Merge every configuration source and resolve it."""
    file_source: dict[str, object] = {}
    runtime_map: dict[str, Any] = {}
    if args.config is not None:
        file_source, runtime_map = load_config_file(args.config)

    experiment_overrides, runtime_overrides = _split_overrides(args.set or [])
    runtime = parse_runtime_config(runtime_map, runtime_overrides)
    if args.features:
        runtime.features = [name.strip() for name in args.features.split(",") if name.strip()]

    source = merge_sources(
        file_source,
        source_from_environ(os.environ if environ is None else environ),
        experiment_overrides,
    )
    return resolve_config(source), runtime


def _build_catalog(config: ExperimentConfig) -> DatasetCatalog:
    try:
        return DatasetCatalog.from_selector(config.dataset, config.minsim)
    except (*READ_ERRORS, ValueError) as exc:
        raise ConfigurationError(
            f"Could not resolve dataset selector '{config.dataset}': {exc}"
        ) from exc


def _build_registry(runtime: RuntimeConfig):
    try:
        return default_registry(runtime.features)
    except ValueError as exc:
        raise ConfigurationError(str(exc)) from exc


def run_command(args: argparse.Namespace) -> None:
    """Register and run benchmarks, print the table and write artifacts."""
    config, runtime = resolve_inputs(args)
    configure_logging(runtime.log_level)

    registry = _build_registry(runtime)
    catalog = _build_catalog(config)
    LOGGER.info("Prob. Space:")
    for line in catalog.describe():
        LOGGER.info(line)

    engine = BenchmarkEngine()
    plan = register_experiments(engine, registry, config, catalog, group=runtime.group)
    if args.dry_run:
        for registration in engine.registrations():
            LOGGER.info(
                "PLAN | %s/%s samples=%d iterations=%d%s",
                registration.group,
                registration.name,
                registration.samples,
                registration.iterations,
                " (baseline)" if registration.is_baseline else "",
            )
        return

    results = engine.run_all()
    print(format_table(results))

    if runtime.output_dir:
        output_dir = Path(runtime.output_dir).expanduser()
        results_path = write_report(results, output_dir, plot=runtime.plot)
        save_yaml(
            output_dir / "config.yaml",
            {
                "experiment": config_to_dict(config),
                "runtime": {
                    "log_level": runtime.log_level,
                    "output_dir": runtime.output_dir,
                    "features": runtime.features,
                    "group": runtime.group,
                    "plot": runtime.plot,
                },
                "plan": {
                    "baseline": plan.baseline,
                    "references": list(plan.references),
                    "benchmarks": list(plan.benchmarks),
                    "not_implemented": list(plan.not_implemented),
                },
            },
        )
        LOGGER.info("Finished run. Results: %s", results_path)


def list_command(args: argparse.Namespace) -> None:
    """Print registered algorithms grouped by role."""
    runtime = parse_runtime_config({})
    if args.features:
        runtime.features = [name.strip() for name in args.features.split(",") if name.strip()]
    registry = _build_registry(runtime)
    for role in Role:
        print(f"{role.value}:")
        for name in registry.list_by_role(role):
            print(f"  - {name}")


def show_config_command(args: argparse.Namespace) -> None:
    """Print the resolved configuration and the registration plan."""
    config, runtime = resolve_inputs(args)
    configure_logging(runtime.log_level)
    registry = _build_registry(runtime)
    catalog = _build_catalog(config)
    plan = register_experiments(
        BenchmarkEngine(), registry, config, catalog, group=runtime.group
    )

    print(dump_yaml({"experiment": config_to_dict(config)}), end="")
    print("Prob. Space:")
    for line in catalog.describe():
        print(line)
    print(f"\nBaseline: {plan.baseline}")
    print("References:")
    for name in plan.references:
        print(f"- {name}")
    print("Benchmarks:")
    for name in plan.benchmarks:
        print(f"- {name}")
    for name in plan.not_implemented:
        print(f"- {name} (not implemented)")


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="YAML file with 'experiment' and 'runtime' sections.",
    )
    parser.add_argument(
        "--set",
        action="append",
        default=[],
        help="Setting override, e.g. minsim=0.5 or runtime.log_level=DEBUG",
    )
    parser.add_argument(
        "--features",
        default=None,
        help="Comma-delimited algorithms to make available (default: all builtins).",
    )


def build_parser() -> argparse.ArgumentParser:
    """Build argument parser for benchmark commands."""
    parser = argparse.ArgumentParser(
        prog="apssbench",
        description="Compare all-pairs similarity search implementations.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    run_parser = sub.add_parser("run", help="Run benchmarks.")
    _add_common_arguments(run_parser)
    run_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Only list planned registrations without executing.",
    )
    run_parser.set_defaults(handler=run_command)

    list_parser = sub.add_parser("list", help="List available algorithms.")
    list_parser.add_argument(
        "--features",
        default=None,
        help="Comma-delimited algorithms to make available (default: all builtins).",
    )
    list_parser.set_defaults(handler=list_command)

    show_parser = sub.add_parser("show-config", help="Print resolved configuration.")
    _add_common_arguments(show_parser)
    show_parser.set_defaults(handler=show_config_command)

    return parser


def main(argv: Sequence[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        args.handler(args)
    except FATAL_ERRORS as exc:
        raise SystemExit(f"apssbench: {exc}") from exc


if __name__ == "__main__":
    main()
