"""Benchmark report generation utilities.

This module turns engine results into:

- a fixed-width console table (one row per benchmark and experiment value)
- ``results.jsonl`` with full timing and counter series
- ``summary.csv`` / ``summary.json`` aggregates
- an optional bar plot of speed relative to the baseline
"""

from __future__ import annotations

import csv
import json
import logging
import math
from pathlib import Path
from typing import Any, Sequence

import numpy as np

from apssbench.algorithms import COUNTER_NAMES
from apssbench.logging_utils import write_records

from .engine import BenchmarkResult

LOGGER = logging.getLogger(__name__)

SUMMARY_FIELDS = [
    "group",
    "experiment",
    "benchmark",
    "baseline",
    "samples",
    "iterations",
    "baseline_ratio",
    "us_per_iteration",
    "iterations_per_sec",
    *COUNTER_NAMES,
]


def _safe_float(value: Any) -> float | None:
    try:
        if value is None:
            return None
        numeric = float(value)
    except (TypeError, ValueError):
        return None
    if not np.isfinite(numeric):
        return None
    return numeric


def _last(values: Sequence[int]) -> int | None:
    return int(values[-1]) if values else None


def summary_rows(results: Sequence[BenchmarkResult]) -> list[dict[str, Any]]:
    """One flat row per result; counters show the last harvested value."""
    rows: list[dict[str, Any]] = []
    for result in results:
        mean = result.statistics.mean if result.statistics is not None else float("nan")
        row: dict[str, Any] = {
            "group": result.group,
            "experiment": result.experiment_value,
            "benchmark": result.name,
            "baseline": result.is_baseline,
            "samples": result.samples,
            "iterations": result.iterations,
            "baseline_ratio": result.baseline_ratio,
            "us_per_iteration": mean,
            "iterations_per_sec": 1e6 / mean if mean and math.isfinite(mean) else float("nan"),
        }
        for name in COUNTER_NAMES:
            row[name] = _last(result.counters.get(name, []))
        rows.append(row)
    return rows


def result_records(results: Sequence[BenchmarkResult]) -> list[dict[str, Any]]:
    """Return JSON-serializable records holding every raw series."""
    records: list[dict[str, Any]] = []
    for result in results:
        statistics = result.statistics.to_dict() if result.statistics is not None else {}
        records.append(
            {
                "group": result.group,
                "benchmark": result.name,
                "experiment": result.experiment_value,
                "baseline": result.is_baseline,
                "samples": result.samples,
                "iterations": result.iterations,
                "baseline_ratio": _safe_float(result.baseline_ratio),
                "statistics": {key: _safe_float(value) for key, value in statistics.items()},
                "sample_us": list(result.sample_us),
                "trial_us": list(result.trial_us),
                "counters": {name: list(values) for name, values in result.counters.items()},
            }
        )
    return records


def _format_cell(value: Any) -> str:
    if value is None:
        return "-"
    if isinstance(value, bool):
        return "*" if value else ""
    if isinstance(value, float):
        return "nan" if not math.isfinite(value) else f"{value:.5f}"
    return str(value)


def format_table(results: Sequence[BenchmarkResult]) -> str:
    """Render results as a fixed-width text table."""
    columns = [
        "group",
        "experiment",
        "benchmark",
        "baseline",
        "samples",
        "iterations",
        "baseline_ratio",
        "us_per_iteration",
        *COUNTER_NAMES,
    ]
    rows = [[_format_cell(row[col]) for col in columns] for row in summary_rows(results)]
    widths = [
        max(len(col), *(len(row[idx]) for row in rows)) if rows else len(col)
        for idx, col in enumerate(columns)
    ]
    lines = [" | ".join(col.rjust(width) for col, width in zip(columns, widths))]
    lines.append("-+-".join("-" * width for width in widths))
    for row in rows:
        lines.append(" | ".join(cell.rjust(width) for cell, width in zip(row, widths)))
    return "\n".join(lines)


def _write_csv(path: Path, rows: list[dict[str, Any]], fieldnames: list[str]) -> None:
    with path.open("w", encoding="utf-8", newline="") as handle:
        writer = csv.DictWriter(handle, fieldnames=fieldnames)
        writer.writeheader()
        for row in rows:
            writer.writerow(row)


def _plot_relative_speed(rows: list[dict[str, Any]], output: Path) -> None:
    import matplotlib

    matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    rows = [row for row in rows if _safe_float(row.get("baseline_ratio")) is not None]
    if not rows:
        return
    labels = [f"{row['benchmark']}@{row['experiment']}" for row in rows]
    values = [float(row["baseline_ratio"]) for row in rows]

    fig, ax = plt.subplots(figsize=(max(6.0, 0.5 * len(labels)), 4.0))
    ax.bar(np.arange(len(labels)), values, color="#4c78a8")
    ax.set_ylabel("Time relative to baseline")
    ax.set_title("Relative Run Time (lower is faster)")
    ax.set_xticks(np.arange(len(labels)))
    ax.set_xticklabels(labels, rotation=70, ha="right", fontsize=8)
    ax.axhline(1.0, color="black", linestyle="--", linewidth=1.0)
    fig.tight_layout()
    fig.savefig(output)
    plt.close(fig)


def write_report(
    results: Sequence[BenchmarkResult],
    output_dir: Path,
    *,
    plot: bool = False,
) -> Path:
    """Persist benchmark results and aggregates into ``output_dir``.

    Returns the path of the ``results.jsonl`` file.
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    results_path = output_dir / "results.jsonl"
    write_records(results_path, result_records(results))
    if not results:
        LOGGER.warning("No benchmark results to summarize in %s", output_dir)
        return results_path

    rows = summary_rows(results)
    _write_csv(output_dir / "summary.csv", rows, SUMMARY_FIELDS)

    summary = {
        "num_results": len(rows),
        "baseline": next((row["benchmark"] for row in rows if row["baseline"]), None),
        "fastest": _fastest_by_experiment(rows),
    }
    (output_dir / "summary.json").write_text(
        json.dumps(summary, indent=2),
        encoding="utf-8",
    )

    if plot:
        _plot_relative_speed(rows, output_dir / "relative_speed.pdf")
    return results_path


def _fastest_by_experiment(rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
    best: dict[int, dict[str, Any]] = {}
    for row in rows:
        mean = _safe_float(row.get("us_per_iteration"))
        if mean is None:
            continue
        current = best.get(row["experiment"])
        if current is None or mean < current["us_per_iteration"]:
            best[row["experiment"]] = {
                "experiment": row["experiment"],
                "benchmark": row["benchmark"],
                "us_per_iteration": mean,
                "baseline_ratio": _safe_float(row.get("baseline_ratio")),
            }
    return [best[key] for key in sorted(best)]
