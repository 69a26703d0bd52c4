"""Timeline extraction: nightly performance trends and per-run time series."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

import pandas as pd

from llmd_bench.config import EngineConfig
from llmd_bench.raw.report import get_path
from llmd_bench.raw.statistics import ms_factor, safe_float
from llmd_bench.records.normalize import normalize, normalize_all

logger = logging.getLogger(__name__)

TIMELINE_COLUMNS = [
    "date",
    "run_start",
    "hardware",
    "model",
    "config",
    "ttft_p50_ms",
    "tpot_p50_ms",
    "throughput_per_gpu",
    "p99_latency_ms",
]

SERIES_COLUMNS = ["timestamp", "relative_time_s", "value"]

# Sample fields tried in order for a point's value.
_SAMPLE_VALUE_KEYS = ("value", "mean", "p50")


def performance_timeline(
    reports: Iterable[Mapping[str, Any]],
    *,
    config: EngineConfig | None = None,
) -> pd.DataFrame:
    """One row per usable report, ordered by run date.

    Returns:
        DataFrame with columns `date` (``YYYY-MM-DD``), `run_start`,
        `hardware`, `model`, `config`, `ttft_p50_ms`, `tpot_p50_ms`,
        `throughput_per_gpu` and `p99_latency_ms`.
    """
    records: list[dict[str, Any]] = []
    for row in normalize_all(reports, config=config):
        records.append(
            {
                "date": row.run_start[:10],
                "run_start": row.run_start,
                "hardware": row.hardware,
                "model": row.model,
                "config": row.config,
                "ttft_p50_ms": row.ttft.p50_ms if row.ttft is not None else 0.0,
                "tpot_p50_ms": row.tpot.p50_ms if row.tpot is not None else 0.0,
                "throughput_per_gpu": row.throughput_per_gpu,
                "p99_latency_ms": (
                    row.request_latency.p99_ms if row.request_latency is not None else 0.0
                ),
            }
        )
    if not records:
        return pd.DataFrame(columns=TIMELINE_COLUMNS)
    df = pd.DataFrame(records, columns=TIMELINE_COLUMNS)
    df = df.sort_values(["date", "hardware", "model", "config"], kind="mergesort")
    return df.reset_index(drop=True)


def _sample_value(sample: Mapping[str, Any]) -> float | None:
    for k in _SAMPLE_VALUE_KEYS:
        v = safe_float(sample.get(k))
        if v is not None:
            return v
    return None


def extract_time_series(
    report: Mapping[str, Any],
    group: str,
    metric: str,
) -> pd.DataFrame:
    """Extract `results.request_performance.time_series.{group}.{metric}`.

    Args:
        report: Raw report mapping.
        group: ``"latency"`` or ``"throughput"``.
        metric: Metric name within the group (e.g. ``"time_to_first_token"``).

    Returns:
        DataFrame with columns `timestamp` (UTC), `relative_time_s` and
        `value`. Latency values are converted to milliseconds.
    """
    entry = get_path(report, "results", "request_performance", "time_series", group, metric)
    if not isinstance(entry, Mapping):
        raise ValueError(f"time_series.{group}.{metric} is missing or not a dict")
    series = entry.get("series")
    if not isinstance(series, list) or not series:
        raise ValueError(f"No samples in time_series.{group}.{metric}")

    factor = ms_factor(str(entry.get("units") or "")) if group == "latency" else 1.0
    timestamps: list[str] = []
    values: list[float] = []
    for sample in series:
        if not isinstance(sample, Mapping) or sample.get("ts") is None:
            continue
        v = _sample_value(sample)
        if v is None:
            continue
        timestamps.append(str(sample["ts"]))
        values.append(v * factor)
    if not values:
        raise ValueError(f"No valued samples in time_series.{group}.{metric}")

    df = pd.DataFrame({"timestamp": pd.to_datetime(timestamps, utc=True), "value": values})
    df = df.sort_values("timestamp").reset_index(drop=True)
    df["relative_time_s"] = (df["timestamp"] - df["timestamp"].iloc[0]).dt.total_seconds()
    return df[SERIES_COLUMNS]


def time_series_table(
    reports: Iterable[Mapping[str, Any]],
    group: str,
    metric: str,
    *,
    config: EngineConfig | None = None,
) -> pd.DataFrame:
    """Long-form time series across reports.

    Reports without an inference engine or without the requested series
    are skipped.

    Returns:
        DataFrame with columns `run_uid`, `hardware`, `model`, `config`,
        `timestamp`, `relative_time_s`, `value`, `metric`.
    """
    columns = ["run_uid", "hardware", "model", "config", *SERIES_COLUMNS, "metric"]
    frames: list[pd.DataFrame] = []
    for report in reports:
        row = normalize(report, config=config)
        if row is None:
            continue
        try:
            wide = extract_time_series(report, group, metric)
        except ValueError:
            logger.debug("Run %s has no time_series.%s.%s", row.run_uid, group, metric)
            continue
        local = wide.assign(
            run_uid=row.run_uid,
            hardware=row.hardware,
            model=row.model,
            config=row.config,
            metric=f"{group}.{metric}",
        )
        frames.append(local[columns])

    if not frames:
        return pd.DataFrame(columns=columns)
    out = pd.concat(frames, ignore_index=True)
    logger.info("Extracted %d time series rows from %d runs", len(out), len(frames))
    return out
