"""Per-hardware comparison tables: throughput bars, latency breakdowns, GPU usage."""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from llmd_bench.analysis.scoring import advantage_pct
from llmd_bench.config import EngineConfig
from llmd_bench.raw.report import (
    CONFIGS,
    DISAGGREGATED,
    LLMD,
    STANDALONE,
    model_matches,
    short_hardware_name,
    short_model_name,
)
from llmd_bench.records.normalize import (
    LATENCY_METRICS,
    THROUGHPUT_METRICS,
    NormalizedReport,
    normalize_all,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ThroughputBar:
    """Best throughput per serving configuration on one accelerator.

    Attributes:
        hardware: Short accelerator name.
        standalone: Max rate among standalone runs (0 if none).
        llm_d: Max rate among llm-d runs (0 if none).
        disaggregated: Max rate among disaggregated runs (0 if none).
        llmd_improvement: llm-d gain over standalone in percent.
        disagg_improvement: Disaggregated gain over standalone in percent.
    """

    hardware: str
    standalone: float
    llm_d: float
    disaggregated: float
    llmd_improvement: int | None
    disagg_improvement: int | None


@dataclass(frozen=True)
class LatencyBar:
    """Latency percentiles (ms) of one (hardware, config) pair."""

    name: str
    hardware: str
    config: str
    p50: float
    p90: float
    p95: float
    p99: float


@dataclass(frozen=True)
class ResourceUsage:
    """GPU telemetry of one (hardware, model, config) triple.

    Attributes:
        hardware: Short accelerator name.
        model: Short model name.
        config: Serving configuration.
        gpu_util: GPU utilization in percent.
        gpu_mem: GPU memory utilization in percent.
        gpu_power: GPU power in watts.
        throughput: Mean output tokens/s.
        throughput_per_watt: `throughput / gpu_power`, 0 without a power reading.
    """

    hardware: str
    model: str
    config: str
    gpu_util: float
    gpu_mem: float
    gpu_power: float
    throughput: float
    throughput_per_watt: float


def _rows(
    reports: Iterable[Mapping[str, Any] | NormalizedReport],
    model: str | None,
    config: EngineConfig | None,
) -> list[NormalizedReport]:
    raw: list[Mapping[str, Any]] = []
    rows: list[NormalizedReport] = []
    for r in reports:
        if isinstance(r, NormalizedReport):
            rows.append(r)
        else:
            raw.append(r)
    rows.extend(normalize_all(raw, config=config))
    if model is not None:
        rows = [r for r in rows if model_matches(r.model, model)]
    return rows


def _improvement(value: float, base: float) -> int | None:
    if value <= 0 or base <= 0:
        return None
    return advantage_pct(value, base)


def throughput_comparison(
    reports: Iterable[Mapping[str, Any] | NormalizedReport],
    metric: str = "output",
    model: str | None = None,
    *,
    config: EngineConfig | None = None,
) -> list[ThroughputBar]:
    """Max throughput per (hardware, config), one bar group per accelerator.

    Unlike `build_points`, this keeps the largest value per config
    regardless of model, framework or sequence length.

    Args:
        reports: Raw report mappings or already normalized reports.
        metric: ``"output"``, ``"input"``, ``"total"`` or ``"request"``.
        model: Restrict to one model (full or short name).
        config: Engine configuration used for normalization.
    """
    if metric not in THROUGHPUT_METRICS:
        raise ValueError(
            f"Unsupported throughput metric {metric!r}; expected one of {sorted(THROUGHPUT_METRICS)}"
        )
    maxima: dict[str, dict[str, float]] = {}
    for row in _rows(reports, model, config):
        entry = maxima.setdefault(short_hardware_name(row.hardware), dict.fromkeys(CONFIGS, 0.0))
        value = row.throughput(metric)
        if value > entry[row.config]:
            entry[row.config] = value
    bars = [
        ThroughputBar(
            hardware=hw,
            standalone=v[STANDALONE],
            llm_d=v[LLMD],
            disaggregated=v[DISAGGREGATED],
            llmd_improvement=_improvement(v[LLMD], v[STANDALONE]),
            disagg_improvement=_improvement(v[DISAGGREGATED], v[STANDALONE]),
        )
        for hw, v in maxima.items()
    ]
    logger.debug("throughput_comparison(%s): %d hardware groups", metric, len(bars))
    return bars


def latency_breakdown(
    reports: Iterable[Mapping[str, Any] | NormalizedReport],
    metric: str = "ttft",
    model: str | None = None,
    *,
    config: EngineConfig | None = None,
) -> list[LatencyBar]:
    """Percentiles of one latency metric for the first report per (hardware, config).

    Bars are sorted by p50 ascending. A (hardware, config) pair whose first
    report lacks the metric gets no bar.
    """
    if metric not in LATENCY_METRICS:
        raise ValueError(
            f"Unsupported latency metric {metric!r}; expected one of {sorted(LATENCY_METRICS)}"
        )
    seen: set[tuple[str, str]] = set()
    bars: list[LatencyBar] = []
    for row in _rows(reports, model, config):
        hw = short_hardware_name(row.hardware)
        key = (hw, row.config)
        if key in seen:
            continue
        seen.add(key)
        lat = row.latency(metric)
        if lat is None:
            continue
        bars.append(
            LatencyBar(
                name=f"{hw} {row.config}",
                hardware=hw,
                config=row.config,
                p50=lat.p50_ms,
                p90=lat.p90_ms,
                p95=lat.p95_ms,
                p99=lat.p99_ms,
            )
        )
    bars.sort(key=lambda b: b.p50)
    return bars


def p99_improvement(bars: Sequence[LatencyBar]) -> int | None:
    """p99 reduction of the best llm-d bar vs. standalone, in whole percent.

    Prefers a disaggregated bar over an llm-d one; `None` without both sides.
    """
    standalone = next((b for b in bars if b.config == STANDALONE), None)
    llmd = next((b for b in bars if b.config == DISAGGREGATED), None)
    if llmd is None:
        llmd = next((b for b in bars if b.config == LLMD), None)
    if standalone is None or llmd is None or standalone.p99 <= 0:
        return None
    return math.floor((1.0 - llmd.p99 / standalone.p99) * 100.0 + 0.5)


def resource_utilization(
    reports: Iterable[Mapping[str, Any] | NormalizedReport],
    *,
    config: EngineConfig | None = None,
) -> list[ResourceUsage]:
    """GPU telemetry for the first report per (hardware, model, config)."""
    seen: set[tuple[str, str, str]] = set()
    out: list[ResourceUsage] = []
    for row in _rows(reports, None, config):
        hw = short_hardware_name(row.hardware)
        model = short_model_name(row.model)
        key = (hw, model, row.config)
        if key in seen:
            continue
        seen.add(key)
        throughput = row.output_token_rate
        out.append(
            ResourceUsage(
                hardware=hw,
                model=model,
                config=row.config,
                gpu_util=row.gpu_util,
                gpu_mem=row.gpu_mem,
                gpu_power=row.gpu_power,
                throughput=throughput,
                throughput_per_watt=(throughput / row.gpu_power if row.gpu_power > 0 else 0.0),
            )
        )
    return out
