"""Flatten raw benchmark reports into comparable normalized records."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from llmd_bench.config import DEFAULT_CONFIG, EngineConfig, PercentileFallback
from llmd_bench.raw.report import (
    classify_config,
    find_engine,
    first_sample_value,
    get_path,
    parse_stack,
    seq_len_label,
)
from llmd_bench.raw.statistics import Statistics, safe_float

logger = logging.getLogger(__name__)

# Short metric key -> field name under `aggregate.latency`.
LATENCY_METRICS: dict[str, str] = {
    "ttft": "time_to_first_token",
    "tpot": "time_per_output_token",
    "itl": "inter_token_latency",
    "ntpot": "normalized_time_per_output_token",
    "request": "request_latency",
}

# Short metric key -> field name under `aggregate.throughput`.
THROUGHPUT_METRICS: dict[str, str] = {
    "output": "output_token_rate",
    "input": "input_token_rate",
    "total": "total_token_rate",
    "request": "request_rate",
}


@dataclass(frozen=True)
class LatencyPercentiles:
    """Latency percentiles of one metric, in milliseconds."""

    mean_ms: float
    p50_ms: float
    p90_ms: float
    p95_ms: float
    p99_ms: float

    @classmethod
    def from_statistics(
        cls,
        stats: Statistics | None,
        fallback: PercentileFallback,
    ) -> LatencyPercentiles | None:
        if stats is None:
            return None
        return cls(
            mean_ms=stats.mean_ms(),
            p50_ms=stats.percentile_ms("p50", fallback),
            p90_ms=stats.percentile_ms("p90", fallback),
            p95_ms=stats.percentile_ms("p95", fallback),
            p99_ms=stats.percentile_ms("p99", fallback),
        )


@dataclass(frozen=True)
class NormalizedReport:
    """A single benchmark report, flattened.

    Attributes:
        run_uid: Run identifier (``run.uid``), empty if absent.
        run_start: Run start timestamp as reported (ISO 8601 string).
        run_duration: Run duration as reported (ISO 8601 duration string).
        hardware: Accelerator model of the inference engine.
        model: Served model name.
        framework: Engine tool (``"vllm"``, ``"llm-d"``, ...).
        framework_version: Engine tool version or image.
        config: ``"standalone"``, ``"llm-d"`` or ``"disaggregated"``.
        seq_len: Sequence-length bucket label (``"{isl}/{osl}"``).
        gpu_count: Accelerators per engine replica (at least 1).
        output_token_rate: Mean output tokens/s.
        input_token_rate: Mean input tokens/s.
        total_token_rate: Mean total tokens/s.
        request_rate: Mean requests/s.
        ttft: Time to first token percentiles (`None` if not reported).
        tpot: Time per output token percentiles.
        itl: Inter-token latency percentiles.
        ntpot: Normalized time per output token percentiles.
        request_latency: End-to-end request latency percentiles.
        requests_total: Requests issued.
        requests_failed: Failed requests.
        gpu_util: First GPU utilization sample (percent), 0 if absent.
        gpu_mem: First GPU memory sample (percent), 0 if absent.
        gpu_power: First GPU power sample (watts), 0 if absent.
    """

    run_uid: str
    run_start: str
    run_duration: str
    hardware: str
    model: str
    framework: str
    framework_version: str
    config: str
    seq_len: str
    gpu_count: int
    output_token_rate: float
    input_token_rate: float
    total_token_rate: float
    request_rate: float
    ttft: LatencyPercentiles | None
    tpot: LatencyPercentiles | None
    itl: LatencyPercentiles | None
    ntpot: LatencyPercentiles | None
    request_latency: LatencyPercentiles | None
    requests_total: int
    requests_failed: int
    gpu_util: float
    gpu_mem: float
    gpu_power: float

    @property
    def throughput_per_gpu(self) -> float:
        """Output token rate divided by accelerator count."""
        return self.output_token_rate / self.gpu_count

    def latency(self, metric: str) -> LatencyPercentiles | None:
        """Latency percentiles by short key (``ttft``, ``tpot``, ``itl``, ``ntpot``, ``request``)."""
        if metric not in LATENCY_METRICS:
            raise ValueError(
                f"Unsupported latency metric {metric!r}; expected one of {sorted(LATENCY_METRICS)}"
            )
        return getattr(self, "request_latency" if metric == "request" else metric)

    def throughput(self, metric: str) -> float:
        """Mean throughput by short key (``output``, ``input``, ``total``, ``request``)."""
        if metric not in THROUGHPUT_METRICS:
            raise ValueError(
                f"Unsupported throughput metric {metric!r}; "
                f"expected one of {sorted(THROUGHPUT_METRICS)}"
            )
        return getattr(self, THROUGHPUT_METRICS[metric])


def _mean(stats: Any) -> float:
    parsed = Statistics.from_dict(stats)
    return parsed.mean if parsed is not None else 0.0


def normalize(
    report: Mapping[str, Any],
    *,
    config: EngineConfig | None = None,
) -> NormalizedReport | None:
    """Normalize one raw report.

    Returns `None` for reports that cannot be compared: no
    ``inference_engine`` in the stack, or no aggregate request performance.
    Missing percentiles, telemetry and identity fields are substituted.
    """
    cfg = config or DEFAULT_CONFIG
    stack = parse_stack(report)
    engine = find_engine(stack)
    if engine is None:
        logger.debug("Skipping report %s: no inference_engine in stack", _run_uid(report))
        return None
    agg = get_path(report, "results", "request_performance", "aggregate")
    if not isinstance(agg, Mapping):
        logger.debug("Skipping report %s: no aggregate request performance", _run_uid(report))
        return None

    throughput = _section(agg, "throughput")
    latency = _section(agg, "latency")
    requests = _section(agg, "requests")

    def lat(name: str) -> LatencyPercentiles | None:
        return LatencyPercentiles.from_statistics(
            Statistics.from_dict(latency.get(name)), cfg.fallback
        )

    count = engine.accelerator_count
    return NormalizedReport(
        run_uid=_run_uid(report),
        run_start=str(get_path(report, "run", "time", "start") or ""),
        run_duration=str(get_path(report, "run", "time", "duration") or ""),
        hardware=engine.accelerator_model or "unknown",
        model=engine.model_name or "unknown",
        framework=engine.tool,
        framework_version=engine.tool_version,
        config=classify_config(stack, engine),
        seq_len=seq_len_label(report),
        gpu_count=count if count is not None and count > 0 else 1,
        output_token_rate=_mean(throughput.get("output_token_rate")),
        input_token_rate=_mean(throughput.get("input_token_rate")),
        total_token_rate=_mean(throughput.get("total_token_rate")),
        request_rate=_mean(throughput.get("request_rate")),
        ttft=lat("time_to_first_token"),
        tpot=lat("time_per_output_token"),
        itl=lat("inter_token_latency"),
        ntpot=lat("normalized_time_per_output_token"),
        request_latency=lat("request_latency"),
        requests_total=int(safe_float(requests.get("total")) or 0),
        requests_failed=int(safe_float(requests.get("failures")) or 0),
        gpu_util=first_sample_value(report, "gpu_util"),
        gpu_mem=first_sample_value(report, "gpu_mem"),
        gpu_power=first_sample_value(report, "gpu_power"),
    )


def normalize_all(
    reports: Iterable[Mapping[str, Any]],
    *,
    config: EngineConfig | None = None,
) -> list[NormalizedReport]:
    """Normalize reports in order, dropping the unusable ones."""
    out: list[NormalizedReport] = []
    n_in = 0
    for report in reports:
        n_in += 1
        row = normalize(report, config=config)
        if row is not None:
            out.append(row)
    if n_in != len(out):
        logger.debug("normalize_all: kept %d of %d reports", len(out), n_in)
    return out


def _section(agg: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    raw = agg.get(name)
    return raw if isinstance(raw, Mapping) else {}


def _run_uid(report: Mapping[str, Any]) -> str:
    return str(get_path(report, "run", "uid") or "")
