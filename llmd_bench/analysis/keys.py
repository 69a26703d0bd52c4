"""Column key resolution shared by axis and sort selections."""

from __future__ import annotations

# Dashboard (camelCase) column names accepted alongside record field names.
_ALIASES = {
    "gpuCount": "gpu_count",
    "seqLen": "seq_len",
    "throughputPerGpu": "throughput_per_gpu",
    "ttftP50Ms": "ttft_p50_ms",
    "tpotP50Ms": "tpot_p50_ms",
    "p99LatencyMs": "p99_latency_ms",
    "powerPerGpuKw": "power_per_gpu_kw",
    "tcoPerGpuHr": "tco_per_gpu_hr",
    "llmdAdvantage": "llmd_advantage",
}


def canonical_key(key: str) -> str:
    """Map a dashboard column name to the record field name; other keys pass through."""
    return _ALIASES.get(key, key)
