from __future__ import annotations

from typing import Any

import pytest

from llmd_bench.records.points import ParetoPoint


def _stats(mean: float, units: str, *, percentiles: bool) -> dict[str, Any]:
    out: dict[str, Any] = {"units": units, "mean": mean}
    if percentiles:
        out.update(p50=mean, p90=mean * 1.2, p95=mean * 1.5, p99=mean * 2.0)
    return out


def build_report(
    *,
    hardware: str = "NVIDIA-H100-80GB-HBM3",
    model: str = "meta-llama/Llama-3-8B",
    config: str = "standalone",
    gpu_count: int = 1,
    output_rate: float = 1000.0,
    ttft_s: float = 0.25,
    tpot_s: float = 0.02,
    request_latency_s: float = 2.0,
    isl: int = 1024,
    osl: int = 1024,
    uid: str = "run-1",
    start: str = "2026-10-01T02:00:00Z",
    percentiles: bool = True,
    gpu_util: float | None = None,
    gpu_power: float | None = None,
) -> dict[str, Any]:
    """Minimal llm-d Benchmark Report v0.2 with one inference engine."""
    tool = "vllm" if config == "standalone" else "llm-d"
    stack: list[dict[str, Any]] = [
        {
            "metadata": {"label": "vllm-svc-0", "cfg_id": "abc"},
            "standardized": {
                "kind": "inference_engine",
                "tool": tool,
                "tool_version": f"{tool}:1.0",
                "role": "decode" if config == "disaggregated" else None,
                "model": {"name": model},
                "accelerator": {"model": hardware, "count": gpu_count},
            },
        }
    ]
    if config == "disaggregated":
        stack.append(
            {
                "metadata": {"label": "vllm-prefill-0", "cfg_id": "def"},
                "standardized": {
                    "kind": "inference_engine",
                    "tool": "llm-d",
                    "tool_version": "llm-d:1.0",
                    "role": "prefill",
                    "model": {"name": model},
                    "accelerator": {"model": hardware, "count": gpu_count},
                },
            }
        )
    if config != "standalone":
        stack.append(
            {
                "metadata": {"label": "epp-0", "cfg_id": "ghi"},
                "standardized": {
                    "kind": "generic",
                    "tool": "llm-d-inference-scheduler",
                    "tool_version": "0.3.2",
                },
            }
        )

    metrics: list[dict[str, Any]] = []
    if gpu_util is not None:
        metrics.append({"name": "gpu_util.vllm-svc-0", "samples": [{"ts": start, "value": gpu_util}]})
    if gpu_power is not None:
        metrics.append(
            {"name": "gpu_power.vllm-svc-0", "samples": [{"ts": start, "value": gpu_power}]}
        )

    return {
        "version": "0.2",
        "run": {
            "uid": uid,
            "eid": "exp-1",
            "time": {"start": start, "end": start, "duration": "PT1020S"},
            "user": "ci-nightly",
        },
        "scenario": {
            "stack": stack,
            "load": {
                "metadata": {"cfg_id": "load"},
                "standardized": {
                    "tool": "inference-perf",
                    "tool_version": "0.3.0",
                    "source": "sampled",
                    "input_seq_len": {"distribution": "fixed", "value": isl},
                    "output_seq_len": {"distribution": "gaussian", "value": osl},
                },
            },
        },
        "results": {
            "request_performance": {
                "aggregate": {
                    "requests": {"total": 500, "failures": 2},
                    "latency": {
                        "time_to_first_token": _stats(ttft_s, "s", percentiles=percentiles),
                        "time_per_output_token": _stats(tpot_s, "s/token", percentiles=percentiles),
                        "request_latency": _stats(request_latency_s, "s", percentiles=percentiles),
                    },
                    "throughput": {
                        "output_token_rate": _stats(output_rate, "tokens/s", percentiles=False),
                        "input_token_rate": _stats(output_rate * 0.8, "tokens/s", percentiles=False),
                        "total_token_rate": _stats(output_rate * 1.8, "tokens/s", percentiles=False),
                        "request_rate": _stats(output_rate / osl, "queries/s", percentiles=False),
                    },
                }
            },
            "observability": {"metrics": metrics},
        },
    }


@pytest.fixture
def make_report():
    return build_report


def build_point(uid: str, throughput: float, ttft: float, **overrides: Any) -> ParetoPoint:
    """ParetoPoint on H100 / Llama-3-8B standalone, with the two frontier axes given."""
    fields: dict[str, Any] = dict(
        uid=uid,
        hardware="NVIDIA-H100-80GB-HBM3",
        model="meta-llama/Llama-3-8B",
        framework="vllm",
        config="standalone",
        seq_len="1024/1024",
        gpu_count=1,
        throughput_per_gpu=throughput,
        ttft_p50_ms=ttft,
        tpot_p50_ms=20.0,
        p99_latency_ms=4000.0,
        power_per_gpu_kw=0.7,
        tco_per_gpu_hr=2.5,
    )
    fields.update(overrides)
    return ParetoPoint(**fields)


@pytest.fixture
def make_point():
    return build_point
