from __future__ import annotations

import pytest
import yaml

from llmd_bench.config import (
    DEFAULT_HARDWARE_SPECS,
    EngineConfig,
    HardwareSpec,
    PercentileFallback,
    ScoringWeights,
)
from llmd_bench.records.points import ParetoPoints


def test_defaults() -> None:
    cfg = EngineConfig()
    assert cfg.weights == ScoringWeights(0.25, 0.25, 0.25, 0.25)
    assert cfg.fallback == PercentileFallback(1.3, 1.6, 2.3)
    assert cfg.hardware_spec("NVIDIA-H200-141GB") == HardwareSpec(0.70, 3.80)
    assert cfg.hardware_spec("TPU-v5e") == HardwareSpec(0.5, 2.0)


def test_from_yaml_merges_over_defaults(tmp_path) -> None:
    path = tmp_path / "engine.yaml"
    path.write_text(
        yaml.safe_dump(
            {
                "weights": {"throughput": 0.7, "p99_latency": 0.1},
                "fallback": {"p99": 3.0},
                "hardware": {"AMD-MI300X": {"power_kw": 0.75, "cost_per_hr": 3.0}},
            }
        )
    )
    cfg = EngineConfig.from_yaml(path)
    assert cfg.weights.throughput == 0.7
    assert cfg.weights.ttft == 0.25
    assert cfg.weights.total == pytest.approx(1.3)
    assert cfg.fallback.p99 == 3.0
    assert cfg.fallback.p90 == 1.3
    assert cfg.hardware_spec("AMD-MI300X").power_kw == 0.75
    assert set(DEFAULT_HARDWARE_SPECS) < set(cfg.hardware_specs)


def test_empty_yaml(tmp_path) -> None:
    path = tmp_path / "empty.yaml"
    path.write_text("")
    assert EngineConfig.from_yaml(path) == EngineConfig()


def test_round_trip() -> None:
    cfg = EngineConfig(weights=ScoringWeights(1.0, 0.0, 0.5, 0.5))
    assert EngineConfig.from_dict(cfg.to_dict()) == cfg


@pytest.mark.parametrize(
    "raw, match",
    [
        ({"scoring": {}}, "section"),
        ({"weights": {"goodput": 1.0}}, "scoring weight"),
        ({"weights": {"ttft": -1}}, "non-negative"),
        ({"fallback": {"p75": 1.1}}, "percentile fallback"),
        ({"hardware": {"X": {"power_kw": 1.0}}}, "hardware spec"),
        ({"hardware": {"X": 3}}, "not a mapping"),
    ],
)
def test_invalid_config(raw, match) -> None:
    with pytest.raises(ValueError, match=match):
        EngineConfig.from_dict(raw)


def test_non_mapping_yaml(tmp_path) -> None:
    path = tmp_path / "list.yaml"
    path.write_text("- 1\n- 2\n")
    with pytest.raises(ValueError, match="not a mapping"):
        EngineConfig.from_yaml(path)


def test_config_flows_into_points(make_report) -> None:
    cfg = EngineConfig.from_dict(
        {
            "fallback": {"p99": 3.0},
            "hardware": {"NVIDIA-H100-80GB-HBM3": {"power_kw": 1.0, "cost_per_hr": 4.0}},
        }
    )
    points = ParetoPoints.from_reports([make_report(percentiles=False)], config=cfg)
    (p,) = points
    assert p.power_per_gpu_kw == 1.0
    assert p.tco_per_gpu_hr == 4.0
    assert p.p99_latency_ms == pytest.approx(6000.0)
