"""Engine configuration: KPI weights, percentile fallbacks and hardware specs."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScoringWeights:
    """Weights of the KPIs that make up the composite leaderboard score.

    Weights are relative; they are divided by their sum when scoring, so
    `(1, 1, 1, 1)` and `(0.25, 0.25, 0.25, 0.25)` rank identically.

    Attributes:
        throughput: Weight of output throughput per GPU (higher is better).
        ttft: Weight of p50 time to first token (lower is better).
        tpot: Weight of p50 time per output token (lower is better).
        p99_latency: Weight of p99 request latency (lower is better).
    """

    throughput: float = 0.25
    ttft: float = 0.25
    tpot: float = 0.25
    p99_latency: float = 0.25

    @property
    def total(self) -> float:
        return self.throughput + self.ttft + self.tpot + self.p99_latency

    def to_dict(self) -> dict[str, float]:
        """Serialize weights to a dict."""
        return {
            "throughput": self.throughput,
            "ttft": self.ttft,
            "tpot": self.tpot,
            "p99_latency": self.p99_latency,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> ScoringWeights:
        """Deserialize weights; omitted keys keep their defaults."""
        unknown = set(d) - {"throughput", "ttft", "tpot", "p99_latency"}
        if unknown:
            raise ValueError(f"Unknown scoring weight(s): {sorted(unknown)}")
        weights = cls(**{k: float(v) for k, v in d.items()})
        if any(w < 0 for w in weights.to_dict().values()):
            raise ValueError(f"Scoring weights must be non-negative: {weights}")
        return weights


@dataclass(frozen=True)
class PercentileFallback:
    """Multipliers applied to `mean` when a report omits a percentile.

    `p50` falls back to the mean itself. The defaults keep the ordering
    p50 < p90 < p95 < p99 plausible without real data.
    """

    p90: float = 1.3
    p95: float = 1.6
    p99: float = 2.3

    def to_dict(self) -> dict[str, float]:
        return {"p90": self.p90, "p95": self.p95, "p99": self.p99}

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> PercentileFallback:
        unknown = set(d) - {"p90", "p95", "p99"}
        if unknown:
            raise ValueError(f"Unknown percentile fallback(s): {sorted(unknown)}")
        return cls(**{k: float(v) for k, v in d.items()})


@dataclass(frozen=True)
class HardwareSpec:
    """Per-GPU power draw and cost for one accelerator model.

    Attributes:
        power_kw: Power draw per GPU in kilowatts.
        cost_per_hr: Total cost of ownership per GPU-hour in dollars.
    """

    power_kw: float
    cost_per_hr: float


DEFAULT_HARDWARE_SPECS: dict[str, HardwareSpec] = {
    "NVIDIA-H100-80GB-HBM3": HardwareSpec(power_kw=0.70, cost_per_hr=2.50),
    "NVIDIA-A100-SXM4-80GB": HardwareSpec(power_kw=0.40, cost_per_hr=1.50),
    "NVIDIA-L40S": HardwareSpec(power_kw=0.35, cost_per_hr=1.00),
    "NVIDIA-H200-141GB": HardwareSpec(power_kw=0.70, cost_per_hr=3.80),
}
UNKNOWN_HARDWARE_SPEC = HardwareSpec(power_kw=0.5, cost_per_hr=2.00)


@dataclass(frozen=True)
class EngineConfig:
    """Tunable constants of the comparison engine.

    Example:

        cfg = EngineConfig.from_yaml("engine.yaml")
        points = ParetoPoints.from_reports(reports, config=cfg)
    """

    weights: ScoringWeights = field(default_factory=ScoringWeights)
    fallback: PercentileFallback = field(default_factory=PercentileFallback)
    hardware_specs: dict[str, HardwareSpec] = field(
        default_factory=lambda: dict(DEFAULT_HARDWARE_SPECS)
    )
    unknown_hardware: HardwareSpec = UNKNOWN_HARDWARE_SPEC

    def hardware_spec(self, hardware: str) -> HardwareSpec:
        """Look up the spec for an accelerator model, or the unknown default."""
        return self.hardware_specs.get(hardware, self.unknown_hardware)

    def to_dict(self) -> dict[str, Any]:
        return {
            "weights": self.weights.to_dict(),
            "fallback": self.fallback.to_dict(),
            "hardware": {
                name: {"power_kw": s.power_kw, "cost_per_hr": s.cost_per_hr}
                for name, s in self.hardware_specs.items()
            },
            "unknown_hardware": {
                "power_kw": self.unknown_hardware.power_kw,
                "cost_per_hr": self.unknown_hardware.cost_per_hr,
            },
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> EngineConfig:
        """Build a config from a (partial) dict.

        Hardware entries are merged over the defaults, so a config file only
        needs to list accelerators it adds or overrides.
        """
        unknown = set(d) - {"weights", "fallback", "hardware", "unknown_hardware"}
        if unknown:
            raise ValueError(f"Unknown engine config section(s): {sorted(unknown)}")
        specs = dict(DEFAULT_HARDWARE_SPECS)
        for name, raw in (d.get("hardware") or {}).items():
            specs[str(name)] = _hardware_spec_from_dict(raw, name=str(name))
        unknown_hw = UNKNOWN_HARDWARE_SPEC
        if d.get("unknown_hardware") is not None:
            unknown_hw = _hardware_spec_from_dict(d["unknown_hardware"], name="unknown_hardware")
        return cls(
            weights=ScoringWeights.from_dict(d.get("weights") or {}),
            fallback=PercentileFallback.from_dict(d.get("fallback") or {}),
            hardware_specs=specs,
            unknown_hardware=unknown_hw,
        )

    @classmethod
    def from_yaml(cls, path: str | Path) -> EngineConfig:
        """Load a config from a YAML file."""
        p = Path(path)
        raw = yaml.safe_load(p.read_text())
        if raw is None:
            raw = {}
        if not isinstance(raw, dict):
            raise ValueError(f"Invalid engine config (not a mapping): {p}")
        logger.debug("Loaded engine config from %s", p)
        return cls.from_dict(raw)


def _hardware_spec_from_dict(raw: Any, *, name: str) -> HardwareSpec:
    if not isinstance(raw, dict):
        raise ValueError(f"Invalid hardware spec for {name!r} (not a mapping): {raw!r}")
    try:
        return HardwareSpec(power_kw=float(raw["power_kw"]), cost_per_hr=float(raw["cost_per_hr"]))
    except (KeyError, TypeError, ValueError) as exc:
        raise ValueError(f"Invalid hardware spec for {name!r}: {raw!r}") from exc


DEFAULT_CONFIG = EngineConfig()
