"""Distributional summaries as they appear in benchmark reports."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any

from llmd_bench.config import PercentileFallback

logger = logging.getLogger(__name__)

PERCENTILES = ("p50", "p90", "p95", "p99")

# Units whose values are seconds; everything else is taken as milliseconds.
_SECOND_UNITS = frozenset({"s", "s/token"})


def safe_float(v: object) -> float | None:
    """`float(v)`, or `None` if `v` is not numeric or not finite."""
    try:
        f = float(v)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None
    return f if math.isfinite(f) else None


def ms_factor(units: str) -> float:
    """Multiplier that converts a latency in `units` to milliseconds."""
    return 1000.0 if units in _SECOND_UNITS else 1.0


@dataclass(frozen=True)
class Statistics:
    """Summary of one metric of one report.

    Attributes:
        units: Unit string from the report (e.g. ``"s"``, ``"s/token"``,
            ``"ms"``, ``"tokens/s"``).
        mean: Mean value in `units`.
        p50: Median, if the report carries it.
        p90: 90th percentile, if present.
        p95: 95th percentile, if present.
        p99: 99th percentile, if present.
    """

    units: str
    mean: float
    p50: float | None = None
    p90: float | None = None
    p95: float | None = None
    p99: float | None = None

    def percentile(self, name: str, fallback: PercentileFallback | None = None) -> float:
        """Return a percentile in source units, deriving it from `mean` if absent."""
        if name not in PERCENTILES:
            raise ValueError(f"Unsupported percentile {name!r}; expected one of {PERCENTILES}")
        value = getattr(self, name)
        if value is not None:
            return float(value)
        if name == "p50":
            return self.mean
        fb = fallback or PercentileFallback()
        return self.mean * getattr(fb, name)

    def percentile_ms(self, name: str, fallback: PercentileFallback | None = None) -> float:
        """Like `percentile`, converted to milliseconds."""
        return self.percentile(name, fallback) * ms_factor(self.units)

    def mean_ms(self) -> float:
        return self.mean * ms_factor(self.units)

    @classmethod
    def from_dict(cls, d: Any) -> Statistics | None:
        """Parse a report `Statistics` mapping; `None` if absent or not a mapping."""
        if not isinstance(d, dict):
            return None
        mean = safe_float(d.get("mean"))
        if mean is None:
            logger.debug("Statistics without a numeric mean: %r", d)
            mean = 0.0
        return cls(
            units=str(d.get("units") or ""),
            mean=mean,
            **{p: safe_float(d.get(p)) for p in PERCENTILES},
        )
