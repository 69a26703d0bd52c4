"""Composite leaderboard score and advantage over the standalone baseline."""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

from llmd_bench.config import ScoringWeights
from llmd_bench.raw.report import STANDALONE

if TYPE_CHECKING:
    from llmd_bench.records.points import ParetoPoint

logger = logging.getLogger(__name__)

# (point field, higher is better, ScoringWeights attribute)
KPIS: tuple[tuple[str, bool, str], ...] = (
    ("throughput_per_gpu", True, "throughput"),
    ("ttft_p50_ms", False, "ttft"),
    ("tpot_p50_ms", False, "tpot"),
    ("p99_latency_ms", False, "p99_latency"),
)


@dataclass(frozen=True)
class Score:
    """Score of one point within its comparison set.

    Attributes:
        score: Composite score in [0, 100].
        advantage: Throughput/GPU gain over the matching standalone point,
            in whole percent; ``None`` without a usable baseline.
    """

    score: float
    advantage: int | None


def min_max_normalize(values: np.ndarray, higher_is_better: bool) -> np.ndarray:
    """Scale `values` into [0, 1] so that 1 is the best value in the set.

    Bounds come from the finite values only; non-finite values normalize
    to 0. A set without spread normalizes to zeros.
    """
    values = np.asarray(values, dtype=float)
    out = np.zeros_like(values)
    finite = np.isfinite(values)
    if not finite.any():
        return out
    lo = float(np.min(values[finite]))
    hi = float(np.max(values[finite]))
    span = hi - lo
    if not math.isfinite(span) or span <= 0:
        return out
    norm = (values[finite] - lo) / span
    out[finite] = norm if higher_is_better else 1.0 - norm
    return out


def advantage_pct(value: float, baseline: float | None) -> int | None:
    """``round((value / baseline - 1) * 100)``, rounding halves up; `None` if undefined."""
    if baseline is None or not math.isfinite(baseline) or baseline <= 0:
        return None
    pct = (value / baseline - 1.0) * 100.0
    if not math.isfinite(pct):
        return None
    return math.floor(pct + 0.5)


def standalone_baselines(points: Iterable[ParetoPoint]) -> dict[tuple[str, str], ParetoPoint]:
    """First standalone point per (hardware, model)."""
    out: dict[tuple[str, str], ParetoPoint] = {}
    for p in points:
        if p.config == STANDALONE:
            out.setdefault((p.hardware, p.model), p)
    return out


def composite_scores(
    points: Sequence[ParetoPoint],
    weights: ScoringWeights | None = None,
) -> np.ndarray:
    """Weighted average of the normalized KPIs, scaled to [0, 100]."""
    w = weights or ScoringWeights()
    out = np.zeros(len(points), dtype=float)
    if not points or w.total <= 0:
        return out
    for field, higher_is_better, weight_name in KPIS:
        values = np.array([getattr(p, field) for p in points], dtype=float)
        out += getattr(w, weight_name) * min_max_normalize(values, higher_is_better)
    return out / w.total * 100.0


def score(
    points: Iterable[ParetoPoint],
    weights: ScoringWeights | None = None,
) -> dict[str, Score]:
    """Score every point against the others in `points`.

    Normalization bounds come from `points` alone, so filtering the set
    changes the scores of the remaining points. When several points share
    a `uid`, the first one is scored.
    """
    pts = list(points)
    if not pts:
        return {}
    composite = composite_scores(pts, weights)
    baselines = standalone_baselines(pts)
    out: dict[str, Score] = {}
    for p, s in zip(pts, composite):
        if p.uid in out:
            continue
        adv = None
        if p.config != STANDALONE:
            base = baselines.get((p.hardware, p.model))
            if base is not None:
                adv = advantage_pct(p.throughput_per_gpu, base.throughput_per_gpu)
        out[p.uid] = Score(score=float(s), advantage=adv)
    logger.debug("score: scored %d points (%d baselines)", len(out), len(baselines))
    return out
