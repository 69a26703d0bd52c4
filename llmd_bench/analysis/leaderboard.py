"""Ranked, sortable leaderboard rows."""

from __future__ import annotations

import dataclasses
import logging
import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from llmd_bench.analysis.keys import canonical_key
from llmd_bench.analysis.scoring import Score

if TYPE_CHECKING:
    from llmd_bench.records.points import ParetoPoint

logger = logging.getLogger(__name__)

SORT_KEYS = (
    "score",
    "throughput_per_gpu",
    "ttft_p50_ms",
    "tpot_p50_ms",
    "p99_latency_ms",
    "llmd_advantage",
)
SORT_DIRS = ("asc", "desc")


@dataclass
class LeaderboardRow:
    """A `ParetoPoint` joined with its score.

    `rank` is reassigned whenever the rows are sorted; all other fields are
    fixed at construction.
    """

    uid: str
    hardware: str
    model: str
    framework: str
    config: str
    seq_len: str
    gpu_count: int
    throughput_per_gpu: float
    ttft_p50_ms: float
    tpot_p50_ms: float
    p99_latency_ms: float
    power_per_gpu_kw: float
    tco_per_gpu_hr: float
    score: float
    llmd_advantage: int | None
    rank: int = 0

    def to_dict(self) -> dict[str, Any]:
        return dataclasses.asdict(self)


def _is_missing(v: Any) -> bool:
    return v is None or (isinstance(v, float) and math.isnan(v))


def _validate(sort_key: str, sort_dir: str) -> str:
    key = canonical_key(sort_key)
    if key not in SORT_KEYS:
        raise ValueError(f"Unknown sort key {sort_key!r}; expected one of {SORT_KEYS}")
    if sort_dir not in SORT_DIRS:
        raise ValueError(f"Unknown sort direction {sort_dir!r}; expected one of {SORT_DIRS}")
    return key


def sort_leaderboard(
    rows: Iterable[LeaderboardRow],
    sort_key: str = "score",
    sort_dir: str = "desc",
) -> list[LeaderboardRow]:
    """Sort rows and reassign 1-based ranks.

    Rows whose sort field is missing go last in either direction. Ties keep
    their incoming order.
    """
    key = _validate(sort_key, sort_dir)
    rows = list(rows)
    present = [r for r in rows if not _is_missing(getattr(r, key))]
    missing = [r for r in rows if _is_missing(getattr(r, key))]
    present.sort(key=lambda r: getattr(r, key), reverse=(sort_dir == "desc"))
    ordered = present + missing
    for i, r in enumerate(ordered):
        r.rank = i + 1
    return ordered


def build_leaderboard(
    points: Iterable[ParetoPoint],
    scores: Mapping[str, Score],
    sort_key: str = "score",
    sort_dir: str = "desc",
) -> list[LeaderboardRow]:
    """Join points with their scores and rank them.

    Points without an entry in `scores` get a score of 0 and no advantage.
    """
    _validate(sort_key, sort_dir)
    rows: list[LeaderboardRow] = []
    for p in points:
        s = scores.get(p.uid)
        rows.append(
            LeaderboardRow(
                **dataclasses.asdict(p),
                score=s.score if s is not None else 0.0,
                llmd_advantage=s.advantage if s is not None else None,
            )
        )
    logger.debug("build_leaderboard: %d rows sorted by %s %s", len(rows), sort_key, sort_dir)
    return sort_leaderboard(rows, sort_key, sort_dir)
