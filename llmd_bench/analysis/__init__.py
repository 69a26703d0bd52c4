"""Frontier, scoring and leaderboard computations over Pareto points."""

from llmd_bench.analysis.frontier import (
    AXES,
    Axis,
    compute_frontier,
    dominates,
    frontier_line,
    resolve_axis,
)
from llmd_bench.analysis.leaderboard import (
    SORT_DIRS,
    SORT_KEYS,
    LeaderboardRow,
    build_leaderboard,
    sort_leaderboard,
)
from llmd_bench.analysis.scoring import Score, advantage_pct, score

__all__ = [
    "AXES",
    "SORT_DIRS",
    "SORT_KEYS",
    "Axis",
    "LeaderboardRow",
    "Score",
    "advantage_pct",
    "build_leaderboard",
    "compute_frontier",
    "dominates",
    "frontier_line",
    "resolve_axis",
    "score",
    "sort_leaderboard",
]
