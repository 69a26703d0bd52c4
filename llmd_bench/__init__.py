"""llm-d benchmark comparison engine."""

from llmd_bench.analysis import (
    LeaderboardRow,
    Score,
    build_leaderboard,
    compute_frontier,
    score,
)
from llmd_bench.config import EngineConfig, ScoringWeights
from llmd_bench.records import (
    FilterSelection,
    NormalizedReport,
    ParetoPoint,
    ParetoPoints,
    build_points,
    normalize,
)
from llmd_bench.sources import load_reports

__all__ = [
    "EngineConfig",
    "FilterSelection",
    "LeaderboardRow",
    "NormalizedReport",
    "ParetoPoint",
    "ParetoPoints",
    "Score",
    "ScoringWeights",
    "build_leaderboard",
    "build_points",
    "compute_frontier",
    "load_reports",
    "normalize",
    "score",
]

__version__ = "0.1.0"
