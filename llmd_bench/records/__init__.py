"""Normalized benchmark records and derived comparison tables."""

from llmd_bench.records.comparisons import (
    LatencyBar,
    ResourceUsage,
    ThroughputBar,
    latency_breakdown,
    p99_improvement,
    resource_utilization,
    throughput_comparison,
)
from llmd_bench.records.normalize import (
    LatencyPercentiles,
    NormalizedReport,
    normalize,
    normalize_all,
)
from llmd_bench.records.points import (
    FilterSelection,
    ParetoPoint,
    ParetoPoints,
    build_points,
)
from llmd_bench.records.timelines import (
    extract_time_series,
    performance_timeline,
    time_series_table,
)

__all__ = [
    "FilterSelection",
    "LatencyBar",
    "LatencyPercentiles",
    "NormalizedReport",
    "ParetoPoint",
    "ParetoPoints",
    "ResourceUsage",
    "ThroughputBar",
    "build_points",
    "extract_time_series",
    "latency_breakdown",
    "normalize",
    "normalize_all",
    "p99_improvement",
    "performance_timeline",
    "resource_utilization",
    "throughput_comparison",
    "time_series_table",
]
