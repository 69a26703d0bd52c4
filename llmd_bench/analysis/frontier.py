"""Pareto frontier over two competing objectives."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import numpy as np

from llmd_bench.analysis.keys import canonical_key

if TYPE_CHECKING:
    from llmd_bench.records.points import ParetoPoint

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Axis:
    """One objective of a frontier selection.

    Attributes:
        key: Point field the axis reads (e.g. ``"throughput_per_gpu"``).
        higher_is_better: Direction of the objective.
        label: Display label.
        unit: Display unit.
        extractor: Optional custom value function; defaults to reading `key`.
    """

    key: str
    higher_is_better: bool
    label: str = ""
    unit: str = ""
    extractor: Callable[[Any], float] | None = None

    def value(self, point: Any) -> float:
        if self.extractor is not None:
            return float(self.extractor(point))
        return float(getattr(point, self.key))

    def directed(self, higher_is_better: bool) -> Axis:
        """Copy of this axis with the direction overridden."""
        return Axis(self.key, higher_is_better, self.label, self.unit, self.extractor)


AXES: dict[str, Axis] = {
    a.key: a
    for a in (
        Axis("throughput_per_gpu", True, "Throughput/GPU", "tok/s"),
        Axis("ttft_p50_ms", False, "TTFT p50", "ms"),
        Axis("tpot_p50_ms", False, "TPOT p50", "ms"),
        Axis("p99_latency_ms", False, "p99 Latency", "ms"),
        Axis("power_per_gpu_kw", False, "Power/GPU", "kW"),
        Axis("tco_per_gpu_hr", False, "TCO/GPU-hr", "$"),
    )
}

AxisLike = Axis | str


def resolve_axis(axis: AxisLike, higher_is_better: bool | None = None) -> Axis:
    """Resolve an axis key (or `Axis`) and optionally override its direction."""
    if isinstance(axis, Axis):
        resolved = axis
    else:
        key = canonical_key(axis)
        if key not in AXES:
            raise ValueError(f"Unknown axis {axis!r}; expected one of {sorted(AXES)}")
        resolved = AXES[key]
    if higher_is_better is not None and higher_is_better != resolved.higher_is_better:
        resolved = resolved.directed(higher_is_better)
    return resolved


def _oriented(points: Sequence[Any], x: Axis, y: Axis) -> np.ndarray:
    # Flip lower-is-better axes so that larger is better on both columns.
    values = np.array([[x.value(p), y.value(p)] for p in points], dtype=float).reshape(-1, 2)
    signs = np.array([1.0 if x.higher_is_better else -1.0, 1.0 if y.higher_is_better else -1.0])
    return values * signs


def dominance_matrix(points: Sequence[Any], x_axis: AxisLike, y_axis: AxisLike) -> np.ndarray:
    """Boolean matrix `m` with `m[i, j]` True iff point `i` dominates point `j`."""
    v = _oriented(points, resolve_axis(x_axis), resolve_axis(y_axis))
    at_least = (v[:, None, :] >= v[None, :, :]).all(axis=2)
    strictly = (v[:, None, :] > v[None, :, :]).any(axis=2)
    return at_least & strictly


def dominates(a: Any, b: Any, x_axis: AxisLike, y_axis: AxisLike) -> bool:
    """Whether `a` is at least as good as `b` on both axes and strictly better on one."""
    return bool(dominance_matrix([a, b], x_axis, y_axis)[0, 1])


def compute_frontier(
    points: Iterable[ParetoPoint],
    x_axis: AxisLike = "throughput_per_gpu",
    y_axis: AxisLike = "ttft_p50_ms",
) -> list[ParetoPoint]:
    """Non-dominated subset of `points`, in input order.

    Points with identical coordinates do not dominate each other, so
    duplicates on the frontier are all kept.
    """
    pts = list(points)
    if not pts:
        return []
    dominated = dominance_matrix(pts, x_axis, y_axis).any(axis=0)
    frontier = [p for p, d in zip(pts, dominated) if not d]
    logger.debug("compute_frontier: %d of %d points on frontier", len(frontier), len(pts))
    return frontier


def frontier_line(frontier: Iterable[ParetoPoint], x_axis: AxisLike) -> list[ParetoPoint]:
    """Frontier ordered by x ascending, for drawing a connecting line."""
    x = resolve_axis(x_axis)
    return sorted(frontier, key=x.value)
