"""Comparable Pareto points with a typed collection API."""

from __future__ import annotations

import dataclasses
import logging
from collections import defaultdict
from collections.abc import Callable, Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

import pandas as pd

from llmd_bench.analysis.frontier import AxisLike, compute_frontier, resolve_axis
from llmd_bench.analysis.leaderboard import LeaderboardRow, build_leaderboard
from llmd_bench.analysis.scoring import Score, score
from llmd_bench.config import DEFAULT_CONFIG, EngineConfig, ScoringWeights
from llmd_bench.raw.report import (
    hardware_matches,
    model_matches,
    short_hardware_name,
    short_model_name,
)
from llmd_bench.records.normalize import LatencyPercentiles, NormalizedReport, normalize_all
from llmd_bench.sources import SourceLike, load_reports

logger = logging.getLogger(__name__)

KEEP_POLICIES = ("first", "max")


@dataclass(frozen=True)
class ParetoPoint:
    """One comparable hardware/model/config/framework/sequence-length combination.

    Attributes:
        uid: ``hardware|model|config|framework|seq_len``.
        hardware: Accelerator model (e.g. ``"NVIDIA-H100-80GB-HBM3"``).
        model: Served model name.
        framework: Engine tool (``"vllm"``, ``"llm-d"``, ...).
        config: ``"standalone"``, ``"llm-d"`` or ``"disaggregated"``.
        seq_len: Sequence-length bucket label (``"{isl}/{osl}"``).
        gpu_count: Accelerators per engine replica.
        throughput_per_gpu: Mean output tokens/s divided by `gpu_count`.
        ttft_p50_ms: Median time to first token in milliseconds.
        tpot_p50_ms: Median time per output token in milliseconds.
        p99_latency_ms: 99th percentile request latency in milliseconds.
        power_per_gpu_kw: Power draw per GPU in kilowatts.
        tco_per_gpu_hr: Cost per GPU-hour in dollars.
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

    @property
    def hardware_short(self) -> str:
        return short_hardware_name(self.hardware)

    @property
    def model_short(self) -> str:
        return short_model_name(self.model)

    def to_dict(self) -> dict[str, Any]:
        return dataclasses.asdict(self)


def point_uid(hardware: str, model: str, config: str, framework: str, seq_len: str) -> str:
    return "|".join((hardware, model, config, framework, seq_len))


def _p50(lat: LatencyPercentiles | None) -> float:
    return lat.p50_ms if lat is not None else 0.0


def point_from_report(row: NormalizedReport, config: EngineConfig | None = None) -> ParetoPoint:
    """Project a normalized report onto the comparable point fields."""
    cfg = config or DEFAULT_CONFIG
    spec = cfg.hardware_spec(row.hardware)
    return ParetoPoint(
        uid=point_uid(row.hardware, row.model, row.config, row.framework, row.seq_len),
        hardware=row.hardware,
        model=row.model,
        framework=row.framework,
        config=row.config,
        seq_len=row.seq_len,
        gpu_count=row.gpu_count,
        throughput_per_gpu=row.throughput_per_gpu,
        ttft_p50_ms=_p50(row.ttft),
        tpot_p50_ms=_p50(row.tpot),
        p99_latency_ms=(row.request_latency.p99_ms if row.request_latency is not None else 0.0),
        power_per_gpu_kw=spec.power_kw,
        tco_per_gpu_hr=spec.cost_per_hr,
    )


def build_points(
    reports: Iterable[Mapping[str, Any]],
    *,
    keep: str = "first",
    config: EngineConfig | None = None,
) -> list[ParetoPoint]:
    """Build one point per unique `uid`, in first-seen order.

    Reports without an inference engine or with zero output throughput
    are dropped.

    Args:
        reports: Raw benchmark report mappings.
        keep: ``"first"`` keeps the first report per `uid`; ``"max"`` keeps
            the one with the highest throughput per GPU.
        config: Engine configuration (percentile fallbacks, hardware specs).
    """
    if keep not in KEEP_POLICIES:
        raise ValueError(f"Unknown keep policy {keep!r}; expected one of {KEEP_POLICIES}")
    by_uid: dict[str, ParetoPoint] = {}
    for row in normalize_all(reports, config=config):
        if row.output_token_rate <= 0:
            logger.debug("Skipping run %s: zero output throughput", row.run_uid)
            continue
        p = point_from_report(row, config)
        current = by_uid.get(p.uid)
        if current is None:
            by_uid[p.uid] = p
        elif keep == "max" and p.throughput_per_gpu > current.throughput_per_gpu:
            # Reassigning an existing key keeps its insertion position.
            by_uid[p.uid] = p
    return list(by_uid.values())


@dataclass(frozen=True)
class FilterSelection:
    """Dashboard filter state, applied with `ParetoPoints.select`.

    Each field is a set of accepted values; an empty set accepts everything.
    Hardware and model values may be full or short display names.
    """

    hardware: frozenset[str] = frozenset()
    models: frozenset[str] = frozenset()
    configs: frozenset[str] = frozenset()
    frameworks: frozenset[str] = frozenset()
    seq_lens: frozenset[str] = frozenset()

    def __post_init__(self) -> None:
        # Accept any iterable (lists, sets) while staying hashable.
        for f in dataclasses.fields(self):
            value = getattr(self, f.name)
            if isinstance(value, str):
                value = (value,)
            object.__setattr__(self, f.name, frozenset(value))

    def matches(self, p: ParetoPoint) -> bool:
        if self.hardware and not any(hardware_matches(p.hardware, h) for h in self.hardware):
            return False
        if self.models and not any(model_matches(p.model, m) for m in self.models):
            return False
        if self.configs and p.config not in self.configs:
            return False
        if self.frameworks and p.framework not in self.frameworks:
            return False
        return not (self.seq_lens and p.seq_len not in self.seq_lens)


_POINT_FIELDS = frozenset(f.name for f in dataclasses.fields(ParetoPoint))


class _PointsData:
    """Typed field accessor for ParetoPoints, returning `list[T]` per field.

    Accessed via `ParetoPoints.data`, e.g. `points.data.throughput_per_gpu`
    whereas `points.hardware` is the filter method.
    """

    __slots__ = ("_cache", "_points")

    def __init__(self, points: tuple[ParetoPoint, ...], cache: dict[Any, Any]) -> None:
        self._points = points
        self._cache = cache

    if not TYPE_CHECKING:

        def __getattr__(self, name: str) -> list[Any]:
            if name not in _POINT_FIELDS:
                raise AttributeError(f"ParetoPoint has no field {name!r}")
            key = f"_data_{name}"
            if key not in self._cache:
                self._cache[key] = [getattr(p, name) for p in self._points]
            return self._cache[key]

    if TYPE_CHECKING:

        @property
        def uid(self) -> list[str]: ...

        @property
        def hardware(self) -> list[str]: ...

        @property
        def model(self) -> list[str]: ...

        @property
        def framework(self) -> list[str]: ...

        @property
        def config(self) -> list[str]: ...

        @property
        def seq_len(self) -> list[str]: ...

        @property
        def gpu_count(self) -> list[int]: ...

        @property
        def throughput_per_gpu(self) -> list[float]: ...

        @property
        def ttft_p50_ms(self) -> list[float]: ...

        @property
        def tpot_p50_ms(self) -> list[float]: ...

        @property
        def p99_latency_ms(self) -> list[float]: ...

        @property
        def power_per_gpu_kw(self) -> list[float]: ...

        @property
        def tco_per_gpu_hr(self) -> list[float]: ...


class ParetoPoints:
    """Immutable collection of Pareto points with fluent filtering.

    Filters return new collections; frontier and score results are cached
    per collection, so re-rendering the same selection is free.

    Example:

        points = ParetoPoints.from_reports(reports)
        h100 = points.hardware("H100").model("Llama-3-70B-Instruct")
        frontier = h100.frontier("throughput_per_gpu", "ttft_p50_ms")
        rows = h100.leaderboard(sort_key="score", sort_dir="desc")
    """

    def __init__(
        self,
        points: Sequence[ParetoPoint],
        *,
        config: EngineConfig | None = None,
    ) -> None:
        self._points = tuple(points)
        self._config = config or DEFAULT_CONFIG
        self._cache: dict[Any, Any] = {}

    def _derive(self, points: Sequence[ParetoPoint]) -> ParetoPoints:
        return ParetoPoints(points, config=self._config)

    @classmethod
    def from_reports(
        cls,
        reports: Iterable[Mapping[str, Any]],
        *,
        keep: str = "first",
        config: EngineConfig | None = None,
    ) -> ParetoPoints:
        """Build points from raw report mappings (see `build_points`)."""
        points = build_points(reports, keep=keep, config=config)
        logger.info("ParetoPoints.from_reports: returning %d points", len(points))
        return cls(points, config=config)

    @classmethod
    def from_directory(
        cls,
        source: SourceLike,
        *,
        keep: str = "first",
        config: EngineConfig | None = None,
    ) -> ParetoPoints:
        """Load report files from a directory (or any report source) and build points."""
        return cls.from_reports(load_reports(source), keep=keep, config=config)

    def hardware(self, *names: str) -> ParetoPoints:
        """Filter to points on any of the given accelerators (full or short names)."""
        return self._filter_by("hardware", names, hardware_matches)

    def model(self, *names: str) -> ParetoPoints:
        """Filter to points serving any of the given models (full or short names)."""
        return self._filter_by("model", names, model_matches)

    def config(self, *configs: str) -> ParetoPoints:
        """Filter to points with any of the given serving configurations."""
        return self._filter("config", configs)

    def framework(self, *frameworks: str) -> ParetoPoints:
        """Filter to points measured with any of the given engine tools."""
        return self._filter("framework", frameworks)

    def seq_len(self, *labels: str) -> ParetoPoints:
        """Filter to points in any of the given sequence-length buckets."""
        return self._filter("seq_len", labels)

    def select(self, selection: FilterSelection) -> ParetoPoints:
        """Apply a dashboard filter selection."""
        key = ("_select", selection)
        if key not in self._cache:
            self._cache[key] = self._derive([p for p in self._points if selection.matches(p)])
        return self._cache[key]

    def where(self, predicate: Callable[[ParetoPoint], bool]) -> ParetoPoints:
        """Filter points by an arbitrary predicate."""
        return self._derive([p for p in self._points if predicate(p)])

    def _filter(self, field: str, values: tuple[Any, ...]) -> ParetoPoints:
        key = f"_filter_{field}_{values}"
        if key not in self._cache:
            value_set = set(values)
            self._cache[key] = self._derive(
                [p for p in self._points if getattr(p, field) in value_set]
            )
        return self._cache[key]

    def _filter_by(
        self,
        field: str,
        names: tuple[str, ...],
        matches: Callable[[str, str], bool],
    ) -> ParetoPoints:
        key = f"_filter_{field}_{names}"
        if key not in self._cache:
            self._cache[key] = self._derive(
                [p for p in self._points if any(matches(getattr(p, field), n) for n in names)]
            )
        return self._cache[key]

    @property
    def data(self) -> _PointsData:
        """Typed field accessor returning `list[T]` per field."""
        key = "_data_accessor"
        if key not in self._cache:
            self._cache[key] = _PointsData(self._points, self._cache)
        return self._cache[key]

    def group_by(self, *fields: str) -> dict[Any, ParetoPoints]:
        """Group points by one or more fields.

        Returns:
            Single field: `{value: ParetoPoints, ...}`.
            Multiple fields: `{(v1, v2, ...): ParetoPoints, ...}`.
        """
        key = f"_group_by_{fields}"
        if key not in self._cache:
            groups: dict[Any, list[ParetoPoint]] = defaultdict(list)
            for p in self._points:
                if len(fields) == 1:
                    k = getattr(p, fields[0])
                else:
                    k = tuple(getattr(p, f) for f in fields)
                groups[k].append(p)
            self._cache[key] = {k: self._derive(v) for k, v in groups.items()}
        return self._cache[key]

    def frontier(
        self,
        x_axis: AxisLike = "throughput_per_gpu",
        y_axis: AxisLike = "ttft_p50_ms",
        *,
        x_higher_is_better: bool | None = None,
        y_higher_is_better: bool | None = None,
    ) -> ParetoPoints:
        """Pareto-optimal subset of this collection for the given axes."""
        x = resolve_axis(x_axis, x_higher_is_better)
        y = resolve_axis(y_axis, y_higher_is_better)
        key = ("_frontier", x, y)
        if key not in self._cache:
            self._cache[key] = self._derive(compute_frontier(self._points, x, y))
        return self._cache[key]

    def scores(self, weights: ScoringWeights | None = None) -> dict[str, Score]:
        """Score and advantage per `uid`, relative to this collection."""
        w = weights or self._config.weights
        key = ("_scores", w)
        if key not in self._cache:
            self._cache[key] = score(self._points, w)
        return dict(self._cache[key])

    def leaderboard(
        self,
        sort_key: str = "score",
        sort_dir: str = "desc",
        *,
        weights: ScoringWeights | None = None,
    ) -> list[LeaderboardRow]:
        """Ranked leaderboard rows; fresh row objects on every call."""
        return build_leaderboard(self._points, self.scores(weights), sort_key, sort_dir)

    def __iter__(self) -> Iterator[ParetoPoint]:
        return iter(self._points)

    def __len__(self) -> int:
        return len(self._points)

    def __getitem__(self, index: int) -> ParetoPoint:
        return self._points[index]

    def __bool__(self) -> bool:
        return len(self._points) > 0

    def __add__(self, other: ParetoPoints) -> ParetoPoints:
        return ParetoPoints(list(self._points) + list(other._points), config=self._config)

    def __repr__(self) -> str:
        return f"ParetoPoints({len(self._points)} points)"

    def to_list(self) -> list[ParetoPoint]:
        return list(self._points)

    def to_dataframe(self) -> pd.DataFrame:
        """Convert to DataFrame with one row per point."""
        if not self._points:
            return pd.DataFrame(columns=[f.name for f in dataclasses.fields(ParetoPoint)])
        return pd.DataFrame([p.to_dict() for p in self._points])
