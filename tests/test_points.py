from __future__ import annotations

import json

import pandas as pd
import pytest

from llmd_bench.records.points import (
    FilterSelection,
    ParetoPoint,
    ParetoPoints,
    build_points,
    point_uid,
)


@pytest.fixture
def reports(make_report):
    return [
        make_report(uid="a", config="standalone", output_rate=1000.0),
        make_report(uid="b", config="llm-d", output_rate=1500.0, ttft_s=0.2),
        make_report(uid="c", config="disaggregated", output_rate=1800.0, ttft_s=0.3),
        make_report(
            uid="d",
            hardware="NVIDIA-A100-SXM4-80GB",
            model="meta-llama/Llama-3-70B-Instruct",
            gpu_count=4,
            output_rate=2000.0,
        ),
    ]


def test_point_fields(make_report) -> None:
    (p,) = build_points([make_report(gpu_count=8, output_rate=8000.0)])
    assert p.uid == "NVIDIA-H100-80GB-HBM3|meta-llama/Llama-3-8B|standalone|vllm|1024/1024"
    assert p.uid == point_uid(p.hardware, p.model, p.config, p.framework, p.seq_len)
    assert p.gpu_count == 8
    assert p.throughput_per_gpu == pytest.approx(1000.0)
    assert p.ttft_p50_ms == pytest.approx(250.0)
    assert p.tpot_p50_ms == pytest.approx(20.0)
    assert p.p99_latency_ms == pytest.approx(4000.0)
    assert p.power_per_gpu_kw == pytest.approx(0.70)
    assert p.tco_per_gpu_hr == pytest.approx(2.50)
    assert p.hardware_short == "H100"
    assert p.model_short == "Llama-3-8B"


def test_unknown_hardware_gets_default_spec(make_report) -> None:
    (p,) = build_points([make_report(hardware="AMD-MI300X")])
    assert (p.power_per_gpu_kw, p.tco_per_gpu_hr) == (0.5, 2.0)


def test_missing_latency_is_zero(make_report) -> None:
    report = make_report()
    del report["results"]["request_performance"]["aggregate"]["latency"]
    (p,) = build_points([report])
    assert (p.ttft_p50_ms, p.tpot_p50_ms, p.p99_latency_ms) == (0.0, 0.0, 0.0)


def test_duplicates_keep_first_by_default(make_report) -> None:
    points = build_points(
        [
            make_report(uid="first", output_rate=1000.0),
            make_report(uid="second", output_rate=3000.0),
        ]
    )
    assert len(points) == 1
    assert points[0].throughput_per_gpu == pytest.approx(1000.0)


def test_duplicates_keep_max(make_report) -> None:
    points = build_points(
        [
            make_report(uid="a", output_rate=1000.0),
            make_report(uid="b", config="llm-d", output_rate=1200.0),
            make_report(uid="c", output_rate=3000.0),
        ],
        keep="max",
    )
    assert [p.config for p in points] == ["standalone", "llm-d"]
    assert points[0].throughput_per_gpu == pytest.approx(3000.0)


def test_unknown_keep_policy(make_report) -> None:
    with pytest.raises(ValueError, match="keep"):
        build_points([make_report()], keep="last")


def test_uids_are_unique_and_ordered(reports) -> None:
    points = build_points(reports + reports)
    uids = [p.uid for p in points]
    assert len(uids) == len(set(uids)) == 4
    assert [p.config for p in points[:3]] == ["standalone", "llm-d", "disaggregated"]


def test_build_is_deterministic(reports) -> None:
    assert build_points(reports) == build_points(reports)


def test_zero_throughput_is_dropped(make_report) -> None:
    points = build_points([make_report(output_rate=0.0), make_report(osl=512)])
    assert len(points) == 1
    assert points[0].seq_len == "1024/512"


def test_from_reports_and_filters(reports) -> None:
    points = ParetoPoints.from_reports(reports)
    assert len(points) == 4
    assert len(points.hardware("H100")) == 3
    assert len(points.hardware("NVIDIA-A100-SXM4-80GB")) == 1
    assert len(points.model("Llama-3-70B-Instruct")) == 1
    assert len(points.config("llm-d", "disaggregated")) == 2
    assert len(points.framework("vllm")) == 2
    assert len(points.seq_len("1024/1024")) == 4
    assert len(points.hardware("H100").config("standalone")) == 1
    assert len(points.where(lambda p: p.throughput_per_gpu > 1200)) == 2


def test_filters_are_cached(reports) -> None:
    points = ParetoPoints.from_reports(reports)
    assert points.hardware("H100") is points.hardware("H100")


def test_select(reports) -> None:
    points = ParetoPoints.from_reports(reports)
    sel = FilterSelection(hardware=["H100"], configs={"llm-d", "standalone"})
    selected = points.select(sel)
    assert [p.config for p in selected] == ["standalone", "llm-d"]
    assert len(points.select(FilterSelection())) == 4
    assert len(points.select(FilterSelection(models="Llama-3-70B-Instruct"))) == 1


def test_filter_selection_is_hashable() -> None:
    a = FilterSelection(hardware=["H100"], seq_lens=("1024/1024",))
    b = FilterSelection(hardware={"H100"}, seq_lens=["1024/1024"])
    assert a == b
    assert hash(a) == hash(b)


def test_data_accessor(reports) -> None:
    points = ParetoPoints.from_reports(reports)
    assert points.data.throughput_per_gpu == pytest.approx([1000.0, 1500.0, 1800.0, 500.0])
    assert points.data.config[:2] == ["standalone", "llm-d"]
    with pytest.raises(AttributeError):
        _ = points.data.not_a_field


def test_group_by(reports) -> None:
    points = ParetoPoints.from_reports(reports)
    groups = points.group_by("hardware")
    assert set(groups) == {"NVIDIA-H100-80GB-HBM3", "NVIDIA-A100-SXM4-80GB"}
    assert len(groups["NVIDIA-H100-80GB-HBM3"]) == 3
    pairs = points.group_by("hardware", "config")
    assert ("NVIDIA-A100-SXM4-80GB", "standalone") in pairs


def test_collection_protocol(reports) -> None:
    points = ParetoPoints.from_reports(reports)
    assert isinstance(points[0], ParetoPoint)
    assert bool(points)
    assert not ParetoPoints([])
    assert len(points.config("standalone") + points.config("llm-d")) == 3
    assert points.to_list() == list(points)
    assert repr(points) == "ParetoPoints(4 points)"


def test_to_dataframe(reports) -> None:
    df = ParetoPoints.from_reports(reports).to_dataframe()
    assert isinstance(df, pd.DataFrame)
    assert len(df) == 4
    assert "throughput_per_gpu" in df.columns
    empty = ParetoPoints([]).to_dataframe()
    assert empty.empty
    assert list(empty.columns) == list(df.columns)


def test_from_directory(tmp_path, make_report) -> None:
    (tmp_path / "nightly").mkdir()
    (tmp_path / "nightly" / "a.json").write_text(json.dumps(make_report(uid="a")))
    (tmp_path / "b.json").write_text(
        json.dumps([make_report(uid="b", config="llm-d"), make_report(uid="c", osl=128)])
    )
    points = ParetoPoints.from_directory(tmp_path)
    assert len(points) == 3
    assert points.data.config == ["llm-d", "standalone", "standalone"]
