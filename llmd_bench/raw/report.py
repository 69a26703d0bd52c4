"""Accessors for the nested llm-d Benchmark Report (v0.2) layout."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from llmd_bench.raw.statistics import safe_float

logger = logging.getLogger(__name__)

STANDALONE = "standalone"
LLMD = "llm-d"
DISAGGREGATED = "disaggregated"
CONFIGS = (STANDALONE, LLMD, DISAGGREGATED)

ENGINE_KIND = "inference_engine"
PREFILL_ROLE = "prefill"

_HARDWARE_AFFIXES = ("NVIDIA-", "-SXM4-80GB", "-80GB-HBM3", "-141GB")


@dataclass(frozen=True)
class StackComponent:
    """Standardized view of one `scenario.stack` entry.

    Attributes:
        label: Component label from `metadata.label` (may be empty).
        kind: Component kind (``"inference_engine"``, ``"generic"``, ...).
        tool: Serving tool name (``"vllm"``, ``"llm-d"``, ...).
        tool_version: Tool version or image reference.
        role: ``"prefill"``, ``"decode"``, ``"aggregate"`` or ``None``.
        model_name: Served model name.
        accelerator_model: Accelerator identifier (e.g. ``"NVIDIA-H100-80GB-HBM3"``).
        accelerator_count: Number of accelerators per replica.
    """

    label: str
    kind: str
    tool: str
    tool_version: str
    role: str | None
    model_name: str | None
    accelerator_model: str | None
    accelerator_count: int | None

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> StackComponent:
        std = d.get("standardized")
        if not isinstance(std, Mapping):
            std = {}
        meta = d.get("metadata")
        if not isinstance(meta, Mapping):
            meta = {}
        model = std.get("model")
        acc = std.get("accelerator")
        model_name = model.get("name") if isinstance(model, Mapping) else None
        acc_model = acc.get("model") if isinstance(acc, Mapping) else None
        count = safe_float(acc.get("count")) if isinstance(acc, Mapping) else None
        return cls(
            label=str(meta.get("label") or ""),
            kind=str(std.get("kind") or ""),
            tool=str(std.get("tool") or ""),
            tool_version=str(std.get("tool_version") or ""),
            role=(str(std["role"]) if std.get("role") else None),
            model_name=(str(model_name) if model_name else None),
            accelerator_model=(str(acc_model) if acc_model else None),
            accelerator_count=(int(count) if count is not None else None),
        )


def get_path(d: Any, *keys: str) -> Any:
    """Walk nested mappings, returning `None` as soon as a level is missing."""
    cur = d
    for k in keys:
        if not isinstance(cur, Mapping):
            return None
        cur = cur.get(k)
    return cur


def parse_stack(report: Mapping[str, Any]) -> list[StackComponent]:
    raw = get_path(report, "scenario", "stack")
    if not isinstance(raw, Sequence) or isinstance(raw, str):
        return []
    return [StackComponent.from_dict(c) for c in raw if isinstance(c, Mapping)]


def find_engine(stack: Sequence[StackComponent]) -> StackComponent | None:
    """First component of kind ``inference_engine``, the engine being measured."""
    return next((c for c in stack if c.kind == ENGINE_KIND), None)


def classify_config(stack: Sequence[StackComponent], engine: StackComponent) -> str:
    """Classify a serving stack as standalone, llm-d, or disaggregated.

    Any prefill component means a disaggregated prefill/decode topology,
    regardless of which tool the engine runs.
    """
    if any(c.role == PREFILL_ROLE for c in stack):
        return DISAGGREGATED
    if engine.tool == LLMD:
        return LLMD
    return STANDALONE


def seq_len_label(report: Mapping[str, Any]) -> str:
    """Sequence-length bucket label ``"{isl}/{osl}"`` from the load config."""
    load = get_path(report, "scenario", "load", "standardized")
    isl = safe_float(get_path(load, "input_seq_len", "value"))
    osl = safe_float(get_path(load, "output_seq_len", "value"))
    isl_s = str(int(isl)) if isl is not None else "0"
    osl_s = str(int(osl)) if osl is not None else "?"
    return f"{isl_s}/{osl_s}"


def first_sample_value(report: Mapping[str, Any], name_token: str) -> float:
    """First sample of the first observability metric whose name contains `name_token`.

    Returns 0.0 when no such metric or sample exists.
    """
    metrics = get_path(report, "results", "observability", "metrics")
    if not isinstance(metrics, Sequence) or isinstance(metrics, str):
        return 0.0
    for m in metrics:
        if not isinstance(m, Mapping) or name_token not in str(m.get("name", "")):
            continue
        samples = m.get("samples")
        if (
            not isinstance(samples, Sequence)
            or isinstance(samples, str)
            or not samples
            or not isinstance(samples[0], Mapping)
        ):
            return 0.0
        value = safe_float(samples[0].get("value"))
        return value if value is not None else 0.0
    return 0.0


def short_hardware_name(hardware: str) -> str:
    """Display name of an accelerator, e.g. ``NVIDIA-H100-80GB-HBM3`` -> ``H100``."""
    out = hardware
    for affix in _HARDWARE_AFFIXES:
        out = out.replace(affix, "")
    return out


def short_model_name(model: str) -> str:
    """Model name without its organization, e.g. ``Qwen/Qwen3-32B`` -> ``Qwen3-32B``."""
    return model.rsplit("/", 1)[-1]


def hardware_matches(hardware: str, name: str) -> bool:
    """Whether `name` is the full or short name of `hardware`."""
    return name in (hardware, short_hardware_name(hardware))


def model_matches(model: str, name: str) -> bool:
    """Whether `name` is the full or short name of `model`."""
    return name in (model, short_model_name(model))
