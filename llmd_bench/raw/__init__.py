"""Raw report layout parsers."""

from llmd_bench.raw.report import (
    CONFIGS,
    StackComponent,
    classify_config,
    find_engine,
    parse_stack,
    short_hardware_name,
    short_model_name,
)
from llmd_bench.raw.statistics import Statistics

__all__ = [
    "CONFIGS",
    "StackComponent",
    "Statistics",
    "classify_config",
    "find_engine",
    "parse_stack",
    "short_hardware_name",
    "short_model_name",
]
