"""Report source abstractions for locally stored benchmark reports."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol

import yaml

logger = logging.getLogger(__name__)

REPORT_SUFFIXES = (".json", ".yaml", ".yml")


class ReportSource(Protocol):
    """Common interface for benchmark report sources."""

    def load(self) -> list[dict[str, Any]]:
        """Return all reports of the source as plain mappings."""
        ...


def _parse_file(path: Path) -> Any:
    text = path.read_text()
    if path.suffix == ".json":
        return json.loads(text)
    return yaml.safe_load(text)


def _reports_in(payload: Any, path: Path) -> list[dict[str, Any]]:
    if isinstance(payload, Mapping):
        return [dict(payload)]
    if isinstance(payload, list):
        out = [dict(r) for r in payload if isinstance(r, Mapping)]
        if len(out) != len(payload):
            logger.debug("Ignored %d non-mapping entries in %s", len(payload) - len(out), path)
        return out
    raise ValueError(f"Invalid report file (not a mapping or list): {path}")


@dataclass(frozen=True)
class LocalReportSource:
    """Directory of report files (``*.json``, ``*.yaml``, ``*.yml``), searched recursively.

    Each file holds one report or a list of reports. Files are read in
    sorted path order so the resulting report order is stable.
    """

    root: Path

    def files(self) -> list[Path]:
        p = Path(self.root)
        if not p.exists():
            raise FileNotFoundError(f"Report root does not exist: {p}")
        if p.is_file():
            return [p]
        return sorted(f for f in p.rglob("*") if f.is_file() and f.suffix in REPORT_SUFFIXES)

    def load(self) -> list[dict[str, Any]]:
        reports: list[dict[str, Any]] = []
        files = self.files()
        for f in files:
            try:
                reports.extend(_reports_in(_parse_file(f), f))
            except Exception:
                logger.warning("Failed to read report file %s", f, exc_info=True)
        logger.info("Loaded %d reports from %d files under %s", len(reports), len(files), self.root)
        return reports


SourceLike = ReportSource | str | Path


def load_reports(source: SourceLike) -> list[dict[str, Any]]:
    """Resolve a source-like input and load its reports."""
    if isinstance(source, (str, Path)):
        return LocalReportSource(Path(source)).load()
    return source.load()
