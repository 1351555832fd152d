"""Conversion report: counts and recoverable anomalies of one conversion."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Union

import orjson


@dataclass
class ConversionReport:
    """Outcome of a conversion.

    Warnings and errors here never abort a conversion; fatal problems are
    raised as exceptions instead.
    """

    schema_version: str = ""
    created_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    edge_count: int = 0
    instance_count: int = 0
    assigned_ids: int = 0
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def is_clean(self) -> bool:
        """Check if the conversion ran without any anomaly."""
        return not self.warnings and not self.errors

    def add_warning(self, event: str, **context: Any) -> None:
        self.warnings.append(_format_entry(event, context))

    def add_error(self, event: str, **context: Any) -> None:
        self.errors.append(_format_entry(event, context))


def _format_entry(event: str, context: Dict[str, Any]) -> str:
    if not context:
        return event
    details = ", ".join(f"{k}={v}" for k, v in context.items())
    return f"{event} ({details})"


def to_json_dict(report: ConversionReport) -> Dict[str, Any]:
    return {
        "schema_version": report.schema_version,
        "created_at": report.created_at,
        "edge_count": report.edge_count,
        "instance_count": report.instance_count,
        "assigned_ids": report.assigned_ids,
        "is_clean": report.is_clean,
        "warnings": report.warnings,
        "errors": report.errors,
    }


def to_json_string(report: ConversionReport, pretty: bool = False) -> str:
    data = to_json_dict(report)
    if pretty:
        return json.dumps(data, indent=2, ensure_ascii=False)
    return orjson.dumps(data).decode("utf-8")


def dump_report(report: ConversionReport, path: Union[str, Path]) -> None:
    """Write a conversion report as a single JSON line."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "wb") as f:
        f.write(orjson.dumps(to_json_dict(report)))
        f.write(b"\n")
