"""MCP tools implementation with session management.

This module provides the core tools for the owl2step MCP server. The session
caches compiled schema fact bases so repeated conversions against the same
ifcOWL version skip ontology parsing.
"""

from __future__ import annotations

import tempfile
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

import structlog

from ifcschema.facts import SchemaFactBase
from ifcschema.loader import load_schema
from ifcschema.versions import KNOWN_VERSIONS, IfcVersion, IfcVersionError
from kernel.config import ConversionOptions
from kernel.convert import convert_file
from kernel.edges import EdgeStreamError, detect_schema_version
from kernel.encoder import ConversionError

logger = structlog.get_logger(__name__)


class SessionError(Exception):
    """Raised when session operations fail."""
    pass


class ConverterSession:
    """Session holding compiled schemas shared by conversions."""

    def __init__(self, max_schemas: int = 4, options: Optional[ConversionOptions] = None):
        """Initialize session.

        Args:
            max_schemas: Maximum number of compiled schemas to keep in memory
            options: Base conversion options (defaults to environment settings)
        """
        self._schemas: Dict[str, SchemaFactBase] = {}
        self._load_times: Dict[str, float] = {}
        self._max_schemas = max_schemas
        self._conversions = 0
        self.options = options or ConversionOptions.from_env()

        logger.info("owl2step session initialized", max_schemas=max_schemas)

    def cleanup_old_schemas(self) -> None:
        """Remove oldest schemas if we exceed the limit."""
        if len(self._schemas) <= self._max_schemas:
            return

        sorted_labels = sorted(self._load_times.items(), key=lambda x: x[1])
        for label, _ in sorted_labels[:-self._max_schemas]:
            self.remove_schema(label)

    def remove_schema(self, label: str) -> None:
        self._schemas.pop(label, None)
        self._load_times.pop(label, None)
        logger.debug("Removed schema from session", version=label)

    def has_schema(self, label: str) -> bool:
        return label in self._schemas

    def get_schema(self, label: str) -> Optional[SchemaFactBase]:
        return self._schemas.get(label)

    def list_schemas(self) -> List[str]:
        return list(self._schemas.keys())

    def get_session_stats(self) -> Dict[str, Any]:
        return {
            "cached_schemas": len(self._schemas),
            "max_schemas": self._max_schemas,
            "schema_versions": list(self._schemas.keys()),
            "conversions": self._conversions,
        }

    def schema_for(self, version: IfcVersion, options: ConversionOptions) -> SchemaFactBase:
        """Return the fact base of a version, loading it on first use.

        Raises:
            SchemaLoadError: If the schema cannot be loaded
        """
        facts = self._schemas.get(version.label)
        if facts is not None:
            logger.debug("Schema cache hit", version=version.label)
            return facts

        facts = load_schema(version, options.schema_dir, options.cache_dir)
        self._schemas[version.label] = facts
        self._load_times[version.label] = time.time()
        self.cleanup_old_schemas()
        return facts

    def convert(
        self, input_path: str, output_path: str, schema_version: Optional[str] = None
    ) -> Dict[str, Any]:
        """Convert an ifcOWL file with the session's cached schemas.

        Raises:
            SessionError: If the conversion fails
        """
        options = ConversionOptions(
            schema_dir=self.options.schema_dir,
            cache_dir=self.options.cache_dir,
            input_format=self.options.input_format,
            schema_version=schema_version or self.options.schema_version,
            strict_version=self.options.strict_version,
            max_list_length=self.options.max_list_length,
        )

        try:
            report = convert_file(input_path, output_path, options, schema_provider=self.schema_for)
        except (IfcVersionError, EdgeStreamError, ConversionError) as e:
            logger.error("Conversion failed", input=input_path, error=str(e))
            raise SessionError(f"Failed to convert {input_path}: {e}") from e

        self._conversions += 1
        return {
            "schema_version": report.schema_version,
            "instance_count": report.instance_count,
            "assigned_ids": report.assigned_ids,
            "warnings": report.warnings,
            "errors": report.errors,
        }


# Global session instance for MCP tools
_session = ConverterSession()


def _require_path(params: Dict[str, Any], name: str) -> Path:
    if name not in params:
        raise ValueError(f"Missing required parameter: {name}")
    value = params[name]
    if not value:
        raise ValueError(f"Parameter '{name}' cannot be empty")
    path = Path(value)
    if not path.exists():
        raise ValueError(f"File not found: {value}")
    return path


def tool_convert_model(params: Dict[str, Any]) -> Dict[str, Any]:
    """MCP tool: Convert an ifcOWL file into a STEP file.

    Args:
        params: Tool parameters containing 'path' and optional 'out_path'
            and 'schema_version'

    Returns:
        Dictionary with conversion results

    Raises:
        ValueError: If parameters are invalid
    """
    input_path = _require_path(params, "path")
    out_path = params.get("out_path") or str(
        Path(tempfile.gettempdir()) / f"{input_path.stem}.ifc"
    )

    try:
        result = _session.convert(str(input_path), out_path, params.get("schema_version"))
    except SessionError as e:
        return {
            "success": False,
            "error": str(e),
            "output_path": None,
        }

    return {
        "success": True,
        "output_path": out_path,
        **result,
        "session_stats": _session.get_session_stats(),
    }


def tool_detect_version(params: Dict[str, Any]) -> Dict[str, Any]:
    """MCP tool: Detect the ifcOWL version a graph declares."""
    input_path = _require_path(params, "path")

    try:
        version = detect_schema_version(input_path, format=_session.options.input_format)
    except (IfcVersionError, EdgeStreamError) as e:
        logger.error("detect_version tool failed", path=str(input_path), error=str(e))
        return {
            "success": False,
            "error": str(e),
            "schema_version": None,
        }

    return {
        "success": True,
        "schema_version": version.label,
        "schema_name": version.schema_name,
        "ontology": version.ontology_iri,
    }


def tool_list_versions(params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """MCP tool: List the known ifcOWL versions."""
    return {
        "success": True,
        "versions": [
            {
                "label": version.label,
                "schema_name": version.schema_name,
                "ontology": version.ontology_iri,
            }
            for version in KNOWN_VERSIONS
        ],
    }


def tool_session_info(params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """MCP tool: Get session information and cached schemas.

    Args:
        params: Optional parameters (unused)

    Returns:
        Dictionary with session information
    """
    stats = _session.get_session_stats()

    schema_details = []
    for label in stats["schema_versions"]:
        facts = _session.get_schema(label)
        if facts is None:
            continue
        schema_details.append({
            "schema_version": label,
            "schema_name": facts.schema_name,
            **facts.stats(),
        })

    return {
        "success": True,
        "session_stats": stats,
        "schemas": schema_details,
        "available_tools": [
            "convert_model",
            "detect_version",
            "list_versions",
            "session_info",
        ],
    }
