"""owl2step MCP Server implementation.

Provides a stdio-based MCP server exposing ifcOWL to STEP conversion with
robust error handling and logging.
"""

from __future__ import annotations

import sys
from typing import Any, Dict

import structlog
from mcp.server.fastmcp import FastMCP

from owl2step.logging_setup import configure_preset

from .tools import (
    tool_convert_model,
    tool_detect_version,
    tool_list_versions,
    tool_session_info,
)

logger = structlog.get_logger(__name__)

# Create FastMCP app
app = FastMCP("owl2step")


@app.tool()
def convert_model(
    path: str, out_path: str | None = None, schema_version: str | None = None
) -> Dict[str, Any]:
    """Convert an ifcOWL graph file into an IFC STEP file.

    Args:
        path: Absolute path to the ifcOWL file (Turtle by default)
        out_path: Output path for the STEP file (defaults to temp directory)
        schema_version: ifcOWL version label to use instead of the declared one

    Returns:
        Dictionary containing conversion results and report

    Example:
        >>> convert_model("/path/to/model.ttl", "/tmp/model.ifc")
        {
            "success": True,
            "output_path": "/tmp/model.ifc",
            "schema_version": "IFC4_ADD2",
            "instance_count": 1250,
            "warnings": []
        }
    """
    try:
        logger.info("MCP tool: convert_model", path=path, out_path=out_path)
        params: Dict[str, Any] = {"path": path}
        if out_path is not None:
            params["out_path"] = out_path
        if schema_version is not None:
            params["schema_version"] = schema_version

        result = tool_convert_model(params)
        logger.info("MCP tool: convert_model completed", success=result.get("success", False))
        return result
    except Exception as e:
        logger.error("MCP tool: convert_model failed", path=path, error=str(e))
        return {
            "success": False,
            "error": f"Tool execution failed: {e}",
            "output_path": None,
        }


@app.tool()
def detect_version(path: str) -> Dict[str, Any]:
    """Detect the ifcOWL version an RDF graph file imports.

    Args:
        path: Absolute path to the ifcOWL file

    Returns:
        Dictionary containing the version label and STEP schema name
    """
    try:
        logger.info("MCP tool: detect_version", path=path)
        return tool_detect_version({"path": path})
    except Exception as e:
        logger.error("MCP tool: detect_version failed", path=path, error=str(e))
        return {
            "success": False,
            "error": f"Tool execution failed: {e}",
            "schema_version": None,
        }


@app.tool()
def list_versions() -> Dict[str, Any]:
    """List the ifcOWL versions the converter knows."""
    try:
        return tool_list_versions()
    except Exception as e:
        logger.error("MCP tool: list_versions failed", error=str(e))
        return {"success": False, "error": f"Tool execution failed: {e}", "versions": []}


@app.tool()
def session_info() -> Dict[str, Any]:
    """Get information about the current session and cached schemas.

    Returns:
        Dictionary containing session statistics and schema details
    """
    try:
        logger.info("MCP tool: session_info")
        result = tool_session_info()
        logger.info("MCP tool: session_info completed",
                   cached_schemas=len(result.get("schemas", [])))
        return result
    except Exception as e:
        logger.error("MCP tool: session_info failed", error=str(e))
        return {
            "success": False,
            "error": f"Tool execution failed: {e}",
            "session_stats": {},
            "schemas": [],
        }


def main() -> None:
    """Main entry point for the MCP server.

    Runs the server in stdio mode; logs go to stderr without colors.
    """
    configure_preset("mcp")
    try:
        logger.info("owl2step MCP server ready")
        app.run()
    except KeyboardInterrupt:
        logger.info("MCP server shutting down (keyboard interrupt)")
        sys.exit(0)
    except Exception as e:
        logger.error("MCP server startup failed", error=str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()
