"""owl2step MCP Server package.

Provides MCP (Model Context Protocol) server implementation for converting
ifcOWL graphs into IFC STEP files.
"""

from .server import main as server_main
from .tools import ConverterSession

__version__ = "0.1.0"
__all__ = ["server_main", "ConverterSession"]
