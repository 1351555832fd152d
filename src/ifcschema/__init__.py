"""ifcOWL schema package.

This package provides schema version selection, loading of ifcOWL ontologies,
and the compiled fact base queried during STEP conversion.
"""

from .facts import Attribute, SchemaFactBase
from .loader import compile_schema, load_schema
from .serialize import dump_facts, load_facts
from .versions import (
    KNOWN_VERSIONS,
    IfcVersion,
    IfcVersionError,
    SchemaLoadError,
    get_version,
    select_schema_version,
    version_for_ontology,
)

__version__ = "0.1.0"
__all__ = [
    "Attribute", "SchemaFactBase",
    "compile_schema", "load_schema",
    "dump_facts", "load_facts",
    "KNOWN_VERSIONS", "IfcVersion", "IfcVersionError", "SchemaLoadError",
    "get_version", "select_schema_version", "version_for_ontology",
]
