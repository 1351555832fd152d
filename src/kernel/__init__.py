"""Kernel package for ifcOWL to STEP conversion.

This package provides the edge stream reader, the conversion-scoped object
model, list resolution and the ISO-10303-21 encoder.
"""

from .classify import ValueClassifier
from .config import ConversionOptions
from .convert import convert_file, convert_graph, resolve_version
from .edges import Edge, EdgeStreamError, detect_schema_version, iter_edges
from .encoder import ConversionError, StepEncoder
from .ingest import ObjectModelBuilder
from .lists import ListResolver
from .model import ConversionContext, Instance, ValueKind
from .report import ConversionReport

__version__ = "0.1.0"
__all__ = [
    "ValueClassifier", "ConversionOptions",
    "convert_file", "convert_graph", "resolve_version",
    "Edge", "EdgeStreamError", "detect_schema_version", "iter_edges",
    "ConversionError", "StepEncoder", "ObjectModelBuilder", "ListResolver",
    "ConversionContext", "Instance", "ValueKind", "ConversionReport",
]
