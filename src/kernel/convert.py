"""End-to-end ifcOWL to STEP conversion.

A conversion runs four sequential stages: schema version detection, schema
loading, object model ingestion, and STEP encoding. Detection and ingestion
each stream the input once. All model state lives in one
:class:`ConversionContext` that is cleared when the conversion ends.
"""

from __future__ import annotations

from pathlib import Path
from typing import BinaryIO, Callable, Optional, Union

import structlog

from ifcschema.facts import SchemaFactBase
from ifcschema.loader import load_schema
from ifcschema.versions import IfcVersion, IfcVersionError, get_version

from .config import ConversionOptions
from .edges import detect_schema_version, iter_edges
from .encoder import ConversionError, StepEncoder
from .ingest import ObjectModelBuilder
from .lists import ListResolver
from .model import ConversionContext
from .report import ConversionReport

logger = structlog.get_logger(__name__)

PathLike = Union[str, Path]
SchemaProvider = Callable[[IfcVersion, ConversionOptions], SchemaFactBase]


def default_schema_provider(version: IfcVersion, options: ConversionOptions) -> SchemaFactBase:
    return load_schema(version, options.schema_dir, options.cache_dir)


def resolve_version(
    options: ConversionOptions,
    location: Optional[PathLike] = None,
    data: Optional[Union[str, bytes]] = None,
) -> IfcVersion:
    """Pick the schema version of a conversion.

    Without a pin the declared version is used. A pin that disagrees with the
    declaration wins with a warning, or fails when ``strict_version`` is set.

    Raises:
        IfcVersionError: If no version can be determined, or on a strict mismatch
        EdgeStreamError: If the input cannot be parsed
    """
    if options.schema_version is None:
        return detect_schema_version(location, data, options.input_format)

    pinned = get_version(options.schema_version)
    try:
        declared: Optional[IfcVersion] = detect_schema_version(location, data, options.input_format)
    except IfcVersionError as e:
        if options.strict_version:
            raise
        logger.warning("Input declares no known ifcOWL version", pinned=pinned.label, error=str(e))
        return pinned

    if declared != pinned:
        if options.strict_version:
            raise IfcVersionError(
                f"Input declares {declared.label} but {pinned.label} was requested"
            )
        logger.warning(
            "Pinned schema version differs from input",
            declared=declared.label,
            pinned=pinned.label,
        )
    return pinned


def _ingest(
    options: ConversionOptions,
    location: Optional[PathLike],
    data: Optional[Union[str, bytes]],
    schema_provider: SchemaProvider,
) -> ConversionContext:
    version = resolve_version(options, location, data)
    schema = schema_provider(version, options)

    context = ConversionContext(schema=schema)
    ObjectModelBuilder(context).consume(iter_edges(location, data, options.input_format))
    return context


def _encode(context: ConversionContext, stream: BinaryIO, options: ConversionOptions) -> None:
    resolver = ListResolver(context, max_length=options.max_list_length)
    StepEncoder(context, resolver=resolver).encode(stream)


def _finish(context: ConversionContext) -> ConversionReport:
    report = context.report
    report.instance_count = len(context.instances)
    context.clear()
    logger.info(
        "Conversion finished",
        version=report.schema_version,
        instances=report.instance_count,
        warnings=len(report.warnings),
        errors=len(report.errors),
    )
    return report


def convert_graph(
    stream: BinaryIO,
    location: Optional[PathLike] = None,
    data: Optional[Union[str, bytes]] = None,
    options: Optional[ConversionOptions] = None,
    schema_provider: Optional[SchemaProvider] = None,
) -> ConversionReport:
    """Convert an ifcOWL graph into STEP text written to a binary stream.

    Args:
        stream: Binary output stream
        location: Path of the input graph
        data: Serialized input graph, instead of a path
        options: Conversion options (defaults apply when omitted)
        schema_provider: Callable returning the fact base of a version

    Returns:
        ConversionReport of the conversion

    Raises:
        IfcVersionError: If no schema version applies (SchemaLoadError if it cannot be loaded)
        EdgeStreamError: If the input cannot be parsed
        ConversionError: If the output cannot be written
    """
    options = options or ConversionOptions()
    source = str(location) if location is not None else "<data>"
    with structlog.contextvars.bound_contextvars(input=source):
        context = _ingest(options, location, data, schema_provider or default_schema_provider)
        try:
            _encode(context, stream, options)
        finally:
            report = _finish(context)
    return report


def convert_file(
    input_path: PathLike,
    output_path: PathLike,
    options: Optional[ConversionOptions] = None,
    schema_provider: Optional[SchemaProvider] = None,
) -> ConversionReport:
    """Convert an ifcOWL file into a STEP file.

    The output file is created only once the input has been ingested, so a
    failing conversion leaves no empty file behind.

    Raises:
        IfcVersionError: If no schema version applies
        EdgeStreamError: If the input cannot be parsed
        ConversionError: If the output cannot be written
    """
    options = options or ConversionOptions()
    output_path = Path(output_path)
    logger.info("Converting ifcOWL file", input=str(input_path), output=str(output_path))

    with structlog.contextvars.bound_contextvars(input=str(input_path)):
        context = _ingest(options, input_path, None, schema_provider or default_schema_provider)
        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            with open(output_path, "wb") as f:
                _encode(context, f, options)
        except OSError as e:
            raise ConversionError(f"Failed to write STEP file {output_path}: {e}") from e
        finally:
            report = _finish(context)
    return report
