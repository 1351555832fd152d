"""Object model construction from an ifcOWL edge stream.

Edges arrive in no particular order. Each one is dispatched on its predicate
local name and recorded in the conversion context: types, express ids, list
links and contents, formatted literals, header fields, and positioned
attribute values.
"""

from __future__ import annotations

import math
from decimal import Decimal
from typing import Any, Callable, Dict, Iterable, Optional

import structlog
from rdflib import Literal

from .edges import Edge
from .model import ConversionContext

logger = structlog.get_logger(__name__)

# Predicate local names with a fixed meaning
TYPE = "type"
HAS_EXPRESS_ID = "hasExpressID"
HAS_NEXT = "hasNext"
HAS_CONTENTS = "hasContents"
HAS_DOUBLE = "hasDouble"
HAS_STRING = "hasString"
HAS_INTEGER = "hasInteger"
HAS_BOOLEAN = "hasBoolean"
HAS_LOGICAL = "hasLogical"
HAS_HEX_BINARY = "hasHexBinary"

# Subject local name of the document node
DOCUMENT = ""

TRUE_TOKEN = ".T."
FALSE_TOKEN = ".F."
UNKNOWN_TOKEN = ".U."
NON_FINITE_REAL = "0.00"

TRUE_LEXICAL = frozenset({"true", "1"})
FALSE_LEXICAL = frozenset({"false", "0"})

LOGICAL_TOKENS = {
    "TRUE": TRUE_TOKEN,
    "FALSE": FALSE_TOKEN,
    "UNKNOWN": UNKNOWN_TOKEN,
}

HEADER_LISTS = ("description", "author", "organization", "schema_identifiers")
HEADER_FIELDS = (
    "implementation_level",
    "name",
    "time_stamp",
    "preprocessor_version",
    "originating_system",
    "authorization",
)


class InvalidLiteral(ValueError):
    """A literal that does not coerce to the kind its predicate requires."""

    pass


def step_string(text: str) -> str:
    """Quote text as a STEP string, doubling apostrophes and backslashes."""
    return "'" + text.replace("\\", "\\\\").replace("'", "''") + "'"


def _python_value(obj: Any) -> Any:
    if not isinstance(obj, Literal):
        raise InvalidLiteral(f"expected a literal, got node {obj}")
    return obj.toPython()


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float, Decimal)) and not isinstance(value, bool)


def format_double(obj: Any) -> Optional[str]:
    """Format an xsd:double as a fixed 8-decimal real.

    Returns None for non-finite values, which callers replace with zero.
    """
    value = _python_value(obj)
    if not _is_number(value):
        raise InvalidLiteral(f"not a double: {obj}")
    value = float(value)
    if math.isinf(value) or math.isnan(value):
        return None
    return f"{value:.8f}"


def format_string(obj: Any) -> str:
    value = _python_value(obj)
    if not isinstance(value, str):
        raise InvalidLiteral(f"not a string: {obj}")
    return step_string(str(value))


def format_integer(obj: Any) -> str:
    value = _python_value(obj)
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if not isinstance(value, int) or isinstance(value, bool):
        raise InvalidLiteral(f"not an integer: {obj}")
    return str(value)


def format_boolean(obj: Any) -> str:
    if not isinstance(obj, Literal):
        raise InvalidLiteral(f"expected a literal, got node {obj}")
    # rdflib maps unknown xsd:boolean forms to False, so check the text
    lexical = str(obj).strip().lower()
    if lexical in TRUE_LEXICAL:
        return TRUE_TOKEN
    if lexical in FALSE_LEXICAL:
        return FALSE_TOKEN
    raise InvalidLiteral(f"not a boolean: {obj}")


def format_logical(obj: Any) -> str:
    token = LOGICAL_TOKENS.get(str(obj)) if not isinstance(obj, Literal) else None
    if token is None:
        raise InvalidLiteral(f"not a logical: {obj}")
    return token


def format_hex_binary(obj: Any) -> str:
    if not isinstance(obj, Literal):
        raise InvalidLiteral(f"expected a literal, got node {obj}")
    text = str(obj)
    marker = text.find("^")
    if marker >= 0:
        text = text[:marker]
    return '"' + text + '"'


def parse_express_id(obj: Any) -> int:
    value = _python_value(obj)
    if isinstance(value, bool):
        raise InvalidLiteral(f"not an express id: {obj}")
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        raise InvalidLiteral(f"not an express id: {obj}") from None


LITERAL_FORMATTERS: Dict[str, Callable[[Any], str]] = {
    HAS_STRING: format_string,
    HAS_INTEGER: format_integer,
    HAS_BOOLEAN: format_boolean,
    HAS_LOGICAL: format_logical,
    HAS_HEX_BINARY: format_hex_binary,
}


def _name_suffix_id(key: str) -> Optional[int]:
    """Trailing numeric id of a node name such as ``IfcWall_12``."""
    _, sep, suffix = key.rpartition("_")
    if not sep:
        return None
    try:
        return int(suffix)
    except ValueError:
        return None


class ObjectModelBuilder:
    """Populate a :class:`ConversionContext` from an edge stream."""

    def __init__(self, context: ConversionContext):
        self.context = context
        self.schema = context.schema

    def consume(self, edges: Iterable[Edge]) -> ConversionContext:
        """Ingest every edge of a stream.

        Args:
            edges: Edges in stream order

        Returns:
            The populated conversion context
        """
        count = 0
        for edge in edges:
            self.add_edge(edge)
            count += 1

        self.context.report.edge_count += count
        self.context.report.instance_count = len(self.context.instances)
        logger.info(
            "Object model built",
            edges=count,
            instances=len(self.context.instances),
            literals=len(self.context.literals),
            list_cells=len(self.context.contents),
        )
        return self.context

    def add_edge(self, edge: Edge) -> None:
        subject, predicate, obj = edge

        if predicate == TYPE:
            self._add_type(subject, str(obj))
        elif predicate == HAS_EXPRESS_ID:
            self._add_express_id(subject, obj)
        elif predicate == HAS_NEXT:
            self.context.next_cells[subject] = str(obj)
        elif predicate == HAS_CONTENTS:
            self.context.contents[subject] = [str(obj)]
        elif predicate == HAS_DOUBLE:
            self._add_double(subject, obj)
        elif predicate in LITERAL_FORMATTERS:
            self._add_literal(subject, predicate, obj)
        elif subject == DOCUMENT:
            self._add_header(predicate, obj)
        else:
            self._add_attribute(subject, predicate, obj)

    def _warn(self, event: str, **context: Any) -> None:
        logger.warning(event, **context)
        self.context.report.add_warning(event, **context)

    def _add_type(self, subject: str, type_name: str) -> None:
        self.context.types[subject] = type_name
        if not self.schema.is_entity(type_name):
            return

        instance = self.context.get_or_create_instance(subject)
        instance.class_name = type_name
        if instance.explicit_id:
            return

        line_number = _name_suffix_id(subject)
        if line_number is not None:
            instance.line_number = line_number
            self.context.note_line_number(line_number)

    def _add_express_id(self, subject: str, obj: Any) -> None:
        instance = self.context.get_or_create_instance(subject)
        try:
            line_number = parse_express_id(obj)
        except InvalidLiteral:
            self._warn("Invalid express id", subject=subject, value=str(obj))
            return
        instance.line_number = line_number
        instance.explicit_id = True
        self.context.note_line_number(line_number)

    def _add_double(self, subject: str, obj: Any) -> None:
        try:
            text = format_double(obj)
        except InvalidLiteral:
            self._warn("Invalid double value", subject=subject, value=str(obj))
            return
        if text is None:
            self._warn("Serializing non-finite number as 0.00", subject=subject, value=str(obj))
            text = NON_FINITE_REAL
        self.context.literals[subject] = text

    def _add_literal(self, subject: str, predicate: str, obj: Any) -> None:
        try:
            self.context.literals[subject] = LITERAL_FORMATTERS[predicate](obj)
        except InvalidLiteral:
            self._warn(f"Invalid {predicate[3:].lower()} value", subject=subject, value=str(obj))

    def _add_header(self, predicate: str, obj: Any) -> None:
        header = self.context.header
        value = str(obj)
        if predicate in HEADER_LISTS:
            getattr(header, predicate).append(value)
        elif predicate in HEADER_FIELDS:
            setattr(header, predicate, value)
        else:
            logger.debug("Ignoring document predicate", predicate=predicate)

    def _add_attribute(self, subject: str, predicate: str, obj: Any) -> None:
        position = self.schema.position(predicate)
        if position is None:
            self._warn("Attribute not declared by schema", subject=subject, attribute=predicate)
            return
        if isinstance(obj, Literal):
            self._warn("Literal used as attribute value", subject=subject, attribute=predicate)
            return
        instance = self.context.get_or_create_instance(subject)
        instance.set_attribute(position, obj, is_set=self.schema.is_set(predicate))
