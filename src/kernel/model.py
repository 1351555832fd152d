"""In-memory object model of one ifcOWL → STEP conversion.

Everything a conversion learns from the edge stream lives in a single
:class:`ConversionContext`, which is created at the start of a conversion,
passed explicitly to every component, and cleared at the end.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Union

from ifcschema.facts import SchemaFactBase

from .report import ConversionReport

# A slot holds one node key, or several for set-valued attributes
AttributeValue = Union[str, List[str]]


class ValueKind(Enum):
    """Role a node plays when it appears as an attribute value."""

    INSTANCE = "instance"
    ENUMERATION = "enumeration"
    LIST_CELL = "list_cell"
    PRIMITIVE = "primitive"


@dataclass
class Instance:
    """One schema-typed entity instance, later one ``#id=`` line."""

    key: str
    class_name: Optional[str] = None
    line_number: Optional[int] = None
    explicit_id: bool = False
    attributes: Dict[int, AttributeValue] = field(default_factory=dict)

    def set_attribute(self, position: int, value: str, is_set: bool = False) -> None:
        """Attach a value, promoting the slot to a sequence on repeats."""
        current = self.attributes.get(position)
        if current is None:
            self.attributes[position] = [value] if is_set else value
        elif isinstance(current, list):
            current.append(value)
        else:
            self.attributes[position] = [current, value]


@dataclass
class Header:
    """STEP header fields taken from the document node."""

    description: List[str] = field(default_factory=list)
    implementation_level: Optional[str] = None
    name: Optional[str] = None
    time_stamp: Optional[str] = None
    author: List[str] = field(default_factory=list)
    organization: List[str] = field(default_factory=list)
    preprocessor_version: Optional[str] = None
    originating_system: Optional[str] = None
    authorization: Optional[str] = None
    schema_identifiers: List[str] = field(default_factory=list)


@dataclass
class ConversionContext:
    """Conversion-scoped tables shared by ingestion, list resolution and encoding."""

    schema: SchemaFactBase
    instances: Dict[str, Instance] = field(default_factory=dict)
    types: Dict[str, str] = field(default_factory=dict)
    literals: Dict[str, str] = field(default_factory=dict)
    contents: Dict[str, List[str]] = field(default_factory=dict)
    next_cells: Dict[str, str] = field(default_factory=dict)
    header: Header = field(default_factory=Header)
    max_line_number: int = 0
    report: ConversionReport = field(default_factory=ConversionReport)

    def __post_init__(self) -> None:
        if not self.report.schema_version:
            self.report.schema_version = self.schema.label

    def get_or_create_instance(self, key: str) -> Instance:
        """Fetch an instance record, creating it in first-encounter order."""
        instance = self.instances.get(key)
        if instance is None:
            instance = Instance(key=key)
            self.instances[key] = instance
        return instance

    def note_line_number(self, line_number: int) -> None:
        self.max_line_number = max(self.max_line_number, line_number)

    def clear(self) -> None:
        """Release all model state; the report is kept."""
        self.instances.clear()
        self.types.clear()
        self.literals.clear()
        self.contents.clear()
        self.next_cells.clear()
        self.header = Header()
        self.max_line_number = 0
