"""ISO-10303-21 (STEP) encoding of a conversion context.

The encoder runs in two strictly sequential phases over the instance table:
missing express ids are assigned first, then every instance is written as a
``#id= CLASS(attr,...);`` line with attributes in schema order.
"""

from __future__ import annotations

import io
from typing import Any, BinaryIO, FrozenSet, List, Optional, Set

import structlog

from ifcschema.facts import Attribute

from .classify import NULL_ENUM, ValueClassifier
from .ingest import step_string
from .lists import ListResolver
from .model import AttributeValue, ConversionContext, Instance, ValueKind

logger = structlog.get_logger(__name__)

NEW_LINE = b"\n"
UNSET = "$"
DERIVED = "*"
EMPTY_AGGREGATE = "()"


class ConversionError(Exception):
    """Raised when the STEP output cannot be written."""

    pass


def _quote(text: Optional[str]) -> str:
    return step_string(text or "")


def _quote_list(items: List[str]) -> str:
    if not items:
        return "(" + _quote("") + ")"
    return "(" + ",".join(_quote(item) for item in items) + ")"


class StepEncoder:
    """Write a populated conversion context as STEP physical-file text."""

    def __init__(
        self,
        context: ConversionContext,
        resolver: Optional[ListResolver] = None,
        classifier: Optional[ValueClassifier] = None,
    ):
        self.context = context
        self.schema = context.schema
        self.resolver = resolver or ListResolver(context)
        self.classifier = classifier or ValueClassifier.for_context(context)

    def _warn(self, event: str, **context: Any) -> None:
        logger.warning(event, **context)
        self.context.report.add_warning(event, **context)

    def _error(self, event: str, **context: Any) -> None:
        logger.error(event, **context)
        self.context.report.add_error(event, **context)

    def _is_encodable(self, instance: Instance) -> bool:
        return self.schema.is_entity(instance.class_name)

    # Phase 1: express ids

    def finalize_ids(self) -> int:
        """Assign ``max + 1`` ids to instances without one, in insertion order.

        An id already taken by an earlier instance is replaced the same way,
        so every line number of the output is unique.

        Returns:
            Number of ids assigned
        """
        assigned = 0
        taken: Set[int] = set()
        for instance in self.context.instances.values():
            if not self._is_encodable(instance):
                continue
            previous = instance.line_number
            if previous is not None and previous not in taken:
                taken.add(previous)
                continue

            self.context.max_line_number += 1
            instance.line_number = self.context.max_line_number
            taken.add(instance.line_number)
            assigned += 1
            if previous is None:
                self._warn(
                    "Assigned express id to instance without one",
                    instance=instance.key,
                    line_number=instance.line_number,
                )
            else:
                self._warn(
                    "Reassigned duplicate express id",
                    instance=instance.key,
                    duplicate=previous,
                    line_number=instance.line_number,
                )

        self.context.report.assigned_ids += assigned
        return assigned

    # Phase 2: emission

    def encode(self, stream: BinaryIO) -> None:
        """Write the complete STEP file to a binary stream.

        Raises:
            ConversionError: If writing to the stream fails
        """
        self.finalize_ids()
        logger.info("Encoding STEP data", instances=len(self.context.instances))

        try:
            for line in self.header_lines():
                stream.write(line.encode("utf-8") + NEW_LINE)

            stream.write(b"DATA;" + NEW_LINE)
            for instance in self.context.instances.values():
                if not self._is_encodable(instance):
                    self._warn("Skipping instance without entity class", instance=instance.key)
                    continue
                stream.write(self.instance_line(instance).encode("utf-8") + NEW_LINE)
            stream.write(b"ENDSEC;" + NEW_LINE)
            stream.write(b"END-ISO-10303-21;" + NEW_LINE)
        except OSError as e:
            logger.error("STEP output failed", error=str(e))
            raise ConversionError(f"Failed to write STEP output: {e}") from e

    def encode_to_bytes(self) -> bytes:
        buffer = io.BytesIO()
        self.encode(buffer)
        return buffer.getvalue()

    def header_lines(self) -> List[str]:
        header = self.context.header
        if header.schema_identifiers:
            schemas = _quote_list(header.schema_identifiers)
        else:
            schemas = _quote_list([self.schema.schema_name])

        return [
            "ISO-10303-21;",
            "HEADER;",
            "FILE_DESCRIPTION("
            + _quote_list(header.description)
            + ","
            + _quote(header.implementation_level)
            + ");",
            "FILE_NAME("
            + ",".join([
                _quote(header.name),
                _quote(header.time_stamp),
                _quote_list(header.author),
                _quote_list(header.organization),
                _quote(header.preprocessor_version),
                _quote(header.originating_system),
                _quote(header.authorization),
            ])
            + ");",
            "FILE_SCHEMA(" + schemas + ");",
            "ENDSEC;",
        ]

    def instance_line(self, instance: Instance) -> str:
        """Encode one instance as a DATA section line."""
        encoded = [
            self.encode_attribute(instance, attribute)
            for attribute in self.schema.attribute_order(instance.class_name)
        ]
        return f"#{instance.line_number}= {instance.class_name.upper()}({','.join(encoded)});"

    def encode_attribute(self, instance: Instance, attribute: Attribute) -> str:
        value: Optional[AttributeValue] = instance.attributes.get(attribute.position)
        if value is None:
            return self.encode_null(instance, attribute)
        if isinstance(value, list):
            return "(" + ",".join(self.encode_value(item, attribute.range) for item in value) + ")"
        return self.encode_value(value, attribute.range)

    def encode_null(self, instance: Instance, attribute: Attribute) -> str:
        """Choose the null form of an attribute that was never observed."""
        if (attribute.is_set or attribute.is_list_or_array) and not attribute.is_optional:
            return EMPTY_AGGREGATE
        if self.schema.is_derived(attribute.name, instance.class_name):
            return DERIVED
        return UNSET

    def encode_value(self, key: str, range_name: str) -> str:
        """Encode a single value against the declared range of its slot."""
        kind = self.classifier.classify(key)

        if kind is ValueKind.INSTANCE:
            return self.encode_reference(key)
        if kind is ValueKind.ENUMERATION:
            return self.encode_enumeration(key)
        if kind is ValueKind.LIST_CELL:
            return self.encode_list(key, range_name)

        if self.context.types.get(key) == range_name:
            return self.literal(key)
        if self.schema.is_direct_subtype_of_union(range_name):
            return self.encode_embedded(key)
        return self.literal(key)

    def encode_reference(self, key: str) -> str:
        instance = self.context.instances.get(key)
        if instance is None or instance.line_number is None:
            self._warn("Reference to instance without express id", instance=key)
            return UNSET
        return f"#{instance.line_number}"

    def encode_enumeration(self, key: str) -> str:
        if key == NULL_ENUM:
            return UNSET
        return f".{key}."

    def literal(self, key: str) -> str:
        """Raw literal text of a node, or ``$`` if none was recorded."""
        return self.context.literals.get(key, UNSET)

    def encode_embedded(self, key: str) -> str:
        """Encode a literal with an explicit type wrapper, e.g. ``IFCLABEL('x')``."""
        type_name = self.context.types.get(key)
        if type_name is None:
            return self.literal(key)
        return f"{type_name.upper()}({self.literal(key)})"

    def encode_list(
        self,
        key: str,
        range_name: str,
        embedded: bool = False,
        enclosing: FrozenSet[str] = frozenset(),
    ) -> str:
        """Encode an OWL list as a parenthesized aggregate.

        Args:
            key: Head cell of the list
            range_name: Declared range the list is written against
            embedded: True inside a list already wrapped with its type name
            enclosing: Head cells of the lists this one is nested in

        Returns:
            STEP aggregate text, or ``$`` for a list nested in itself
        """
        if key in enclosing:
            self._error("List is nested in itself", head=key)
            return UNSET
        enclosing = enclosing | {key}

        values = self.resolver.resolve(key)
        if not values:
            return EMPTY_AGGREGATE

        list_type = self.context.types.get(key)
        typed = self.schema.is_direct_subtype_of_union(range_name) and self.schema.is_subtype(
            list_type, range_name
        )
        element_range = self.schema.narrow_list_range(range_name)

        encoded = []
        for value in values:
            if value is None:
                encoded.append(UNSET)
                continue

            kind = self.classifier.classify(value)
            if kind is ValueKind.INSTANCE:
                encoded.append(self.encode_reference(value))
            elif kind is ValueKind.LIST_CELL:
                encoded.append(self.encode_list(value, element_range, embedded or typed, enclosing))
            elif kind is ValueKind.ENUMERATION:
                encoded.append(self.encode_enumeration(value))
            else:
                encoded.append(self._encode_list_primitive(value, element_range, list_type, embedded or typed))

        text = "(" + ",".join(encoded) + ")"
        if typed:
            return f"{list_type.upper()}({text})"
        return text

    def _encode_list_primitive(
        self, key: str, element_range: str, list_type: Optional[str], embedded: bool
    ) -> str:
        type_name = self.context.types.get(key)
        if type_name == element_range:
            return self.literal(key)
        if (
            self.schema.is_direct_subtype_of_union(element_range)
            and not embedded
            and not self.schema.is_subtype(list_type, f"{type_name}_List")
        ):
            return self.encode_embedded(key)
        return self.literal(key)
