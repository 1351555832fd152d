"""Value classification by recorded type.

A node that appears as an attribute value carries no tag saying what it is.
Its role is inferred from the type recorded for it during ingestion and the
static sets of the schema.
"""

from __future__ import annotations

from typing import Dict

from ifcschema.facts import LIST_SUFFIX, SchemaFactBase

from .model import ConversionContext, ValueKind

# Enumeration sentinel for an unset enumeration value
NULL_ENUM = "NULL"


class ValueClassifier:
    """Classify node keys into :class:`ValueKind` values."""

    def __init__(self, schema: SchemaFactBase, types: Dict[str, str]):
        self._schema = schema
        self._types = types

    @classmethod
    def for_context(cls, context: ConversionContext) -> "ValueClassifier":
        return cls(context.schema, context.types)

    def classify(self, key: str) -> ValueKind:
        type_name = self._types.get(key)

        if self._schema.is_entity(type_name):
            return ValueKind.INSTANCE
        if (
            key == NULL_ENUM
            or self._schema.is_enumeration_member(key)
            or self._schema.is_enumeration_rooted(type_name)
        ):
            return ValueKind.ENUMERATION
        if self.is_list_type(type_name):
            return ValueKind.LIST_CELL
        return ValueKind.PRIMITIVE

    def is_list_type(self, type_name: str | None) -> bool:
        if type_name is None:
            return False
        return self._schema.is_list_rooted(type_name) or type_name.endswith(LIST_SUFFIX)
