"""Compiled schema facts for an ifcOWL ontology version.

This module defines the read-only fact base the converter queries while
building and encoding a model: attribute order per entity class, attribute
ranges and cardinality flags, and the static classification sets (entities,
enumerations, list types, SELECT types) computed once at schema load.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Optional

# Naming convention for schema-generated per-attribute list types
LIST_SUFFIX = "_List"


@dataclass(frozen=True)
class Attribute:
    """An explicit EXPRESS attribute, modelled as an ifcOWL object property."""

    name: str
    domain: str
    range: str
    position: int
    is_set: bool = False
    is_list_or_array: bool = False
    is_optional: bool = False


@dataclass
class SchemaFactBase:
    """Queryable facts about one ifcOWL schema version.

    All names are local names. ``class_attributes`` holds the full attribute
    order of each entity class, inherited attributes first.
    """

    label: str
    schema_name: str
    attributes: Dict[str, Attribute] = field(default_factory=dict)
    class_attributes: Dict[str, List[str]] = field(default_factory=dict)
    supertypes: Dict[str, FrozenSet[str]] = field(default_factory=dict)
    derived: Dict[str, FrozenSet[str]] = field(default_factory=dict)
    entities: FrozenSet[str] = frozenset()
    enumeration_types: FrozenSet[str] = frozenset()
    enumeration_members: FrozenSet[str] = frozenset()
    list_types: FrozenSet[str] = frozenset()
    select_types: FrozenSet[str] = frozenset()

    def __post_init__(self) -> None:
        """Normalize collections so callers may pass plain sets and lists."""
        self.entities = frozenset(self.entities)
        self.enumeration_types = frozenset(self.enumeration_types)
        self.enumeration_members = frozenset(self.enumeration_members)
        self.list_types = frozenset(self.list_types)
        self.select_types = frozenset(self.select_types)
        self.supertypes = {k: frozenset(v) for k, v in self.supertypes.items()}
        self.derived = {k: frozenset(v) for k, v in self.derived.items()}

    # Attribute queries

    def attribute_order(self, class_name: str) -> List[Attribute]:
        """Return the attributes of an entity class in STEP order."""
        names = self.class_attributes.get(class_name, [])
        return [self.attributes[name] for name in names]

    def position(self, name: str) -> Optional[int]:
        """Get the 0-based STEP position of an attribute, or None if unknown."""
        attribute = self.attributes.get(name)
        return attribute.position if attribute else None

    def range_of(self, name: str) -> Optional[str]:
        attribute = self.attributes.get(name)
        return attribute.range if attribute else None

    def is_set(self, name: str) -> bool:
        attribute = self.attributes.get(name)
        return bool(attribute and attribute.is_set)

    def is_list_or_array(self, name: str) -> bool:
        attribute = self.attributes.get(name)
        return bool(attribute and attribute.is_list_or_array)

    def is_optional(self, name: str) -> bool:
        attribute = self.attributes.get(name)
        return bool(attribute and attribute.is_optional)

    def is_derived(self, name: str, class_name: str) -> bool:
        """Check if the class itself redeclares the attribute as DERIVE."""
        return name in self.derived.get(class_name, frozenset())

    # Type queries

    def is_entity(self, type_name: Optional[str]) -> bool:
        return type_name in self.entities

    def is_enumeration_rooted(self, type_name: Optional[str]) -> bool:
        return type_name in self.enumeration_types

    def is_enumeration_member(self, key: str) -> bool:
        return key in self.enumeration_members

    def is_list_rooted(self, type_name: Optional[str]) -> bool:
        return type_name in self.list_types

    def is_direct_subtype_of_union(self, type_name: Optional[str]) -> bool:
        """Check if a type is declared directly under EXPRESS SELECT."""
        return type_name in self.select_types

    def is_subtype(self, type_name: Optional[str], ancestor: Optional[str]) -> bool:
        """Check if type_name is ancestor or one of its (transitive) subtypes."""
        if type_name is None or ancestor is None:
            return False
        if type_name == ancestor:
            return True
        return ancestor in self.supertypes.get(type_name, frozenset())

    def narrow_list_range(self, type_name: str) -> str:
        """Narrow a ``T_List`` range to its element type ``T``."""
        if type_name.endswith(LIST_SUFFIX):
            return type_name[: -len(LIST_SUFFIX)]
        return type_name

    def stats(self) -> Dict[str, int]:
        """Summarize the size of the compiled schema."""
        return {
            "entities": len(self.entities),
            "attributes": len(self.attributes),
            "enumeration_types": len(self.enumeration_types),
            "enumeration_members": len(self.enumeration_members),
            "list_types": len(self.list_types),
            "select_types": len(self.select_types),
        }
