"""Deterministic serialization of compiled schema facts.

Compiling an ifcOWL ontology means parsing tens of megabytes of Turtle. The
compiled :class:`~ifcschema.facts.SchemaFactBase` is small, so it is cached as
JSON with stable ordering and reloaded on later conversions.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Union

import orjson

from .facts import Attribute, SchemaFactBase
from .versions import SchemaLoadError

# Bump when the cached layout changes
FACTS_FORMAT_VERSION = 1


def _sorted_names(names: Any) -> list[str]:
    return sorted(names)


def to_json_dict(facts: SchemaFactBase) -> Dict[str, Any]:
    """Convert compiled facts to a JSON-serializable dictionary.

    Every collection is sorted so that the same schema always produces the
    same bytes.
    """
    attributes = {}
    for name in sorted(facts.attributes):
        attr = facts.attributes[name]
        attributes[name] = {
            "domain": attr.domain,
            "range": attr.range,
            "position": attr.position,
            "is_set": attr.is_set,
            "is_list_or_array": attr.is_list_or_array,
            "is_optional": attr.is_optional,
        }

    return {
        "format_version": FACTS_FORMAT_VERSION,
        "label": facts.label,
        "schema_name": facts.schema_name,
        "attributes": attributes,
        "class_attributes": {k: facts.class_attributes[k] for k in sorted(facts.class_attributes)},
        "supertypes": {k: _sorted_names(v) for k, v in sorted(facts.supertypes.items())},
        "derived": {k: _sorted_names(v) for k, v in sorted(facts.derived.items())},
        "entities": _sorted_names(facts.entities),
        "enumeration_types": _sorted_names(facts.enumeration_types),
        "enumeration_members": _sorted_names(facts.enumeration_members),
        "list_types": _sorted_names(facts.list_types),
        "select_types": _sorted_names(facts.select_types),
    }


def from_json_dict(data: Dict[str, Any]) -> SchemaFactBase:
    """Rebuild compiled facts from their dictionary form.

    Raises:
        SchemaLoadError: If the layout is unknown or incomplete
    """
    if data.get("format_version") != FACTS_FORMAT_VERSION:
        raise SchemaLoadError(
            f"Unsupported compiled schema format: {data.get('format_version')}"
        )

    try:
        attributes = {
            name: Attribute(name=name, **fields)
            for name, fields in data["attributes"].items()
        }
        return SchemaFactBase(
            label=data["label"],
            schema_name=data["schema_name"],
            attributes=attributes,
            class_attributes=data["class_attributes"],
            supertypes=data["supertypes"],
            derived=data["derived"],
            entities=data["entities"],
            enumeration_types=data["enumeration_types"],
            enumeration_members=data["enumeration_members"],
            list_types=data["list_types"],
            select_types=data["select_types"],
        )
    except (KeyError, TypeError) as e:
        raise SchemaLoadError(f"Incomplete compiled schema: {e}") from e


def to_json_string(facts: SchemaFactBase, pretty: bool = False) -> str:
    """Convert compiled facts to a JSON string."""
    data = to_json_dict(facts)
    if pretty:
        return json.dumps(data, indent=2, ensure_ascii=False)
    return orjson.dumps(data).decode("utf-8")


def dump_facts(facts: SchemaFactBase, path: Union[str, Path]) -> None:
    """Write compiled facts to a JSON file."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "wb") as f:
        f.write(orjson.dumps(to_json_dict(facts)))
        f.write(b"\n")


def load_facts(path: Union[str, Path]) -> SchemaFactBase:
    """Load compiled facts from a JSON file.

    Raises:
        SchemaLoadError: If the file is missing or cannot be decoded
    """
    path = Path(path)

    if not path.exists():
        raise SchemaLoadError(f"Compiled schema not found: {path}")

    try:
        data = orjson.loads(path.read_bytes())
    except orjson.JSONDecodeError as e:
        raise SchemaLoadError(f"Failed to parse compiled schema {path}: {e}") from e

    return from_json_dict(data)
