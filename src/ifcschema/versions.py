"""Known ifcOWL ontology versions and schema version selection.

A data graph declares the ifcOWL ontology it was written against with an
``owl:imports`` statement on the document node. This module maps that
ontology IRI to a version entry, which in turn names the schema resources to
load and the EXPRESS schema identifier written to ``FILE_SCHEMA``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional


class IfcVersionError(Exception):
    """Raised when no applicable ifcOWL schema version can be determined."""

    pass


class SchemaLoadError(IfcVersionError):
    """Raised when a schema resource for a known version cannot be loaded."""

    pass


@dataclass(frozen=True)
class IfcVersion:
    """An ifcOWL ontology release."""

    label: str
    ontology_iri: str
    schema_name: str

    @property
    def namespace(self) -> str:
        """Namespace of the ontology's classes and properties."""
        return self.ontology_iri + "#"


KNOWN_VERSIONS: tuple[IfcVersion, ...] = (
    IfcVersion(
        "IFC2X3_TC1",
        "http://standards.buildingsmart.org/IFC/DEV/IFC2x3/TC1/OWL",
        "IFC2X3",
    ),
    IfcVersion(
        "IFC2X3_Final",
        "http://standards.buildingsmart.org/IFC/DEV/IFC2x3/FINAL/OWL",
        "IFC2X3",
    ),
    IfcVersion(
        "IFC4",
        "http://standards.buildingsmart.org/IFC/DEV/IFC4/FINAL/OWL",
        "IFC4",
    ),
    IfcVersion(
        "IFC4_ADD1",
        "http://standards.buildingsmart.org/IFC/DEV/IFC4/ADD1/OWL",
        "IFC4",
    ),
    IfcVersion(
        "IFC4_ADD2",
        "http://standards.buildingsmart.org/IFC/DEV/IFC4/ADD2/OWL",
        "IFC4",
    ),
    IfcVersion(
        "IFC4_ADD2_TC1",
        "https://standards.buildingsmart.org/IFC/DEV/IFC4/ADD2_TC1/OWL",
        "IFC4",
    ),
    IfcVersion(
        "IFC4x1",
        "http://standards.buildingsmart.org/IFC/DEV/IFC4_1/OWL",
        "IFC4X1",
    ),
    IfcVersion(
        "IFC4x3_RC1",
        "http://standards.buildingsmart.org/IFC/DEV/IFC4_3/RC1/OWL",
        "IFC4X3_RC1",
    ),
)


def _normalize_iri(iri: str) -> str:
    return iri.rstrip("#/")


_BY_ONTOLOGY: Dict[str, IfcVersion] = {
    _normalize_iri(version.ontology_iri): version for version in KNOWN_VERSIONS
}
_BY_LABEL: Dict[str, IfcVersion] = {
    version.label.upper(): version for version in KNOWN_VERSIONS
}


def version_for_ontology(iri: str) -> Optional[IfcVersion]:
    """Look up a version by its ontology IRI (trailing '#' or '/' ignored)."""
    return _BY_ONTOLOGY.get(_normalize_iri(iri))


def get_version(label: str) -> IfcVersion:
    """Look up a version by label, case-insensitively.

    Raises:
        IfcVersionError: If the label is not a known ifcOWL version
    """
    version = _BY_LABEL.get(label.upper())
    if version is None:
        known = ", ".join(v.label for v in KNOWN_VERSIONS)
        raise IfcVersionError(f"Unknown ifcOWL version: {label} (known: {known})")
    return version


def select_schema_version(imports: Iterable[str]) -> IfcVersion:
    """Select the schema version from the ontology IRIs a model imports.

    The last declared import wins.

    Args:
        imports: Ontology IRIs in declaration order

    Returns:
        The matching version entry

    Raises:
        IfcVersionError: If nothing is imported or the import is unknown
    """
    declared: List[str] = list(imports)
    if not declared:
        raise IfcVersionError("The ifcOWL model did not import an ifcOWL ontology")

    ontology = declared[-1]
    version = version_for_ontology(ontology)
    if version is None:
        raise IfcVersionError(f"Cannot determine required IFC version for ontology: {ontology}")
    return version
