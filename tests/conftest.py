"""Pytest configuration and shared fixtures.

Provides a miniature ifcOWL schema, both as Turtle resources and as an
equivalent hand-built fact base, plus small ifcOWL data graphs.
"""

from __future__ import annotations

import tempfile
from pathlib import Path
from typing import Callable, Generator, Iterable, List

import pytest
import structlog

from ifcschema.facts import Attribute, SchemaFactBase
from kernel.edges import Edge
from kernel.ingest import ObjectModelBuilder
from kernel.model import ConversionContext


def _configure_test_logging() -> structlog.testing.LogCapture:
    capture = structlog.testing.LogCapture()
    structlog.configure(
        processors=[structlog.contextvars.merge_contextvars, capture],
        logger_factory=structlog.testing.CapturingLoggerFactory(),
        cache_logger_on_first_use=False,
    )
    return capture


# Configure test logging
_configure_test_logging()


@pytest.fixture(autouse=True)
def log_capture() -> structlog.testing.LogCapture:
    """Capture structlog events of a single test."""
    return _configure_test_logging()


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


IFC4_ONTOLOGY = "http://standards.buildingsmart.org/IFC/DEV/IFC4/FINAL/OWL"

LIST_TTL = """\
@prefix list: <https://w3id.org/list#> .
@prefix owl: <http://www.w3.org/2002/07/owl#> .
@prefix rdfs: <http://www.w3.org/2000/01/rdf-schema#> .

list:OWLList a owl:Class .
list:hasContents a owl:ObjectProperty ; rdfs:domain list:OWLList .
list:hasNext a owl:ObjectProperty ; rdfs:domain list:OWLList ; rdfs:range list:OWLList .
"""

EXPRESS_TTL = """\
@prefix expr: <https://w3id.org/express#> .
@prefix owl: <http://www.w3.org/2002/07/owl#> .
@prefix rdfs: <http://www.w3.org/2000/01/rdf-schema#> .
@prefix xsd: <http://www.w3.org/2001/XMLSchema#> .

expr:ENUMERATION a owl:Class .
expr:SELECT a owl:Class .
expr:STRING a owl:Class .
expr:REAL a owl:Class .
expr:INTEGER a owl:Class .
expr:BOOLEAN a owl:Class .
expr:LOGICAL a owl:Class .
expr:TRUE a expr:LOGICAL .
expr:FALSE a expr:LOGICAL .
expr:UNKNOWN a expr:LOGICAL .

expr:hasString a owl:DatatypeProperty ; rdfs:domain expr:STRING ; rdfs:range xsd:string .
expr:hasDouble a owl:DatatypeProperty ; rdfs:domain expr:REAL ; rdfs:range xsd:double .
expr:hasInteger a owl:DatatypeProperty ; rdfs:domain expr:INTEGER ; rdfs:range xsd:integer .
expr:hasBoolean a owl:DatatypeProperty ; rdfs:domain expr:BOOLEAN ; rdfs:range xsd:boolean .
expr:hasLogical a owl:ObjectProperty ; rdfs:domain expr:LOGICAL ; rdfs:range expr:LOGICAL .
"""

IFC4_TTL = """\
@prefix ifc: <http://standards.buildingsmart.org/IFC/DEV/IFC4/FINAL/OWL#> .
@prefix expr: <https://w3id.org/express#> .
@prefix list: <https://w3id.org/list#> .
@prefix owl: <http://www.w3.org/2002/07/owl#> .
@prefix rdfs: <http://www.w3.org/2000/01/rdf-schema#> .

<http://standards.buildingsmart.org/IFC/DEV/IFC4/FINAL/OWL> a owl:Ontology .

ifc:IfcRoot a owl:Class .
ifc:IfcWall a owl:Class ; rdfs:subClassOf ifc:IfcRoot .
ifc:IfcStyle a owl:Class ; rdfs:subClassOf ifc:IfcRoot .
ifc:IfcPropertySingleValue a owl:Class ; rdfs:subClassOf ifc:IfcRoot .
ifc:IfcCartesianPoint a owl:Class .
ifc:IfcIndexedPolyCurve a owl:Class .
ifc:IfcCartesianPointList a owl:Class .

ifc:IfcValue a owl:Class ; rdfs:subClassOf expr:SELECT .
ifc:IfcSegmentIndexSelect a owl:Class ; rdfs:subClassOf expr:SELECT .
ifc:IfcLabel a owl:Class ; rdfs:subClassOf expr:STRING, ifc:IfcValue .
ifc:IfcText a owl:Class ; rdfs:subClassOf expr:STRING, ifc:IfcValue .
ifc:IfcLengthMeasure a owl:Class ; rdfs:subClassOf expr:REAL .
ifc:IfcPositiveInteger a owl:Class ; rdfs:subClassOf expr:INTEGER .
ifc:IfcDimensionCount a owl:Class ; rdfs:subClassOf expr:INTEGER .
ifc:IfcBoolean a owl:Class ; rdfs:subClassOf expr:BOOLEAN .

ifc:IfcColourEnum a owl:Class ; rdfs:subClassOf expr:ENUMERATION .
ifc:RED a ifc:IfcColourEnum, owl:NamedIndividual .
ifc:GREEN a ifc:IfcColourEnum, owl:NamedIndividual .

ifc:IfcLengthMeasure_List a owl:Class ; rdfs:subClassOf list:OWLList .
ifc:IfcLengthMeasure_List_List a owl:Class ; rdfs:subClassOf list:OWLList .
ifc:IfcPositiveInteger_List a owl:Class ; rdfs:subClassOf list:OWLList .
ifc:IfcLineIndex a owl:Class ; rdfs:subClassOf ifc:IfcPositiveInteger_List, ifc:IfcSegmentIndexSelect .

ifc:name_IfcRoot a owl:ObjectProperty ; rdfs:domain ifc:IfcRoot ; rdfs:range ifc:IfcLabel .
ifc:description_IfcRoot a owl:ObjectProperty ; rdfs:domain ifc:IfcRoot ; rdfs:range ifc:IfcText .
ifc:connectedTo_IfcWall a owl:ObjectProperty ; rdfs:domain ifc:IfcWall ; rdfs:range ifc:IfcWall .
ifc:colour_IfcStyle a owl:ObjectProperty ; rdfs:domain ifc:IfcStyle ; rdfs:range ifc:IfcColourEnum .
ifc:tags_IfcStyle a owl:ObjectProperty ; rdfs:domain ifc:IfcStyle ; rdfs:range ifc:IfcLabel .
ifc:nominalValue_IfcPropertySingleValue a owl:ObjectProperty ;
    rdfs:domain ifc:IfcPropertySingleValue ; rdfs:range ifc:IfcValue .
ifc:coordinates_IfcCartesianPoint a owl:ObjectProperty ;
    rdfs:domain ifc:IfcCartesianPoint ; rdfs:range ifc:IfcLengthMeasure_List .
ifc:dim_IfcCartesianPoint a owl:ObjectProperty ;
    rdfs:domain ifc:IfcCartesianPoint ; rdfs:range ifc:IfcDimensionCount .
ifc:segment_IfcIndexedPolyCurve a owl:ObjectProperty ;
    rdfs:domain ifc:IfcIndexedPolyCurve ; rdfs:range ifc:IfcSegmentIndexSelect .
ifc:closed_IfcIndexedPolyCurve a owl:ObjectProperty ;
    rdfs:domain ifc:IfcIndexedPolyCurve ; rdfs:range ifc:IfcBoolean .
ifc:coordList_IfcCartesianPointList a owl:ObjectProperty ;
    rdfs:domain ifc:IfcCartesianPointList ; rdfs:range ifc:IfcLengthMeasure_List_List .
"""

IFC4_SUPPLEMENT_TTL = """\
@prefix ifc: <http://standards.buildingsmart.org/IFC/DEV/IFC4/FINAL/OWL#> .
@prefix supp: <https://w3id.org/ifcowl/supplement#> .

ifc:IfcRoot supp:isIfcEntity true .
ifc:IfcWall supp:isIfcEntity true .
ifc:IfcStyle supp:isIfcEntity true .
ifc:IfcPropertySingleValue supp:isIfcEntity true .
ifc:IfcCartesianPoint supp:isIfcEntity true ;
    supp:hasDeriveAttribute ifc:dim_IfcCartesianPoint .
ifc:IfcIndexedPolyCurve supp:isIfcEntity true .
ifc:IfcCartesianPointList supp:isIfcEntity true .

ifc:description_IfcRoot supp:attributeIndex 2 ; supp:isOptional true .
ifc:name_IfcRoot supp:attributeIndex 1 .
ifc:connectedTo_IfcWall supp:attributeIndex 1 ; supp:isOptional true .
ifc:colour_IfcStyle supp:attributeIndex 1 .
ifc:tags_IfcStyle supp:attributeIndex 2 ; supp:isSet true .
ifc:nominalValue_IfcPropertySingleValue supp:attributeIndex 1 ; supp:isOptional true .
ifc:coordinates_IfcCartesianPoint supp:attributeIndex 1 ; supp:isListOrArray true .
ifc:dim_IfcCartesianPoint supp:attributeIndex 2 .
ifc:segment_IfcIndexedPolyCurve supp:attributeIndex 1 ; supp:isOptional true .
ifc:closed_IfcIndexedPolyCurve supp:attributeIndex 2 ; supp:isOptional true .
ifc:coordList_IfcCartesianPointList supp:attributeIndex 1 ; supp:isListOrArray true .
"""

DATA_PREFIXES = f"""\
@prefix inst: <http://example.org/model/> .
@prefix ifc: <{IFC4_ONTOLOGY}#> .
@prefix expr: <https://w3id.org/express#> .
@prefix list: <https://w3id.org/list#> .
@prefix hdr: <http://example.org/header#> .
@prefix owl: <http://www.w3.org/2002/07/owl#> .
"""

WALL_MODEL_TTL = DATA_PREFIXES + f"""
inst: a owl:Ontology ;
    owl:imports <{IFC4_ONTOLOGY}> .

inst:IfcWall_7 a ifc:IfcWall .

inst:IfcWall_12 a ifc:IfcWall ;
    ifc:name_IfcRoot inst:IfcLabel_1 ;
    ifc:connectedTo_IfcWall inst:IfcWall_7 .

inst:IfcLabel_1 a ifc:IfcLabel ;
    expr:hasString "Wall-1" .
"""

WALL_MODEL_STEP = """\
ISO-10303-21;
HEADER;
FILE_DESCRIPTION((''),'');
FILE_NAME('','',(''),(''),'','','');
FILE_SCHEMA(('IFC4'));
ENDSEC;
DATA;
#7= IFCWALL($,$,$);
#12= IFCWALL('Wall-1',$,#7);
ENDSEC;
END-ISO-10303-21;
"""


def write_schema_dir(target: Path) -> Path:
    """Write the miniature IFC4 schema resources into a directory."""
    target.mkdir(parents=True, exist_ok=True)
    (target / "list.ttl").write_text(LIST_TTL, encoding="utf-8")
    (target / "express.ttl").write_text(EXPRESS_TTL, encoding="utf-8")
    (target / "IFC4.ttl").write_text(IFC4_TTL, encoding="utf-8")
    (target / "IFC4_Schema_supplement.ttl").write_text(IFC4_SUPPLEMENT_TTL, encoding="utf-8")
    return target


@pytest.fixture
def schema_dir(temp_dir: Path) -> Path:
    """Provide a directory holding the miniature IFC4 schema resources."""
    return write_schema_dir(temp_dir / "schemas")


@pytest.fixture
def wall_model_ttl() -> str:
    """Provide a model with wall #12 named 'Wall-1' and connected to wall #7."""
    return WALL_MODEL_TTL


@pytest.fixture
def wall_model_step() -> str:
    """Provide the STEP text the wall model converts to."""
    return WALL_MODEL_STEP


@pytest.fixture
def data_prefixes() -> str:
    """Provide the Turtle prefixes shared by data fixtures."""
    return DATA_PREFIXES


@pytest.fixture
def wall_model_file(temp_dir: Path) -> Path:
    """Create the two-wall ifcOWL model as a Turtle file."""
    path = temp_dir / "walls.ttl"
    path.write_text(WALL_MODEL_TTL, encoding="utf-8")
    return path


def _attributes(*attributes: Attribute) -> dict:
    return {attribute.name: attribute for attribute in attributes}


@pytest.fixture
def facts() -> SchemaFactBase:
    """Provide the fact base the miniature IFC4 schema compiles to."""
    root = ["name_IfcRoot", "description_IfcRoot"]
    return SchemaFactBase(
        label="IFC4",
        schema_name="IFC4",
        attributes=_attributes(
            Attribute("name_IfcRoot", "IfcRoot", "IfcLabel", 0),
            Attribute("description_IfcRoot", "IfcRoot", "IfcText", 1, is_optional=True),
            Attribute("connectedTo_IfcWall", "IfcWall", "IfcWall", 2, is_optional=True),
            Attribute("colour_IfcStyle", "IfcStyle", "IfcColourEnum", 2),
            Attribute("tags_IfcStyle", "IfcStyle", "IfcLabel", 3, is_set=True),
            Attribute(
                "nominalValue_IfcPropertySingleValue",
                "IfcPropertySingleValue",
                "IfcValue",
                2,
                is_optional=True,
            ),
            Attribute(
                "coordinates_IfcCartesianPoint",
                "IfcCartesianPoint",
                "IfcLengthMeasure_List",
                0,
                is_list_or_array=True,
            ),
            Attribute("dim_IfcCartesianPoint", "IfcCartesianPoint", "IfcDimensionCount", 1),
            Attribute(
                "segment_IfcIndexedPolyCurve",
                "IfcIndexedPolyCurve",
                "IfcSegmentIndexSelect",
                0,
                is_optional=True,
            ),
            Attribute("closed_IfcIndexedPolyCurve", "IfcIndexedPolyCurve", "IfcBoolean", 1, is_optional=True),
            Attribute(
                "coordList_IfcCartesianPointList",
                "IfcCartesianPointList",
                "IfcLengthMeasure_List_List",
                0,
                is_list_or_array=True,
            ),
        ),
        class_attributes={
            "IfcRoot": root,
            "IfcWall": root + ["connectedTo_IfcWall"],
            "IfcStyle": root + ["colour_IfcStyle", "tags_IfcStyle"],
            "IfcPropertySingleValue": root + ["nominalValue_IfcPropertySingleValue"],
            "IfcCartesianPoint": ["coordinates_IfcCartesianPoint", "dim_IfcCartesianPoint"],
            "IfcIndexedPolyCurve": ["segment_IfcIndexedPolyCurve", "closed_IfcIndexedPolyCurve"],
            "IfcCartesianPointList": ["coordList_IfcCartesianPointList"],
        },
        supertypes={
            "IfcWall": {"IfcRoot"},
            "IfcStyle": {"IfcRoot"},
            "IfcPropertySingleValue": {"IfcRoot"},
            "IfcValue": {"SELECT"},
            "IfcSegmentIndexSelect": {"SELECT"},
            "IfcLabel": {"STRING", "IfcValue", "SELECT"},
            "IfcText": {"STRING", "IfcValue", "SELECT"},
            "IfcLengthMeasure": {"REAL"},
            "IfcPositiveInteger": {"INTEGER"},
            "IfcDimensionCount": {"INTEGER"},
            "IfcBoolean": {"BOOLEAN"},
            "IfcColourEnum": {"ENUMERATION"},
            "IfcLengthMeasure_List": {"OWLList"},
            "IfcLengthMeasure_List_List": {"OWLList"},
            "IfcPositiveInteger_List": {"OWLList"},
            "IfcLineIndex": {"IfcPositiveInteger_List", "OWLList", "IfcSegmentIndexSelect", "SELECT"},
        },
        derived={"IfcCartesianPoint": {"dim_IfcCartesianPoint"}},
        entities={
            "IfcRoot", "IfcWall", "IfcStyle", "IfcPropertySingleValue",
            "IfcCartesianPoint", "IfcIndexedPolyCurve", "IfcCartesianPointList",
        },
        enumeration_types={"IfcColourEnum"},
        enumeration_members={"RED", "GREEN"},
        list_types={
            "OWLList", "IfcLengthMeasure_List", "IfcLengthMeasure_List_List",
            "IfcPositiveInteger_List", "IfcLineIndex",
        },
        select_types={"IfcValue", "IfcSegmentIndexSelect"},
    )


@pytest.fixture
def context(facts: SchemaFactBase) -> ConversionContext:
    """Provide an empty conversion context over the miniature schema."""
    return ConversionContext(schema=facts)


@pytest.fixture
def make_context(facts: SchemaFactBase) -> Callable[[Iterable[tuple]], ConversionContext]:
    """Provide a factory ingesting (subject, predicate, object) tuples into a fresh context."""

    def build(edges: Iterable[tuple]) -> ConversionContext:
        context = ConversionContext(schema=facts)
        edge_list: List[Edge] = [Edge(*edge) for edge in edges]
        ObjectModelBuilder(context).consume(edge_list)
        return context

    return build
