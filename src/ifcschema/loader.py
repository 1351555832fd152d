"""ifcOWL schema loading and compilation.

Reads the ifcOWL ontology of one version together with its schema supplement
and the shared EXPRESS and list vocabularies, then compiles the facts the
converter needs into a :class:`~ifcschema.facts.SchemaFactBase`.
"""

from __future__ import annotations

from collections import defaultdict
from pathlib import Path
from typing import Dict, List, Optional, Set, Union

import structlog
from rdflib import Graph, URIRef
from rdflib.namespace import RDF, RDFS

from . import vocabulary as voc
from .facts import Attribute, SchemaFactBase
from .serialize import dump_facts, load_facts
from .versions import IfcVersion, SchemaLoadError

logger = structlog.get_logger(__name__)

# Attributes without an explicit index sort after indexed ones
_UNINDEXED = 1 << 30


def schema_resources(version: IfcVersion) -> List[str]:
    """File names that make up the schema of a version, in load order."""
    return [
        "list.ttl",
        "express.ttl",
        f"{version.label}.ttl",
        f"{version.label}_Schema_supplement.ttl",
    ]


def cache_path(version: IfcVersion, cache_dir: Union[str, Path]) -> Path:
    return Path(cache_dir) / f"{version.label}.facts.json"


def _flagged(graph: Graph, predicate: URIRef) -> Set[str]:
    """Local names of subjects carrying a true boolean flag."""
    names = set()
    for subject, value in graph.subject_objects(predicate):
        if value.toPython() is True:
            names.add(voc.local_name(subject))
    return names


def _ancestors(graph: Graph) -> Dict[URIRef, Set[URIRef]]:
    """Transitive named superclasses of every named class with a superclass."""
    result: Dict[URIRef, Set[URIRef]] = {}
    for cls in set(graph.subjects(RDFS.subClassOf, None)):
        if not isinstance(cls, URIRef):
            continue
        result[cls] = {
            parent
            for parent in graph.transitive_objects(cls, RDFS.subClassOf)
            if isinstance(parent, URIRef) and parent != cls
        }
    return result


def _parent_entity(graph: Graph, cls: URIRef, entities: Set[str]) -> Optional[URIRef]:
    for parent in graph.objects(cls, RDFS.subClassOf):
        if isinstance(parent, URIRef) and voc.local_name(parent) in entities:
            return parent
    return None


def compile_schema(graph: Graph, version: IfcVersion) -> SchemaFactBase:
    """Compile an ifcOWL schema graph into a fact base.

    Args:
        graph: Graph holding the ontology, supplement and vocabularies
        version: The version the graph belongs to

    Returns:
        SchemaFactBase with all static classification sets precomputed
    """
    ancestors = _ancestors(graph)

    entities = _flagged(graph, voc.IS_IFC_ENTITY)
    entity_iris: Dict[str, URIRef] = {}
    for subject in graph.subjects(voc.IS_IFC_ENTITY, None):
        if isinstance(subject, URIRef) and voc.local_name(subject) in entities:
            entity_iris[voc.local_name(subject)] = subject

    enumeration_iris = {
        cls for cls, parents in ancestors.items() if voc.ENUMERATION in parents
    }
    enumeration_types = {voc.local_name(cls) for cls in enumeration_iris}
    enumeration_members = set()
    for subject, cls in graph.subject_objects(RDF.type):
        if cls == voc.ENUMERATION or cls in enumeration_iris:
            enumeration_members.add(voc.local_name(subject))

    list_types = {voc.local_name(voc.OWL_LIST)}
    list_types.update(
        voc.local_name(cls) for cls, parents in ancestors.items() if voc.OWL_LIST in parents
    )
    select_types = {
        voc.local_name(cls)
        for cls in graph.subjects(RDFS.subClassOf, voc.SELECT)
        if isinstance(cls, URIRef)
    }

    # Explicit attributes declared on each entity, in supplement order
    set_attrs = _flagged(graph, voc.IS_SET)
    list_attrs = _flagged(graph, voc.IS_LIST_OR_ARRAY)
    optional_attrs = _flagged(graph, voc.IS_OPTIONAL)

    own: Dict[str, List[tuple]] = defaultdict(list)
    ranges: Dict[str, str] = {}
    for prop, domain in graph.subject_objects(RDFS.domain):
        if not isinstance(domain, URIRef) or voc.local_name(domain) not in entities:
            continue
        name = voc.local_name(prop)
        if name in ranges:
            logger.warning("Attribute declared on several domains", attribute=name)
            continue
        range_node = graph.value(prop, RDFS.range)
        ranges[name] = voc.local_name(range_node) if isinstance(range_node, URIRef) else ""
        index = graph.value(prop, voc.ATTRIBUTE_INDEX)
        order = int(index.toPython()) if index is not None else _UNINDEXED
        own[voc.local_name(domain)].append((order, name))

    class_attributes: Dict[str, List[str]] = {}

    def attribute_chain(name: str, visiting: Set[str]) -> List[str]:
        if name in class_attributes:
            return class_attributes[name]
        if name in visiting:
            raise SchemaLoadError(f"Cyclic entity inheritance at {name}")
        visiting.add(name)
        parent = _parent_entity(graph, entity_iris[name], entities)
        chain = attribute_chain(voc.local_name(parent), visiting) if parent is not None else []
        chain = chain + [attr for _, attr in sorted(own.get(name, []))]
        class_attributes[name] = chain
        return chain

    for name in entity_iris:
        attribute_chain(name, set())

    attributes: Dict[str, Attribute] = {}
    for domain, declared in own.items():
        order = class_attributes[domain]
        for _, name in declared:
            attributes[name] = Attribute(
                name=name,
                domain=domain,
                range=ranges[name],
                position=order.index(name),
                is_set=name in set_attrs,
                is_list_or_array=name in list_attrs,
                is_optional=name in optional_attrs,
            )

    derived: Dict[str, Set[str]] = defaultdict(set)
    for cls, prop in graph.subject_objects(voc.HAS_DERIVE_ATTRIBUTE):
        derived[voc.local_name(cls)].add(voc.local_name(prop))

    supertypes = {
        voc.local_name(cls): {voc.local_name(parent) for parent in parents}
        for cls, parents in ancestors.items()
        if parents
    }

    facts = SchemaFactBase(
        label=version.label,
        schema_name=version.schema_name,
        attributes=attributes,
        class_attributes=class_attributes,
        supertypes=supertypes,
        derived=derived,
        entities=entities,
        enumeration_types=enumeration_types,
        enumeration_members=enumeration_members,
        list_types=list_types,
        select_types=select_types,
    )
    logger.info("Compiled ifcOWL schema", version=version.label, **facts.stats())
    return facts


def read_schema_graph(version: IfcVersion, schema_dir: Union[str, Path]) -> Graph:
    """Parse every schema resource of a version into one graph.

    Raises:
        SchemaLoadError: If a resource is missing or cannot be parsed
    """
    schema_dir = Path(schema_dir)
    graph = Graph()
    for name in schema_resources(version):
        path = schema_dir / name
        if not path.is_file():
            raise SchemaLoadError(f"Schema resource not found: {path}")
        logger.debug("Reading schema resource", file=str(path))
        try:
            graph.parse(str(path), format="turtle")
        except Exception as e:
            raise SchemaLoadError(f"Failed to parse schema resource {path}: {e}") from e
    return graph


def load_schema(
    version: IfcVersion,
    schema_dir: Union[str, Path],
    cache_dir: Optional[Union[str, Path]] = None,
) -> SchemaFactBase:
    """Load the compiled facts of a schema version.

    A compiled cache in ``cache_dir`` is used when present; otherwise the
    ontology is parsed from ``schema_dir`` and the cache is written.

    Args:
        version: Schema version to load
        schema_dir: Directory holding the ifcOWL Turtle resources
        cache_dir: Optional directory for compiled fact caches

    Returns:
        SchemaFactBase for the version

    Raises:
        SchemaLoadError: If the schema cannot be loaded
    """
    cached = cache_path(version, cache_dir) if cache_dir is not None else None
    if cached is not None and cached.is_file():
        logger.info("Loading compiled schema", version=version.label, file=str(cached))
        return load_facts(cached)

    logger.info("Loading ifcOWL schema", version=version.label, schema_dir=str(schema_dir))
    facts = compile_schema(read_schema_graph(version, schema_dir), version)

    if cached is not None:
        dump_facts(facts, cached)
        logger.info("Wrote compiled schema cache", version=version.label, file=str(cached))
    return facts
