"""Edge stream production from serialized ifcOWL graphs.

The input graph is parsed with rdflib on a producer thread. Triples are handed
to the consuming conversion loop through a queue, in parse order, without
ever materializing the graph in memory.
"""

from __future__ import annotations

import queue
import threading
from pathlib import Path
from typing import Any, Dict, Iterator, List, NamedTuple, Optional, Tuple, Union

import structlog
from rdflib import Graph, Literal
from rdflib.namespace import OWL
from rdflib.term import Node

from ifcschema.versions import IfcVersion, select_schema_version
from ifcschema.vocabulary import local_name

logger = structlog.get_logger(__name__)

Triple = Tuple[Node, Node, Node]


class EdgeStreamError(Exception):
    """Raised when the input graph cannot be read or parsed."""

    pass


class Edge(NamedTuple):
    """A labeled edge of the data graph, reduced to local names.

    ``obj`` is the object's local name, or the rdflib Literal itself for
    literal objects.
    """

    subject: str
    predicate: str
    obj: Union[str, Literal]


class _TripleSink(Graph):
    """A graph that forwards parsed triples instead of storing them."""

    def __init__(self, emit: Any):
        super().__init__()
        self._emit = emit

    def add(self, triple: Triple) -> "_TripleSink":
        self._emit(triple)
        return self


class _Failure(NamedTuple):
    error: BaseException


_END = object()


def _parse_args(location: Optional[Union[str, Path]], data: Optional[Union[str, bytes]]) -> Dict[str, Any]:
    if (location is None) == (data is None):
        raise ValueError("Exactly one of location or data must be given")
    if location is not None:
        path = Path(location)
        if not path.is_file():
            raise EdgeStreamError(f"Input graph not found: {path}")
        return {"source": str(path)}
    return {"data": data}


def iter_triples(
    location: Optional[Union[str, Path]] = None,
    data: Optional[Union[str, bytes]] = None,
    format: str = "turtle",
) -> Iterator[Triple]:
    """Stream the raw triples of a serialized graph in parse order.

    Args:
        location: Path of the graph file
        data: Serialized graph content, instead of a file
        format: rdflib parser name (turtle, nt, xml, ...)

    Yields:
        (subject, predicate, object) rdflib terms

    Raises:
        EdgeStreamError: If the graph cannot be parsed
    """
    parse_args = _parse_args(location, data)
    handoff: queue.Queue = queue.Queue()

    def produce() -> None:
        try:
            _TripleSink(handoff.put).parse(format=format, **parse_args)
        except Exception as e:
            handoff.put(_Failure(e))
        finally:
            handoff.put(_END)

    producer = threading.Thread(target=produce, name="edge-producer", daemon=True)
    producer.start()

    while True:
        item = handoff.get()
        if item is _END:
            break
        if isinstance(item, _Failure):
            raise EdgeStreamError(f"Failed to parse input graph: {item.error}") from item.error
        yield item

    producer.join()


def to_edge(triple: Triple) -> Edge:
    subject, predicate, obj = triple
    if isinstance(obj, Literal):
        return Edge(local_name(subject), local_name(predicate), obj)
    return Edge(local_name(subject), local_name(predicate), local_name(obj))


def iter_edges(
    location: Optional[Union[str, Path]] = None,
    data: Optional[Union[str, bytes]] = None,
    format: str = "turtle",
) -> Iterator[Edge]:
    """Stream the edges of a serialized graph, reduced to local names."""
    for triple in iter_triples(location, data, format):
        yield to_edge(triple)


def declared_imports(
    location: Optional[Union[str, Path]] = None,
    data: Optional[Union[str, bytes]] = None,
    format: str = "turtle",
) -> List[str]:
    """Collect the ontology IRIs a graph declares with owl:imports."""
    return [
        str(obj)
        for _, predicate, obj in iter_triples(location, data, format)
        if predicate == OWL.imports
    ]


def detect_schema_version(
    location: Optional[Union[str, Path]] = None,
    data: Optional[Union[str, bytes]] = None,
    format: str = "turtle",
) -> IfcVersion:
    """Determine the ifcOWL version a graph was written against.

    Raises:
        IfcVersionError: If no known ontology is imported
        EdgeStreamError: If the graph cannot be parsed
    """
    imports = declared_imports(location, data, format)
    version = select_schema_version(imports)
    logger.info("Detected ifcOWL version", version=version.label, imports=len(imports))
    return version
