"""RDF vocabulary used by ifcOWL schemas and data graphs."""

from __future__ import annotations

from rdflib import Namespace
from rdflib.term import Node, URIRef

# --------------------------------------------------------------------------- #
# Namespaces
# --------------------------------------------------------------------------- #

EXPRESS = Namespace("https://w3id.org/express#")
LIST = Namespace("https://w3id.org/list#")

# Schema supplement shipped next to each ifcOWL ontology. It carries the
# EXPRESS facts OWL cannot express: entity markers, attribute order and
# cardinality flags, and DERIVE redeclarations.
SUPPLEMENT = Namespace("https://w3id.org/ifcowl/supplement#")

# --------------------------------------------------------------------------- #
# Schema terms
# --------------------------------------------------------------------------- #

OWL_LIST = LIST.OWLList
ENUMERATION = EXPRESS.ENUMERATION
SELECT = EXPRESS.SELECT

IS_IFC_ENTITY = SUPPLEMENT.isIfcEntity
IS_SET = SUPPLEMENT.isSet
IS_LIST_OR_ARRAY = SUPPLEMENT.isListOrArray
IS_OPTIONAL = SUPPLEMENT.isOptional
HAS_DERIVE_ATTRIBUTE = SUPPLEMENT.hasDeriveAttribute
ATTRIBUTE_INDEX = SUPPLEMENT.attributeIndex


def local_name(term: Node) -> str:
    """Return the local part of an IRI, or the identifier of a blank node.

    The local part is the text after the last '#' or '/'. A document IRI
    such as ``http://example.org/data/`` therefore has the empty local name.
    """
    text = str(term)
    if not isinstance(term, URIRef):
        return text
    cut = max(text.rfind("#"), text.rfind("/"))
    return text[cut + 1:]
