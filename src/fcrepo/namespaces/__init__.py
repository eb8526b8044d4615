"""Namespaces used in Fedora repository descriptions, for use with `rdflib` code."""

import sys
from typing import Optional

from rdflib import Namespace, Graph, Literal
from rdflib.namespace import NamespaceManager

fedora = Namespace('http://fedora.info/definitions/v4/repository#')
"""[Fedora Commons Repository Ontology](https://fedora.info/definitions/v4/2016/10/18/repository)"""

fedora_api = Namespace('http://fedora.info/definitions/v4/rest-api#')
"""Fedora Commons REST API namespace, used for the content digest of a datastream"""

ldp = Namespace('http://www.w3.org/ns/ldp#')
"""[Linked Data Platform](https://www.w3.org/TR/ldp/)"""

premis = Namespace('http://www.loc.gov/premis/rdf/v1#')
"""[Preservation Metadata: Implementation Strategies (PREMIS)](https://id.loc.gov/ontologies/premis-1-0-0.html)"""

rdf = Namespace('http://www.w3.org/1999/02/22-rdf-syntax-ns#')
"""[RDF](https://www.w3.org/TR/rdf11-schema/)"""

xsd = Namespace('http://www.w3.org/2001/XMLSchema#')
"""[XML Schema Datatypes](https://www.w3.org/TR/xmlschema-2/#built-in-datatypes)"""

BINARY_MIXIN = Literal('fedora:binary')
"""Value of `fedora:mixinTypes` that marks a resource as a datastream"""


def get_manager(graph: Optional[Graph] = None) -> NamespaceManager:
    """Scan this module's attributes for `Namespace` objects, and bind them
    to a prefix corresponding to their attribute name defined above."""
    if graph is None:
        graph = Graph()
    nsm = NamespaceManager(graph)
    prefixes = {attr: value for attr, value in sys.modules[__name__].__dict__.items() if isinstance(value, Namespace)}
    for prefix, ns in prefixes.items():
        nsm.bind(prefix, ns)
    return nsm


namespace_manager = get_manager()
