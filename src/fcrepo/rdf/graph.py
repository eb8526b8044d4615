import pathlib
from typing import Optional, IO, TextIO, BinaryIO, Any

from rdflib import Graph
from rdflib.parser import InputSource
from rdflib.term import Node


def copy_triples(src: Graph, dest: Graph):
    """Add all triples in `src` to `dest`."""
    for triple in src:
        dest.add(triple)


def lookup(graph: Graph, subject: Node, predicate: Node) -> Optional[Node]:
    """Return the object of a statement in `graph` with the given `subject`
    and `predicate`, or `None` if there is no such statement.

    If there is more than one matching statement, this returns the first
    one that `graph` yields. The iteration order of an rdflib graph is not
    defined, so callers should not depend on which value they get."""
    return next(graph.objects(subject, predicate), None)


class ResourceGraph(Graph):
    """The statements describing a single repository resource. Tracks
    inserts and deletes made after the graph was parsed."""
    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.original = Graph()
        """Graph as it was last parsed"""

    def parse(
        self,
        source: Optional[
            IO[bytes] | TextIO | InputSource | str | bytes | pathlib.PurePath
        ] = None,
        publicID: Optional[str] = None,  # noqa: N803
        format: Optional[str] = None,
        location: Optional[str] = None,
        file: Optional[BinaryIO | TextIO] = None,
        data: Optional[str | bytes] = None,
        **args: Any,
    ) -> 'ResourceGraph':
        """Parses the graph normally, and then saves a copy of the original."""
        super().parse(source, publicID, format, location, file, data, **args)
        self.original = Graph()
        copy_triples(self, self.original)
        return self

    def lookup(self, subject: Node, predicate: Node) -> Optional[Node]:
        """Shortcut for `lookup(self, subject, predicate)`."""
        return lookup(self, subject, predicate)

    @property
    def inserts(self) -> Graph:
        """Graph containing triples that have been added"""
        return self - self.original

    @property
    def deletes(self) -> Graph:
        """Graph containing triples that have been removed"""
        return self.original - self

    @property
    def has_changes(self) -> bool:
        """Whether this graph has been changed"""
        return len(self.inserts) > 0 or len(self.deletes) > 0
