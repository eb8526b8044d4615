import logging
from datetime import datetime
from http import HTTPStatus
from typing import TYPE_CHECKING, Container, Iterator, Optional
from urllib.parse import urlsplit

from rdflib import URIRef
from rdflib.term import Node
from requests import Request, Response

from fcrepo.client import Client, FedoraContent, OperationResult, TransportError, build_sparql_update, content_path
from fcrepo.namespaces import BINARY_MIXIN, fedora, fedora_api, ldp, premis, namespace_manager
from fcrepo.rdf.graph import ResourceGraph
from fcrepo.repo.exceptions import RepositoryError, DigestParseError, raise_for_outcome
from fcrepo.utils import CHUNK_SIZE

if TYPE_CHECKING:
    from fcrepo.repo import Repository

logger = logging.getLogger(__name__)


def normalize_path(path: Optional[str]) -> str:
    """Repository paths always start with a slash and never end with one.
    The repository root is the empty string.

    ```pycon
    >>> normalize_path('foo/bar/')
    '/foo/bar'

    >>> normalize_path('/')
    ''
    ```
    """
    path = (path or '').strip('/')
    return '/' + path if path else ''


def perform(
        client: Client,
        request: Request,
        action: str,
        success_codes: Container[int],
        detect_conflict: bool = False,
) -> OperationResult:
    """Execute `request` and return its successful result, still holding the
    open response. On any other outcome, the response is closed and the
    matching `RepositoryError` is raised. A request that gets no response at
    all raises a plain `RepositoryError` that wraps the `TransportError`.

    `action` describes the operation for log and error messages."""
    try:
        result = client.execute(request, success_codes, detect_conflict)
    except TransportError as e:
        message = f'Unable to {action} {request.url}: {e}'
        logger.error(message)
        raise RepositoryError(message, uri=request.url) from e

    if not result.ok:
        with result:
            raise_for_outcome(result, action)
    return result


class FedoraResource:
    """A resource within a Fedora repository, identified by its path relative
    to the repository's base URL.

    Holds the RDF statements describing the resource as of the last time
    they were loaded. Those statements are replaced as a whole by
    `replace_graph()`, which is not safe to call concurrently on the same
    resource object."""

    def __init__(self, repo: 'Repository', path: str):
        self.repo = repo
        self._path = normalize_path(path)
        self._graph: ResourceGraph = ResourceGraph()

    def __str__(self):
        return self.uri

    def __repr__(self):
        return f'<{type(self).__name__} {self.uri}>'

    def __eq__(self, other):
        return type(self) is type(other) and self.uri == other.uri

    def __hash__(self):
        return hash((type(self), self.uri))

    @property
    def path(self) -> str:
        return self._path

    @property
    def name(self) -> str:
        """Last segment of the path."""
        return self._path.rsplit('/', 1)[-1]

    @property
    def uri(self) -> str:
        return self.repo.endpoint.url_for(self._path)

    @property
    def subject(self) -> URIRef:
        """The node for this resource in its own graph."""
        return URIRef(self.uri)

    @property
    def client(self) -> Client:
        return self.repo.client

    @property
    def graph(self) -> ResourceGraph:
        return self._graph

    def replace_graph(self, graph: ResourceGraph):
        """Replace the statements describing this resource."""
        self._graph = graph

    def read(self):
        """Reload this resource's properties from the repository."""
        self.repo.load_properties(self)
        # as a convenience, return itself; allows r = FedoraResource(...).read() constructions
        return self

    @property
    def properties(self) -> Iterator[tuple[Node, Node, Node]]:
        """Statements about this resource."""
        yield from self.graph.triples((self.subject, None, None))

    @property
    def mixins(self) -> set[str]:
        return {str(value) for value in self.graph.objects(self.subject, fedora.mixinTypes)}

    @property
    def created_date(self) -> Optional[datetime]:
        return self._get_date(fedora.created)

    @property
    def last_modified_date(self) -> Optional[datetime]:
        return self._get_date(fedora.lastModified)

    def _get_date(self, predicate: URIRef) -> Optional[datetime]:
        value = self.graph.lookup(self.subject, predicate)
        if value is None:
            return None
        date = value.toPython()
        if isinstance(date, datetime):
            return date
        return datetime.fromisoformat(str(value).replace('Z', '+00:00'))

    def update_properties(self, sparql_update: str):
        """Send a SPARQL Update query to modify this resource's properties,
        then reload them."""
        request = self.client.create_patch_request(self.path, sparql_update)
        perform(self.client, request, 'update properties of', {HTTPStatus.NO_CONTENT}).close()
        logger.info(f'Updated properties of {self.uri}')
        self.read()

    def update(self):
        """Send the changes made to `graph` since it was loaded."""
        if not self.graph.has_changes:
            logger.debug(f'No changes for {self.uri}')
            return
        logger.info(f'Sending update for {self.uri}')
        for s, p, o in self.graph.inserts:
            logger.debug(f'  + {p.n3(namespace_manager)} {o.n3(namespace_manager)}')
        for s, p, o in self.graph.deletes:
            logger.debug(f'  - {p.n3(namespace_manager)} {o.n3(namespace_manager)}')
        self.update_properties(build_sparql_update(self.graph.deletes, self.graph.inserts))

    def delete(self):
        request = self.client.create_delete_request(self.path)
        perform(self.client, request, 'delete', {HTTPStatus.NO_CONTENT}).close()
        logger.info(f'Deleted {self.uri}')


class FedoraObject(FedoraResource):
    """A container resource, whose children are other objects and datastreams."""

    def _has_mixin(self, node: Node, mixin: str) -> bool:
        return any(str(value) == mixin for value in self.graph.objects(node, fedora.mixinTypes))

    def get_children(self, mixin: str = None) -> set[FedoraResource]:
        """Get the objects and datastreams contained in this object, as
        recorded by `ldp:contains` statements in its graph. If `mixin` is
        given, only include children that have that `fedora:mixinTypes`
        value.

        Children with the `fedora:binary` mixin are returned as
        `FedoraDatastream` objects, all others as `FedoraObject` objects."""
        children = set()
        for child in self.graph.objects(None, ldp.contains):
            if mixin is not None and not self._has_mixin(child, mixin):
                continue
            path = self.repo.repo_path(str(child))
            if self._has_mixin(child, str(BINARY_MIXIN)):
                children.add(self.repo.get_datastream(path))
            else:
                children.add(self.repo.get_object(path))
        logger.debug(f'Found {len(children)} child(ren) of {self.uri} with mixin "{mixin or "Any"}"')
        return children

    def create_object(self) -> 'FedoraObject':
        """Create a new object as a child of this one, with a path assigned
        by the repository."""
        request = self.client.create_post_request(self.path)
        with perform(self.client, request, 'create', {HTTPStatus.CREATED}) as result:
            location = result.response.headers.get('Location')
        if location is None:
            raise RepositoryError(f'No Location header in response to creating {request.url}', uri=request.url)
        logger.info(f'Created {location}')
        return self.repo.get_object(self.repo.repo_path(location))


class ContentStream:
    """Binary stream over the body of a datastream content response.

    The HTTP connection stays open until the stream is closed, so use it as
    a context manager:

    ```python
    with datastream.get_content() as stream:
        data = stream.read()
    ```
    """

    def __init__(self, response: Response):
        self.response = response
        self.closed = False

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def __iter__(self) -> Iterator[bytes]:
        if self.closed:
            raise ValueError('I/O operation on closed stream')
        return self.response.iter_content(chunk_size=CHUNK_SIZE)

    @property
    def content_type(self) -> Optional[str]:
        return self.response.headers.get('Content-Type')

    def read(self, size: int = -1) -> bytes:
        """Read up to `size` bytes, or to the end of the stream if `size` is
        negative or omitted."""
        if self.closed:
            raise ValueError('I/O operation on closed stream')
        if size is None or size < 0:
            return self.response.raw.read(decode_content=True)
        return self.response.raw.read(size, decode_content=True)

    def close(self):
        """Release the HTTP connection. Calling this more than once has no
        further effect."""
        if not self.closed:
            self.closed = True
            self.response.close()


class FedoraDatastream(FedoraResource):
    """A resource holding binary content. Metadata about the content is
    attached to a separate node in the graph, the `content_subject`."""

    def __init__(self, repo: 'Repository', path: str):
        super().__init__(repo, path)
        self.content_subject = URIRef(self.repo.endpoint.url_for(content_path(self.path)))
        """The node for the binary content in this datastream's graph."""

        self._has_content = False

    def replace_graph(self, graph: ResourceGraph):
        has_content = (self.subject, fedora.hasContent, None) in graph
        super().replace_graph(graph)
        self._has_content = has_content

    @property
    def has_content(self) -> bool:
        """Whether the graph says this datastream has content. When it is
        false, all the content metadata properties are `None`."""
        return self._has_content

    def _get_content_value(self, predicate: URIRef) -> Optional[Node]:
        if not self._has_content:
            return None
        return self.graph.lookup(self.content_subject, predicate)

    @property
    def content_digest(self) -> Optional[str]:
        """Digest URI of the content, e.g. "urn:sha1:8843d7f9..."

        Raises a `DigestParseError` if the stored digest is not a valid URI."""
        digest = self._get_content_value(fedora_api.digest)
        if digest is None:
            return None
        if not isinstance(digest, URIRef):
            raise DigestParseError(f'Error parsing checksum URI: {digest}', uri=self.uri)
        try:
            scheme = urlsplit(str(digest)).scheme
        except ValueError as e:
            raise DigestParseError(f'Error parsing checksum URI: {digest}', uri=self.uri) from e
        if not scheme or any(c.isspace() for c in str(digest)):
            raise DigestParseError(f'Error parsing checksum URI: {digest}', uri=self.uri)
        return str(digest)

    @property
    def content_size(self) -> Optional[int]:
        """Size of the content in bytes."""
        size = self._get_content_value(premis.hasSize)
        if size is None:
            return None
        return int(str(size))

    @property
    def filename(self) -> Optional[str]:
        filename = self._get_content_value(premis.hasOriginalName)
        if filename is None:
            return None
        return str(filename)

    @property
    def content_type(self) -> Optional[str]:
        """MIME type of the content."""
        content_type = self._get_content_value(fedora.mimeType)
        if content_type is None:
            return None
        return str(content_type)

    def get_object(self) -> FedoraObject:
        """The object containing this datastream."""
        return self.repo.get_object(self.path[:self.path.rfind('/')])

    def update_content(self, content: FedoraContent):
        """Replace the binary content of this datastream, then reload its
        properties.

        Raises a `ChecksumMismatchError` if `content` has a checksum
        that does not match the bytes received by the repository."""
        request = self.client.create_content_put_request(self.path, content=content)
        success_codes = {HTTPStatus.CREATED, HTTPStatus.NO_CONTENT}
        perform(self.client, request, 'update content of', success_codes, detect_conflict=True).close()
        logger.debug(f'Content updated successfully for resource {request.url}')
        self.read()

    def get_content(self) -> ContentStream:
        """Request the binary content of this datastream. The returned
        `ContentStream` must be closed by the caller."""
        request = self.client.create_get_request(content_path(self.path))
        result = perform(self.client, request, 'retrieve', {HTTPStatus.OK})
        return ContentStream(result.response)

    def check_fixity(self):
        raise NotImplementedError('Method check_fixity() is not implemented')
