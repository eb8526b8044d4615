import logging
from enum import Enum
from http import HTTPStatus
from typing import Any, Optional, NamedTuple, Container, Mapping, BinaryIO

from rdflib import Graph
from requests import Request, Response, Session
from requests.auth import AuthBase
from requests.exceptions import RequestException
from urlobject import URLObject

from fcrepo.client.auth import ClientCertAuth

logger = logging.getLogger(__name__)

CONTENT_PATH_SEGMENT = 'fcr:content'
"""Path segment that addresses the binary content of a datastream"""


def reason_phrase(response: Response) -> str:
    """The reason phrase of `response`. If the server did not send one,
    use the standard phrase for the status code from the built-in
    `HTTPStatus` enumeration, or the empty string if the status code
    is non-standard."""
    if response.reason:
        return response.reason
    try:
        return HTTPStatus(response.status_code).phrase
    except ValueError:
        return ''


class FedoraContent(NamedTuple):
    """Binary content to send to a datastream, along with the optional
    metadata that Fedora stores about it.

    ```pycon
    >>> content = FedoraContent(b'foobar', filename='foo.txt', content_type='text/plain')
    >>> content.checksum is None
    True
    ```
    """

    content: bytes | BinaryIO
    """bytes, or a file-like object opened in binary mode"""

    filename: Optional[str] = None
    """original filename, sent in the `Content-Disposition` header"""

    content_type: Optional[str] = None
    """MIME type, e.g. "image/tiff", sent in the `Content-Type` header"""

    checksum: Optional[str] = None
    """checksum URI, e.g. "urn:sha1:8843d7f9...", that Fedora verifies the
    content against"""


class Outcome(Enum):
    """Classification of the response to a single repository operation."""
    SUCCESS = 'success'
    FORBIDDEN = 'forbidden'
    NOT_FOUND = 'not found'
    CONFLICT = 'conflict'
    OTHER_ERROR = 'other error'


def classify(status_code: int, success_codes: Container[int], detect_conflict: bool = False) -> Outcome:
    """Map an HTTP status code to an `Outcome`.

    Any of the `success_codes` for the operation is a `SUCCESS`. 403 and 404
    are `FORBIDDEN` and `NOT_FOUND`. 409 is a `CONFLICT` only when
    `detect_conflict` is true (content updates, where it signals a checksum
    mismatch); otherwise it is lumped in with every other status as
    `OTHER_ERROR`.

    ```pycon
    >>> classify(204, {201, 204})
    <Outcome.SUCCESS: 'success'>

    >>> classify(409, {201, 204}, detect_conflict=True)
    <Outcome.CONFLICT: 'conflict'>

    >>> classify(409, {201})
    <Outcome.OTHER_ERROR: 'other error'>
    ```
    """
    if status_code in success_codes:
        return Outcome.SUCCESS
    elif status_code == HTTPStatus.FORBIDDEN:
        return Outcome.FORBIDDEN
    elif status_code == HTTPStatus.NOT_FOUND:
        return Outcome.NOT_FOUND
    elif status_code == HTTPStatus.CONFLICT and detect_conflict:
        return Outcome.CONFLICT
    else:
        return Outcome.OTHER_ERROR


class OperationResult(NamedTuple):
    """Result of executing a single request against the repository. Holds
    the still-open `response`; use the result as a context manager, or call
    `close()`, to release the connection."""

    outcome: Outcome
    uri: str
    """URI of the request"""

    status_code: int
    reason: str
    response: Response

    @property
    def ok(self) -> bool:
        return self.outcome is Outcome.SUCCESS

    def close(self):
        """Release the underlying connection."""
        self.response.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


class TransportError(RuntimeError):
    """Raised when a request could not be sent or no response was received,
    e.g., because of a malformed URL, a refused connection, or a timeout."""
    pass


class Endpoint:
    """Conceptual entry point for a Fedora repository."""

    def __init__(self, url: str, default_path: str = '/', external_url: str = None):
        self.internal_url = URLObject(url.rstrip('/'))

        self.relpath = default_path
        """Default container path"""

        if not self.relpath.startswith('/'):
            self.relpath = '/' + self.relpath

        self.external_url: URLObject = URLObject(external_url.rstrip('/')) if external_url is not None else None

    @property
    def url(self) -> URLObject:
        """Endpoint URL. If `external_url` is set, returns that. Otherwise, returns
        the `internal_url`."""
        return self.external_url or self.internal_url

    def __contains__(self, item):
        return self.contains(item)

    def contains(self, uri: str) -> bool:
        """
        Returns `True` if the given URI string is contained within this
        repository, `False` otherwise. You may also use the builtin operator
        `in` to do this same check::

        ```pycon
        >>> endpoint = Endpoint(url='http://localhost:8080/rest')

        >>> endpoint.contains('http://localhost:8080/rest/123')
        True

        >>> 'http://example.com/123' in endpoint
        False
        ```
        """
        return uri.startswith(self.internal_url) \
            or (self.external_url is not None and uri.startswith(self.external_url))

    def repo_path(self, resource_uri: Optional[str]) -> Optional[str]:
        """
        Returns the repository path for the given resource URI, i.e. the
        URI with the leading `url` (or `internal_url`) removed. URIs outside
        this repository are returned unchanged. For example:

        ```pycon
        >>> endpoint = Endpoint(url='http://localhost:8080/rest')

        >>> endpoint.repo_path('http://localhost:8080/rest/obj/123')
        '/obj/123'
        ```
        """
        if resource_uri is None:
            return None
        for base_url in (self.url, self.internal_url):
            if resource_uri.startswith(base_url):
                return resource_uri[len(base_url):]
        return resource_uri

    def url_for(self, path: str) -> str:
        """Absolute URL of the resource at the repository `path`."""
        if path and not path.startswith('/'):
            path = '/' + path
        return self.url + path


class SessionHeaderAttribute:
    """Descriptor that maps an attribute to a session header name. Requires
    the instance to have a `session` attribute with a `headers` attribute whose
    value is a mapping that supports the methods `get()` and `update()`, plus
    the `del` operator."""

    def __init__(self, header_name: str):
        self.header_name = header_name
        """The HTTP header name"""

    def __set_name__(self, owner, name):
        self.name = name

    def __get__(self, instance, owner):
        if instance is None:
            return self
        return instance.session.headers.get(self.header_name, None)

    def __set__(self, instance, value):
        if value is not None:
            instance.session.headers.update({self.header_name: str(value)})

    def __delete__(self, instance):
        try:
            del instance.session.headers[self.header_name]
        except KeyError:
            pass


def build_sparql_update(delete_graph: Graph = None, insert_graph: Graph = None) -> str:
    """Build a SPARQL Update Query given the two graphs:

    * If there are no deletes (i.e., `delete_graph` contains no triples, or
      is set to `None`), returns an `INSERT DATA { ... }` statement;
    * If there are no inserts (i.e., `insert_graph` contains no triples, or
      is set to `None`), returns a `DELETE DATA { ... }` statement;
    * If there are both deletes and inserts, returns a full `DELETE { ... } INSERT { ... }
      WHERE {}` statement (the `WHERE` clause is always empty);
    * If there are neither inserts nor deletes, returns the empty string."""
    if delete_graph is not None and len(delete_graph) > 0:
        deletes = delete_graph.serialize(format='nt').strip()
    else:
        deletes = None

    if insert_graph is not None and len(insert_graph) > 0:
        inserts = insert_graph.serialize(format='nt').strip()
    else:
        inserts = None

    if deletes is not None and inserts is not None:
        return f"DELETE {{ {deletes} }} INSERT {{ {inserts} }} WHERE {{}}"
    elif deletes is not None:
        return f"DELETE DATA {{ {deletes} }}"
    elif inserts is not None:
        return f"INSERT DATA {{ {inserts} }}"
    else:
        return ''


class Client:
    """HTTP client for interacting with a Fedora repository.

    Requests are built by the `create_*_request()` factory methods and sent
    with `execute()`, which classifies the response status for the kind of
    operation being performed."""
    ua_string = SessionHeaderAttribute('User-Agent')
    """`User-Agent` header value"""
    delegated_user = SessionHeaderAttribute('On-Behalf-Of')
    """`On-Behalf-Of` header value"""
    forwarded_host = SessionHeaderAttribute('X-Forwarded-Host')
    """`X-Forwarded-Host` header value. This is automatically set if the
    `endpoint` has an `external_url`."""
    forwarded_protocol = SessionHeaderAttribute('X-Forwarded-Proto')
    """`X-Forwarded-Proto` header value. This is automatically set if the
    `endpoint` has an `external_url`."""
    session: Session
    """Underlying Requests library
    [Session object](https://requests.readthedocs.io/en/latest/user/advanced/#session-objects),
    or a subclass thereof"""

    def __init__(
        self,
        endpoint: Endpoint,
        auth: AuthBase = None,
        server_cert: str = None,
        ua_string: str = None,
        on_behalf_of: str = None,
        timeout: float = None,
        session: Session = None,
    ):
        self.endpoint: Endpoint = endpoint
        """Fedora repository endpoint"""

        self.timeout: Optional[float] = timeout
        """Seconds to wait for the server before giving up; `None` waits forever"""

        if session is None:
            # defaults to a basic requests.Session object
            self.session = Session()
        else:
            # otherwise, use the session object as is
            self.session = session

        self.session.auth = auth
        if isinstance(auth, ClientCertAuth):
            # the certificate is presented during the TLS handshake, not per request
            self.session.cert = (auth.cert, auth.key)
        if server_cert is not None:
            self.session.verify = server_cert

        # set session-wide headers
        self.ua_string = ua_string
        self.delegated_user = on_behalf_of
        if self.endpoint.external_url is not None:
            if self.endpoint.external_url.port:
                # fcrepo expects hostname and port in the X-Forwarded-Host header
                self.forwarded_host = f'{self.endpoint.external_url.hostname}:{self.endpoint.external_url.port}'
            else:
                self.forwarded_host = self.endpoint.external_url.hostname
            self.forwarded_protocol = self.endpoint.external_url.scheme

    def request(self, method: str, url: str, **kwargs) -> Response:
        """Send an HTTP request using the configured `session`. Additional
        keyword arguments are passed to the underlying `session.request()`
        method.

        Raises a `TransportError` if the request cannot be sent or no
        response is received."""
        logger.debug(f'{method} {url}')
        kwargs.setdefault('timeout', self.timeout)
        try:
            response = self.session.request(method, url, **kwargs)
        except RequestException as e:
            message = ' '.join(str(arg) for arg in e.args)
            logger.error(message)
            raise TransportError(f'Connection error: {message}') from e
        logger.debug(f'{response.status_code} {reason_phrase(response)}')
        return response

    def head(self, url: str, **kwargs) -> Response:
        """Send an HTTP HEAD request using the configured session."""
        return self.request('HEAD', url, **kwargs)

    def send(self, request: Request) -> Response:
        """Send a request built by one of the `create_*_request()` methods.
        The response body is streamed, so the caller must close the response."""
        return self.request(
            request.method,
            request.url,
            params=request.params,
            headers=request.headers,
            data=request.data or None,
            stream=True,
        )

    def execute(
            self,
            request: Request,
            success_codes: Container[int],
            detect_conflict: bool = False,
    ) -> OperationResult:
        """Send `request` and classify its response. A status in
        `success_codes` is a success; see `classify()` for the rest.

        The returned `OperationResult` holds the open response; the caller
        is responsible for closing it. Raises a `TransportError` if no
        response was received, in which case there is nothing to close."""
        response = self.send(request)
        result = OperationResult(
            outcome=classify(response.status_code, success_codes, detect_conflict),
            uri=request.url,
            status_code=response.status_code,
            reason=reason_phrase(response),
            response=response,
        )
        logger.debug(f'{request.method} {request.url}: {result.outcome.value}')
        return result

    def create_request(
            self,
            method: str,
            path: str,
            params: Mapping[str, Any] = None,
            headers: Mapping[str, str] = None,
            data: Any = None,
    ) -> Request:
        """Build an unsent request for the resource at the repository `path`."""
        return Request(
            method=method,
            url=self.endpoint.url_for(path),
            params=dict(params or {}),
            headers=dict(headers or {}),
            data=data,
        )

    def create_get_request(self, path: str, params: Mapping[str, Any] = None, **kwargs) -> Request:
        return self.create_request('GET', path, params, **kwargs)

    def create_post_request(self, path: str, params: Mapping[str, Any] = None, **kwargs) -> Request:
        return self.create_request('POST', path, params, **kwargs)

    def create_put_request(self, path: str, params: Mapping[str, Any] = None, **kwargs) -> Request:
        return self.create_request('PUT', path, params, **kwargs)

    def create_patch_request(self, path: str, sparql_update: str) -> Request:
        return self.create_request(
            'PATCH',
            path,
            headers={'Content-Type': 'application/sparql-update'},
            data=sparql_update.encode(),
        )

    def create_delete_request(self, path: str) -> Request:
        return self.create_request('DELETE', path)

    def create_content_put_request(
            self,
            path: str,
            params: Mapping[str, Any] = None,
            content: FedoraContent = None,
    ) -> Request:
        """Build a PUT request that replaces the binary content of the
        datastream at `path`. The content's checksum is sent as the `checksum`
        request parameter, its filename as a `Content-Disposition` header, and
        its content type as the `Content-Type` header."""
        params = dict(params or {})
        headers = {}
        data = None
        if content is not None:
            data = content.content
            if content.checksum is not None:
                params['checksum'] = content.checksum
            if content.filename is not None:
                headers['Content-Disposition'] = f'attachment; filename="{content.filename}"'
            if content.content_type is not None:
                headers['Content-Type'] = content.content_type
        return self.create_put_request(content_path(path), params, headers=headers, data=data)

    def is_reachable(self) -> bool:
        """Returns `True` if an HTTP HEAD request to the configured `endpoint`
        yields a non-error response, and `False` otherwise."""
        try:
            return self.head(self.endpoint.url).ok
        except TransportError as e:
            logger.error(str(e))
            return False

    def test_connection(self):
        """Test the connection to the repository using `is_reachable()`. If
        it returns false, raises a `TransportError`."""
        logger.debug(f"Endpoint = {self.endpoint.url}")
        logger.info(f"Testing connection to {self.endpoint.url}")
        if self.is_reachable():
            logger.info("Connection successful.")
        else:
            raise TransportError(f'Unable to connect to {self.endpoint.url}')

    def exists(self, uri: str, **kwargs) -> bool:
        response = self.head(uri, **kwargs)
        return response.status_code == HTTPStatus.OK

    def path_exists(self, path: str, **kwargs) -> bool:
        return self.exists(self.endpoint.url_for(path), **kwargs)


def content_path(path: str) -> str:
    """Repository path of the binary content of the datastream at `path`.

    ```pycon
    >>> content_path('/foo/bar')
    '/foo/bar/fcr:content'
    ```
    """
    return path.rstrip('/') + '/' + CONTENT_PATH_SEGMENT
