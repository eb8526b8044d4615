import logging
from http import HTTPStatus
from typing import Optional, Type, TypeVar

import yaml
from requests.auth import AuthBase

from fcrepo.client import Client, Endpoint, FedoraContent, TransportError
from fcrepo.client.auth import get_authenticator
from fcrepo.rdf.graph import ResourceGraph
from fcrepo.repo.exceptions import (
    RepositoryError,
    ForbiddenError,
    NotFoundError,
    ChecksumMismatchError,
    DigestParseError,
)
from fcrepo.repo.resources import (
    FedoraResource,
    FedoraObject,
    FedoraDatastream,
    ContentStream,
    normalize_path,
    perform,
)
from fcrepo.utils import envsubst

logger = logging.getLogger(__name__)

ResourceType = TypeVar('ResourceType', bound=FedoraResource)

__all__ = [
    'ChecksumMismatchError',
    'ConfigError',
    'ContentStream',
    'DigestParseError',
    'FedoraDatastream',
    'FedoraObject',
    'FedoraResource',
    'ForbiddenError',
    'NotFoundError',
    'Repository',
    'RepositoryError',
]


class ConfigError(RuntimeError):
    """Raised when the repository configuration is missing a required key."""
    pass


class Repository:
    """Handle for a Fedora repository, from which resource objects are
    obtained and created."""

    @classmethod
    def from_config_file(cls, filename: str) -> 'Repository':
        """Read the `REPOSITORY` section of a YAML configuration file.
        `${VAR}` placeholders in its values are replaced with environment
        variables."""
        with open(filename) as file:
            config = yaml.safe_load(file) or {}
        return cls.from_config(config=envsubst(config.get('REPOSITORY', {})))

    @classmethod
    def from_config(cls, config: dict[str, str]) -> 'Repository':
        try:
            url = config['REST_ENDPOINT']
        except KeyError as e:
            raise ConfigError('Missing required key REST_ENDPOINT in repository configuration') from e
        endpoint = Endpoint(
            url=url,
            default_path=config.get('RELPATH', '/'),
            external_url=config.get('REPO_EXTERNAL_URL', None),
        )
        timeout = config.get('TIMEOUT', None)
        client = Client(
            endpoint=endpoint,
            auth=get_authenticator(config),
            server_cert=config.get('SERVER_CERT', None),
            timeout=float(timeout) if timeout is not None else None,
        )
        return cls(client=client)

    @classmethod
    def from_url(cls, url: str, auth: AuthBase = None) -> 'Repository':
        endpoint = Endpoint(url=url)
        client = Client(endpoint=endpoint, auth=auth)
        return cls(client=client)

    def __init__(self, client: Client):
        self.client = client
        self.endpoint = client.endpoint

    @property
    def repository_url(self) -> str:
        """Base URL of the repository."""
        return str(self.endpoint.url)

    def repo_path(self, uri: str) -> str:
        """Path of the resource at `uri` relative to the repository base URL."""
        return self.endpoint.repo_path(uri)

    def exists(self, path: str) -> bool:
        """Returns `True` if an HTTP HEAD request for `path` gets a 200 response."""
        path = normalize_path(self.repo_path(path))
        try:
            return self.client.path_exists(path)
        except TransportError as e:
            raise RepositoryError(f'Unable to check {path}: {e}', uri=self.endpoint.url_for(path)) from e

    def get_resource(
            self,
            path: str,
            resource_class: Type[ResourceType] = FedoraResource,
            load: bool = True,
    ) -> ResourceType:
        """Get an object representing the resource at `path`, which may also
        be a full URI within this repository. If `load` is true, its
        properties are fetched from the repository right away, and a
        `NotFoundError` is raised if there is no such resource.

        :raises RepositoryError: if it cannot instantiate an instance of the resource class
        """
        path = self.repo_path(path)
        try:
            resource = resource_class(repo=self, path=path)
        except TypeError as e:
            raise RepositoryError(f'Cannot get "{path}" as type "{resource_class.__name__}": {e}') from e
        if load:
            self.load_properties(resource)
        return resource

    def __getitem__(self, item: str | slice) -> FedoraResource:
        """Shorthand for `get_resource()`, without loading. A slice gives
        the path as its "start" and the resource class as its "stop":

        ```python
        obj = repo['/foo':FedoraObject]
        ```
        """
        if isinstance(item, str):
            return self.get_resource(item, load=False)
        elif isinstance(item, slice):
            return self.get_resource(item.start, resource_class=item.stop or FedoraResource, load=False)
        else:
            raise TypeError(f'Cannot use a key of type "{type(item).__name__}" here')

    def get_object(self, path: str, load: bool = True) -> FedoraObject:
        return self.get_resource(path, FedoraObject, load)

    def get_datastream(self, path: str, load: bool = True) -> FedoraDatastream:
        return self.get_resource(path, FedoraDatastream, load)

    def load_properties(self, resource: FedoraResource):
        """Fetch the RDF description of `resource` as N-Triples and replace
        its graph with the result."""
        request = self.client.create_get_request(resource.path, headers={'Accept': 'application/n-triples'})
        with perform(self.client, request, 'retrieve', {HTTPStatus.OK}) as result:
            text = result.response.text
        graph = ResourceGraph().parse(data=text, format='application/n-triples', publicID=resource.uri)
        logger.debug(f'Loaded {len(graph)} triple(s) for {resource.uri}')
        resource.replace_graph(graph)

    def create_object(self, path: Optional[str] = None) -> FedoraObject:
        """Create an object at `path`, or in the default container with a
        path assigned by the repository if `path` is `None`."""
        if path is None:
            return self.get_object(self.endpoint.relpath, load=False).create_object()

        path = normalize_path(self.repo_path(path))
        request = self.client.create_put_request(path)
        perform(self.client, request, 'create', {HTTPStatus.CREATED}).close()
        logger.info(f'Created {request.url}')
        return self.get_object(path)

    def create_datastream(self, path: str, content: FedoraContent) -> FedoraDatastream:
        """Create a datastream at `path` holding `content`."""
        path = normalize_path(self.repo_path(path))
        request = self.client.create_content_put_request(path, content=content)
        perform(self.client, request, 'create', {HTTPStatus.CREATED}, detect_conflict=True).close()
        logger.info(f'Created {request.url}')
        return self.get_datastream(path)
