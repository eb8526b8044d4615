from http import HTTPStatus
from typing import Callable
from unittest.mock import MagicMock

import pytest
import requests
from httpretty import httpretty
from rdflib import Graph
from requests import Response, Session

from fcrepo.client import Endpoint, Client
from fcrepo.client.auth import get_authenticator
from fcrepo.repo import Repository


@pytest.fixture
def repo_base_config():
    """Required parameters for Repository configuration"""
    return {
        'REST_ENDPOINT': 'http://localhost:9999/rest',
        'RELPATH': '/pcdm',
        'AUTH_TOKEN': 'foobar'
    }


@pytest.fixture
def endpoint(repo_base_config):
    return Endpoint(
        url=repo_base_config['REST_ENDPOINT'],
        default_path=repo_base_config['RELPATH'],
    )


@pytest.fixture
def client(repo_base_config, endpoint) -> Client:
    return Client(
        endpoint=endpoint,
        auth=get_authenticator(repo_base_config),
    )


@pytest.fixture
def repo(client) -> Repository:
    return Repository(client=client)


@pytest.fixture
def monkeypatch_request(monkeypatch):
    def _monkeypatch_request(response):
        if isinstance(response, type):
            response = response()
        monkeypatch.setattr(requests.Session, 'request', lambda *args, **kwargs: response)
    return _monkeypatch_request


@pytest.fixture
def mock_response() -> Callable[..., MagicMock]:
    """Builds a stand-in for a streamed `requests.Response`. Its `close()`
    method is a mock, so tests can count how many times the connection
    was released."""
    def _mock_response(status_code: int = 200, headers: dict = None, body: bytes = b'', reason: str = None):
        response = MagicMock(spec=Response)
        response.status_code = status_code
        response.reason = reason if reason is not None else HTTPStatus(status_code).phrase
        response.headers = headers or {}
        response.text = body.decode()
        response.raw = MagicMock()
        response.raw.read.return_value = body
        response.iter_content.return_value = iter([body])
        return response
    return _mock_response


@pytest.fixture
def transport(monkeypatch, client) -> Callable[..., MagicMock]:
    """Replaces the session of the `client` fixture with a double that
    answers successive requests with the given responses (or raises them,
    if they are exceptions)."""
    def _transport(*responses):
        session = MagicMock(spec=Session)
        session.headers = {}
        session.request.side_effect = list(responses)
        monkeypatch.setattr(client, 'session', session)
        return session
    return _transport


@pytest.fixture
def simulate_repo() -> Callable[[dict[str, Graph]], None]:
    """Pytest fixture that uses HTTPretty to simulate a read-only repository.
    The repository is defined as a mapping from resource URIs to the graphs
    describing them. Each resource will respond to HEAD and GET requests with
    200 OK and Content-Type application/n-triples."""
    def _register_repo(resources: dict[str, Graph]):
        for uri, graph in resources.items():
            body = graph.serialize(format='application/n-triples')
            httpretty.register_uri(
                method=httpretty.HEAD,
                uri=uri,
                status=200,
                content_type='application/n-triples',
            )
            httpretty.register_uri(
                method=httpretty.GET,
                uri=uri,
                status=200,
                body=body,
                content_type='application/n-triples',
            )
    return _register_repo
