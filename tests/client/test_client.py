from io import BytesIO

import httpretty
import pytest
from rdflib import Graph, URIRef, Literal
from requests import Session
from requests.exceptions import ConnectionError, ReadTimeout

from fcrepo.client import Endpoint, Client, FedoraContent, Outcome, TransportError, SessionHeaderAttribute, \
    build_sparql_update
from fcrepo.client.auth import ClientCertAuth


@pytest.fixture()
def client():
    return Client(endpoint=Endpoint(url='http://localhost:9999/rest'))


class MockOKResponse:
    ok = True
    status_code = 200
    reason = 'OK'


class MockNotFoundResponse:
    ok = False
    status_code = 404
    reason = 'Not Found'


def test_create_get_request(client):
    request = client.create_get_request('/foo', params={'a': '1'})
    assert request.method == 'GET'
    assert request.url == 'http://localhost:9999/rest/foo'
    assert request.params == {'a': '1'}


def test_create_post_request(client):
    request = client.create_post_request('/foo')
    assert request.method == 'POST'
    assert request.url == 'http://localhost:9999/rest/foo'
    assert not request.data


def test_create_patch_request(client):
    request = client.create_patch_request('/foo', 'INSERT DATA {}')
    assert request.method == 'PATCH'
    assert request.headers['Content-Type'] == 'application/sparql-update'
    assert request.data == b'INSERT DATA {}'


def test_create_content_put_request(client):
    content = FedoraContent(
        content=b'foobar',
        filename='foo.txt',
        content_type='text/plain',
        checksum='urn:sha1:8843d7f92416211de9ebb963ff4ce28125932878',
    )
    request = client.create_content_put_request('/foo/bar', content=content)
    assert request.method == 'PUT'
    assert request.url == 'http://localhost:9999/rest/foo/bar/fcr:content'
    assert request.params == {'checksum': 'urn:sha1:8843d7f92416211de9ebb963ff4ce28125932878'}
    assert request.headers['Content-Disposition'] == 'attachment; filename="foo.txt"'
    assert request.headers['Content-Type'] == 'text/plain'
    assert request.data == b'foobar'


def test_create_content_put_request_minimal(client):
    request = client.create_content_put_request('/foo/bar', content=FedoraContent(b'foobar'))
    assert request.params == {}
    assert 'Content-Disposition' not in request.headers
    assert 'Content-Type' not in request.headers


@httpretty.activate
def test_execute(client):
    httpretty.register_uri(
        uri='http://localhost:9999/rest/foo/fcr:content',
        method=httpretty.PUT,
        status=409,
    )
    request = client.create_content_put_request('/foo', content=FedoraContent(BytesIO(b'foobar')))
    with client.execute(request, {201, 204}, detect_conflict=True) as result:
        assert result.outcome is Outcome.CONFLICT
        assert not result.ok
        assert result.status_code == 409
        assert result.reason == 'Conflict'
        assert result.uri == 'http://localhost:9999/rest/foo/fcr:content'
    assert httpretty.last_request().body == b'foobar'


@httpretty.activate
def test_execute_sends_checksum_param(client):
    httpretty.register_uri(
        uri='http://localhost:9999/rest/foo/fcr:content',
        method=httpretty.PUT,
        status=204,
    )
    content = FedoraContent(b'foobar', filename='foo.txt', checksum='urn:sha1:abc')
    with client.execute(client.create_content_put_request('/foo', content=content), {201, 204}) as result:
        assert result.ok
    assert httpretty.last_request().querystring == {'checksum': ['urn:sha1:abc']}
    assert httpretty.last_request().headers['Content-Disposition'] == 'attachment; filename="foo.txt"'


def test_request_connection_error(monkeypatch, client):
    def raise_connection_error(*args, **kwargs):
        raise ConnectionError('Connection refused')

    monkeypatch.setattr(Session, 'request', raise_connection_error)
    with pytest.raises(TransportError) as exc_info:
        client.request('GET', 'http://localhost:9999/rest/foo')
    assert str(exc_info.value) == 'Connection error: Connection refused'
    assert isinstance(exc_info.value.__cause__, ConnectionError)


def test_request_timeout_is_transport_error(monkeypatch, client):
    def raise_timeout(*args, **kwargs):
        raise ReadTimeout('Read timed out')

    monkeypatch.setattr(Session, 'request', raise_timeout)
    with pytest.raises(TransportError):
        client.request('GET', 'http://localhost:9999/rest/foo')


def test_timeout_passed_to_session(monkeypatch):
    calls = []

    def record_request(_session, method, url, **kwargs):
        calls.append(kwargs)
        return MockOKResponse()

    monkeypatch.setattr(Session, 'request', record_request)
    client = Client(endpoint=Endpoint(url='http://localhost:9999/rest'), timeout=12.5)
    client.request('GET', 'http://localhost:9999/rest')
    assert calls[0]['timeout'] == 12.5


def test_is_reachable(monkeypatch_request, client):
    monkeypatch_request(MockOKResponse)
    assert client.is_reachable()


def test_is_not_reachable(monkeypatch_request, client):
    monkeypatch_request(MockNotFoundResponse)
    assert not client.is_reachable()


def test_test_connection_failure(monkeypatch_request, client):
    monkeypatch_request(MockNotFoundResponse)
    with pytest.raises(TransportError):
        client.test_connection()


def test_exists(monkeypatch_request, client):
    monkeypatch_request(MockOKResponse)
    assert client.path_exists('/foo')


def test_does_not_exist(monkeypatch_request, client):
    monkeypatch_request(MockNotFoundResponse)
    assert not client.path_exists('/foo')


def test_forwarded_headers():
    client = Client(endpoint=Endpoint(
        url='http://localhost:8080/rest',
        external_url='https://repo.example.net:8443/',
    ))
    assert client.forwarded_host == 'repo.example.net:8443'
    assert client.forwarded_protocol == 'https'


def test_session_headers():
    client = Client(
        endpoint=Endpoint(url='http://localhost:9999/rest'),
        ua_string='fcrepo-client/1.0.0',
        on_behalf_of='jsmith',
    )
    assert client.session.headers['User-Agent'] == 'fcrepo-client/1.0.0'
    assert client.session.headers['On-Behalf-Of'] == 'jsmith'
    assert 'X-Forwarded-Host' not in client.session.headers


def test_client_cert_loaded_into_session():
    client = Client(
        endpoint=Endpoint(url='https://localhost:9999/rest'),
        auth=ClientCertAuth(cert='client-cert', key='client-key'),
    )
    assert client.session.cert == ('client-cert', 'client-key')


def test_server_cert():
    client = Client(endpoint=Endpoint(url='https://localhost:9999/rest'), server_cert='/path/to/ca.pem')
    assert client.session.verify == '/path/to/ca.pem'


class Foo:
    x_test_header = SessionHeaderAttribute('X-Header')

    def __init__(self):
        self.session = Session()


def test_session_header_attribute():
    # initially not set
    foo = Foo()
    assert 'X-Header' not in foo.session.headers

    # set the header
    foo.x_test_header = 'MyClient/1.0.0'
    assert foo.session.headers['X-Header'] == 'MyClient/1.0.0'

    # remove the header
    del foo.x_test_header
    assert 'X-Header' not in foo.session.headers

    # deleting again is harmless
    del foo.x_test_header


def test_build_sparql_update_empty():
    assert build_sparql_update(Graph(), Graph()) == ''


def test_build_sparql_update_inserts_only():
    inserts = Graph()
    inserts.add((URIRef('http://localhost:9999/rest/foo'), URIRef('http://purl.org/dc/terms/title'), Literal('Foo')))
    assert build_sparql_update(None, inserts) == (
        'INSERT DATA { <http://localhost:9999/rest/foo> <http://purl.org/dc/terms/title> "Foo" . }'
    )


def test_build_sparql_update_deletes_and_inserts():
    subject = URIRef('http://localhost:9999/rest/foo')
    title = URIRef('http://purl.org/dc/terms/title')
    deletes = Graph()
    deletes.add((subject, title, Literal('Foo')))
    inserts = Graph()
    inserts.add((subject, title, Literal('Bar')))
    assert build_sparql_update(deletes, inserts) == (
        'DELETE { <http://localhost:9999/rest/foo> <http://purl.org/dc/terms/title> "Foo" . } '
        'INSERT { <http://localhost:9999/rest/foo> <http://purl.org/dc/terms/title> "Bar" . } '
        'WHERE {}'
    )
