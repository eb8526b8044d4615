from base64 import b64encode

import pytest
from requests import Session, Request
from requests.auth import HTTPBasicAuth
from requests_jwtauth import HTTPBearerAuth, JWTSecretAuth

from fcrepo.client.auth import ClientCertAuth, get_authenticator


@pytest.fixture
def get_request():
    return Request(method='get', url='http://localhost:9999/')


def test_auth_factory_no_config():
    with pytest.raises(TypeError):
        get_authenticator(None)  # noqa


def test_auth_factory_empty_config():
    assert get_authenticator({}) is None


def test_auth_factory_provided_jwt_default_credentials(get_request):
    config = {'AUTH_TOKEN': 'abcd-1234'}
    auth = get_authenticator(config)
    assert isinstance(auth, HTTPBearerAuth)

    session = Session()
    session.auth = auth
    r = session.prepare_request(get_request)

    assert 'Authorization' in r.headers
    assert r.headers['Authorization'] == 'Bearer abcd-1234'


def test_auth_factory_jwt_secret(get_request):
    # noinspection SpellCheckingInspection
    config = {'JWT_SECRET': '833eba93802fdfce0e3d852b0bcb624f974551864e31e5d57920471f4a6a77e7'}
    auth = get_authenticator(config)
    assert isinstance(auth, JWTSecretAuth)

    session = Session()
    session.auth = auth
    r = session.prepare_request(get_request)

    assert 'Authorization' in r.headers
    assert r.headers['Authorization'] == f'Bearer {auth.token.serialize()}'


def test_auth_factory_client_cert(get_request):
    config = {'CLIENT_CERT': 'client-cert', 'CLIENT_KEY': 'abcd-1234'}
    auth = get_authenticator(config)
    assert isinstance(auth, ClientCertAuth)
    assert auth.cert == 'client-cert'
    assert auth.key == 'abcd-1234'

    session = Session()
    session.auth = auth
    r = session.prepare_request(get_request)

    assert 'Authorization' not in r.headers


def test_auth_factory_fedora_user(get_request):
    config = {'FEDORA_USER': 'user', 'FEDORA_PASSWORD': 'password'}
    auth = get_authenticator(config)
    assert isinstance(auth, HTTPBasicAuth)

    session = Session()
    session.auth = auth
    r = session.prepare_request(get_request)
    basic_credentials = b64encode(f"{config['FEDORA_USER']}:{config['FEDORA_PASSWORD']}".encode()).decode()
    assert r.headers['Authorization'] == f'Basic {basic_credentials}'


def test_auth_precedence_order():
    # Verify that get_authenticator uses the following precedence order
    # 1) AUTH_TOKEN
    # 2) JWT_SECRET
    # 3) CLIENT_CERT and CLIENT_KEY
    # 4) FEDORA_USER and FEDORA_PASSWORD
    config = {
        'AUTH_TOKEN': 'abcd-1234',
        'JWT_SECRET': '833eba93802fdfce0e3d852b0bcb624f974551864e31e5d57920471f4a6a77e7',
        'CLIENT_CERT': 'client-cert',
        'CLIENT_KEY': 'abcd-1234',
        'FEDORA_USER': 'user',
        'FEDORA_PASSWORD': 'password',
    }
    assert isinstance(get_authenticator(config), HTTPBearerAuth)

    del config['AUTH_TOKEN']
    assert isinstance(get_authenticator(config), JWTSecretAuth)

    del config['JWT_SECRET']
    assert isinstance(get_authenticator(config), ClientCertAuth)

    del config['CLIENT_CERT']
    del config['CLIENT_KEY']
    assert isinstance(get_authenticator(config), HTTPBasicAuth)
