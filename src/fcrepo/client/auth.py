from typing import Mapping, Any, Optional

from requests import PreparedRequest
from requests.auth import AuthBase, HTTPBasicAuth
from requests_jwtauth import HTTPBearerAuth, JWTSecretAuth


class ClientCertAuth(AuthBase):
    """Authenticate using a TLS client certificate and its private key. The
    `Client` loads the pair into its session; requests pass through unchanged."""
    def __init__(self, cert: str, key: str):
        self.cert = cert
        self.key = key

    def __call__(self, request: PreparedRequest) -> PreparedRequest:
        return request


def get_authenticator(config: Mapping[str, Any]) -> Optional[AuthBase]:
    """Choose an authentication method from the keys present in the
    repository `config`, in this order of precedence:

    1. `AUTH_TOKEN`: a pre-issued bearer token
    2. `JWT_SECRET`: a secret used to sign a fresh JWT bearer token
    3. `CLIENT_CERT` and `CLIENT_KEY`: a TLS client certificate
    4. `FEDORA_USER` and `FEDORA_PASSWORD`: HTTP Basic authentication

    Returns `None` if none of these are configured."""
    if 'AUTH_TOKEN' in config:
        return HTTPBearerAuth(token=config['AUTH_TOKEN'])
    elif 'JWT_SECRET' in config:
        return JWTSecretAuth(
            secret=config['JWT_SECRET'],
            claims={
                'sub': 'fcrepo-client',
                'iss': 'fcrepo-client',
                'role': 'fedoraAdmin'
            }
        )
    elif 'CLIENT_CERT' in config and 'CLIENT_KEY' in config:
        return ClientCertAuth(
            cert=config['CLIENT_CERT'],
            key=config['CLIENT_KEY'],
        )
    elif 'FEDORA_USER' in config and 'FEDORA_PASSWORD' in config:
        return HTTPBasicAuth(
            username=config['FEDORA_USER'],
            password=config['FEDORA_PASSWORD'],
        )
    else:
        return None
