from argparse import Namespace
from dataclasses import dataclass
from importlib.metadata import version
from typing import Dict, Any

from fcrepo.client import Client
from fcrepo.repo import Repository, ConfigError


@dataclass
class FcrepoContext:
    config: Dict[str, Any] = None
    args: Namespace = None
    _repo: Repository = None

    @property
    def version(self):
        return version('fcrepo-client')

    @property
    def repo(self) -> Repository:
        if self._repo is None:
            try:
                self._repo = Repository.from_config(self.config.get('REPOSITORY', {}))
            except ConfigError as e:
                raise RuntimeError(f"{e} (section 'REPOSITORY')") from e
            delegated_user = getattr(self.args, 'delegated_user', None)
            if delegated_user is not None:
                self._repo.client.delegated_user = delegated_user
        return self._repo

    @property
    def client(self) -> Client:
        return self.repo.client
