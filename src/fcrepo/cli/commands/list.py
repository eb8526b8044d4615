import logging
from argparse import Namespace

from fcrepo.cli.commands import BaseCommand
from fcrepo.repo import FedoraDatastream

logger = logging.getLogger(__name__)


def configure_cli(subparsers):
    parser = subparsers.add_parser(
        name='list',
        aliases=['ls'],
        description='List the children of objects in the repository'
    )
    parser.add_argument(
        '-m', '--mixin',
        help='Only list children with this mixin type, e.g. "fedora:binary"',
        action='store'
    )
    # long mode to print more than just the URIs (name modeled after ls -l)
    parser.add_argument(
        '-l', '--long',
        help='Display the type of each child besides its URI',
        action='store_true'
    )
    parser.add_argument(
        'paths', nargs='+',
        help='paths or URIs of repository objects to list'
    )
    parser.set_defaults(cmd_name='list')


class Command(BaseCommand):
    def __call__(self, args: Namespace):
        for path in args.paths:
            obj = self.repo.get_object(path)
            for child in sorted(obj.get_children(mixin=args.mixin), key=lambda c: c.uri):
                if args.long:
                    kind = 'datastream' if isinstance(child, FedoraDatastream) else 'object'
                    print(f'{child.uri} {kind}')
                else:
                    print(child.uri)
