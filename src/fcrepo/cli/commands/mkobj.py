import logging
from argparse import Namespace

from fcrepo.cli.commands import BaseCommand

logger = logging.getLogger(__name__)


def configure_cli(subparsers):
    parser = subparsers.add_parser(
        name='mkobj',
        description='Create a new object in the repository'
    )
    parser.add_argument(
        '-p', '--path',
        help='create the object at exactly this path instead of letting the repository assign one',
        action='store_true'
    )
    parser.add_argument(
        'container', nargs='?',
        help='path of the parent object; defaults to the configured RELPATH',
    )
    parser.set_defaults(cmd_name='mkobj')


class Command(BaseCommand):
    def __call__(self, args: Namespace):
        if args.path:
            if args.container is None:
                raise RuntimeError('A path is required with the --path option')
            obj = self.repo.create_object(args.container)
        elif args.container is None:
            obj = self.repo.create_object()
        else:
            obj = self.repo.get_object(args.container, load=False).create_object()
        print(obj.uri)
