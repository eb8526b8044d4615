from argparse import Namespace

from fcrepo.cli.commands import BaseCommand
from fcrepo.namespaces import BINARY_MIXIN
from fcrepo.repo import FedoraDatastream


def configure_cli(subparsers):
    parser = subparsers.add_parser(
        name='info',
        description='Display information about a resource'
    )
    parser.add_argument(
        'path',
        help='path or URI of the resource'
    )
    parser.set_defaults(cmd_name='info')


class Command(BaseCommand):
    def __call__(self, args: Namespace):
        resource = self.repo.get_object(args.path)
        if str(BINARY_MIXIN) in resource.mixins:
            datastream = self.repo.get_datastream(args.path, load=False)
            datastream.replace_graph(resource.graph)
            resource = datastream

        print(f'URI: {resource.uri}')
        print(f'Mixins: {", ".join(sorted(resource.mixins))}')
        if resource.created_date is not None:
            print(f'Created: {resource.created_date.isoformat()}')
        if resource.last_modified_date is not None:
            print(f'Last modified: {resource.last_modified_date.isoformat()}')
        if isinstance(resource, FedoraDatastream):
            if resource.has_content:
                print(f'Filename: {resource.filename}')
                print(f'Content type: {resource.content_type}')
                print(f'Size: {resource.content_size}')
                print(f'Digest: {resource.content_digest}')
            else:
                print('No content')
