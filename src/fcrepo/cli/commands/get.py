import logging
import sys
from argparse import Namespace, FileType

from fcrepo.cli.commands import BaseCommand

logger = logging.getLogger(__name__)


def configure_cli(subparsers):
    parser = subparsers.add_parser(
        name='get',
        description='Download the binary content of a datastream'
    )
    parser.add_argument(
        '-o', '--output-file',
        help='file to write the content to; defaults to STDOUT',
        dest='output_file',
        type=FileType('wb'),
        action='store'
    )
    parser.add_argument(
        'path',
        help='path or URI of the datastream'
    )
    parser.set_defaults(cmd_name='get')


class Command(BaseCommand):
    def __call__(self, args: Namespace):
        datastream = self.repo.get_datastream(args.path, load=False)
        output_file = args.output_file or sys.stdout.buffer
        size = 0
        with datastream.get_content() as stream:
            for chunk in stream:
                output_file.write(chunk)
                size += len(chunk)
        output_file.flush()
        logger.info(f'Retrieved {size} byte(s) from {datastream.uri}')
