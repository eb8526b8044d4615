import logging
import mimetypes
import os
from argparse import Namespace

from fcrepo.cli.commands import BaseCommand
from fcrepo.client import FedoraContent
from fcrepo.utils import sha1_urn

logger = logging.getLogger(__name__)


def configure_cli(subparsers):
    parser = subparsers.add_parser(
        name='put',
        description='Upload binary content to a datastream, creating it if necessary'
    )
    parser.add_argument(
        '-m', '--mimetype',
        help='MIME type of the content; guessed from the filename if not given',
        action='store'
    )
    parser.add_argument(
        '--checksum',
        help='send the SHA-1 checksum of the file for the repository to verify',
        action='store_true'
    )
    parser.add_argument(
        'path',
        help='path or URI of the datastream'
    )
    parser.add_argument(
        'filename',
        help='file to upload'
    )
    parser.set_defaults(cmd_name='put')


class Command(BaseCommand):
    def __call__(self, args: Namespace):
        mimetype = args.mimetype or mimetypes.guess_type(args.filename)[0] or 'application/octet-stream'
        with open(args.filename, 'rb') as file:
            checksum = None
            if args.checksum:
                checksum = sha1_urn(file)
                file.seek(0)
            content = FedoraContent(
                content=file,
                filename=os.path.basename(args.filename),
                content_type=mimetype,
                checksum=checksum,
            )
            if self.repo.exists(args.path):
                datastream = self.repo.get_datastream(args.path, load=False)
                datastream.update_content(content)
                logger.info(f'Updated content of {datastream.uri}')
            else:
                datastream = self.repo.create_datastream(args.path, content)
        print(datastream.uri)
