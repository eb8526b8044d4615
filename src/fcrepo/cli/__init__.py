import importlib.metadata
import logging
import logging.config
import sys
from argparse import ArgumentParser, FileType
from copy import deepcopy
from importlib import import_module
from pkgutil import iter_modules
from typing import Optional, Sequence

import yaml

from fcrepo.cli import commands
from fcrepo.cli.context import FcrepoContext
from fcrepo.repo import RepositoryError
from fcrepo.utils import DEFAULT_LOGGING_OPTIONS, envsubst

logger = logging.getLogger(__name__)
version = importlib.metadata.version('fcrepo-client')


def load_commands(subparsers):
    # load all defined subcommands from the fcrepo.cli.commands package, using
    # introspection
    command_modules = {}
    for finder, name, ispkg in iter_modules(commands.__path__):
        module = import_module(commands.__name__ + '.' + name)
        if hasattr(module, 'configure_cli'):
            module.configure_cli(subparsers)
            command_modules[name] = module
    return command_modules


def get_parser() -> tuple[ArgumentParser, dict]:
    parser = ArgumentParser(
        prog='fcrepo',
        description='Command line client for Fedora 4 repositories.'
    )
    parser.set_defaults(cmd_name=None)

    common_required = parser.add_mutually_exclusive_group(required=True)
    common_required.add_argument(
        '-c', '--config',
        help='Path to configuration file.',
        action='store',
        dest='config_file',
        type=FileType('r')
    )
    common_required.add_argument(
        '-V', '--version',
        help='Print version and exit.',
        action='version',
        version=version
    )

    parser.add_argument(
        '-v', '--verbose',
        help='increase the verbosity of the status output',
        action='store_true'
    )
    parser.add_argument(
        '-q', '--quiet',
        help='decrease the verbosity of the status output',
        action='store_true'
    )
    parser.add_argument(
        '--on-behalf-of',
        help='delegate repository operations to this username',
        dest='delegated_user',
        action='store'
    )

    subparsers = parser.add_subparsers(title='commands')

    command_modules = load_commands(subparsers)
    return parser, command_modules


def get_logging_options(repo_config: dict, verbose: bool = False, quiet: bool = False) -> dict:
    if 'LOGGING_CONFIG' in repo_config:
        with open(repo_config['LOGGING_CONFIG'], 'r') as logging_config_file:
            logging_options = yaml.safe_load(logging_config_file)
    else:
        logging_options = deepcopy(DEFAULT_LOGGING_OPTIONS)

    # manipulate console verbosity
    if 'console' in logging_options.get('handlers', {}):
        if verbose:
            logging_options['handlers']['console']['level'] = 'DEBUG'
        elif quiet:
            logging_options['handlers']['console']['level'] = 'WARNING'

    return logging_options


def main(argv: Optional[Sequence[str]] = None):
    """Parse args and handle options."""
    parser, command_modules = get_parser()

    # parse command line args
    args = parser.parse_args(argv)

    # if no subcommand was selected, display the help
    if args.cmd_name is None:
        parser.print_help()
        sys.exit(0)

    config = envsubst(yaml.safe_load(args.config_file) or {})
    context = FcrepoContext(config=config, args=args)

    # configure logging
    logging.config.dictConfig(get_logging_options(config.get('REPOSITORY', {}), args.verbose, args.quiet))

    # get the selected subcommand
    command_module = command_modules[args.cmd_name]

    # dispatch to the selected subcommand
    try:
        context.client.ua_string = f'fcrepo-client/{context.version} ({args.cmd_name})'
        logger.debug(f'Client User-Agent set to "{context.client.ua_string}"')

        command = command_module.Command(context=context)

        logger.info(f'Loaded repo configuration from {args.config_file.name}')
        if args.delegated_user is not None:
            logger.info(f'Running repository operations on behalf of {args.delegated_user}')
        command(args)
    except (RepositoryError, RuntimeError) as e:
        # something failed, exit with non-zero status
        logger.error(str(e))
        sys.exit(1)
    except KeyboardInterrupt:
        # aborted due to Ctrl+C
        sys.exit(2)


if __name__ == "__main__":
    main()
