import hashlib
import logging
import os
from typing import Mapping, BinaryIO

DEFAULT_LOGGING_OPTIONS = {
    'version': 1,
    'formatters': {
        'full': {
            'format': '%(levelname)s|%(asctime)s|%(threadName)s|%(name)s|%(message)s'
        },
        'messageonly': {
            'format': '%(message)s'
        }
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'level': 'INFO',
            'formatter': 'messageonly',
            'stream': 'ext://sys.stderr'
        },
    },
    'loggers': {
        '__main__': {
            'level': 'DEBUG',
            'handlers': ['console'],
            'propagate': False
        },
        'fcrepo': {
            'level': 'DEBUG',
            'handlers': ['console'],
            'propagate': False
        },
        # urllib3 logs every connection at DEBUG level
        'urllib3': {
            'level': 'WARNING',
        },
    },
    'root': {
        'level': 'DEBUG'
    }
}
logger = logging.getLogger(__name__)

CHUNK_SIZE = 8192


def envsubst(value: str | list | dict, env: Mapping[str, str] = None) -> str | list | dict:
    """
    Recursively replace `${VAR_NAME}` placeholders in value with the values of the
    corresponding keys of env. If env is not given, it defaults to the environment
    variables in os.environ.

    Any placeholders that do not have a corresponding key in the env dictionary
    are left as is.

    :param value: String, list, or dictionary to search for `${VAR_NAME}` placeholders.
    :param env: Dictionary of values to use as replacements. If not given, defaults
        to `os.environ`.
    :return: If `value` is a string, returns the result of replacing `${VAR_NAME}` with the
        corresponding `value` from env. If `value` is a list, returns a new list where each
        item in `value` replaced with the result of calling `envsubst()` on that item. If
        `value` is a dictionary, returns a new dictionary where each item in `value` is replaced
        with the result of calling `envsubst()` on that item.
    """
    if env is None:
        env = os.environ
    if isinstance(value, str):
        if '${' in value:
            try:
                return value.replace('${', '{').format(**env)
            except KeyError as e:
                missing_key = str(e.args[0])
                logger.warning(f'Environment variable ${{{missing_key}}} not found')
                # for a missing key, just return the string without substitution
                return envsubst(value, {missing_key: f'${{{missing_key}}}', **env})
        else:
            return value
    elif isinstance(value, list):
        return [envsubst(v, env) for v in value]
    elif isinstance(value, dict):
        return {k: envsubst(v, env) for k, v in value.items()}
    else:
        return value


def sha1_urn(stream: BinaryIO) -> str:
    """Compute the SHA-1 checksum of the remaining bytes in `stream`, and
    return it as a `urn:sha1:` URI, the form Fedora accepts in the `checksum`
    request parameter.

    ```pycon
    >>> from io import BytesIO
    >>> sha1_urn(BytesIO(b'foobar'))
    'urn:sha1:8843d7f92416211de9ebb963ff4ce28125932878'
    ```
    """
    sha1 = hashlib.sha1()
    for block in iter(lambda: stream.read(CHUNK_SIZE), b''):
        sha1.update(block)
    return 'urn:sha1:' + sha1.hexdigest()
