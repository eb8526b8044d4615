import logging
from typing import Optional, NoReturn

from requests import Response

from fcrepo.client import OperationResult, Outcome, reason_phrase

logger = logging.getLogger(__name__)


class RepositoryError(Exception):
    """Raised when a repository operation fails. When the failure was an
    HTTP error response, `response` is set and `status_code` and `reason`
    report its status line."""
    def __init__(self, *args, uri: str = None, response: Response = None):
        super().__init__(*args)
        self.uri = uri
        """URI of the request or resource that failed"""

        self.response = response
        """HTTP response that triggered this error."""

    @property
    def status_code(self) -> Optional[int]:
        return self.response.status_code if self.response is not None else None

    @property
    def reason(self) -> Optional[str]:
        return reason_phrase(self.response) if self.response is not None else None


class ForbiddenError(RepositoryError):
    """Raised on a 403 Forbidden response."""
    pass


class NotFoundError(RepositoryError):
    """Raised on a 404 Not Found response."""
    pass


class ChecksumMismatchError(RepositoryError):
    """Raised on a 409 Conflict response to a content update, meaning the
    content did not match the checksum sent with it."""
    pass


class DigestParseError(RepositoryError):
    """Raised when the content digest stored for a datastream is not a valid URI."""
    pass


def raise_for_outcome(result: OperationResult, action: str) -> NoReturn:
    """Log and raise the `RepositoryError` subclass that matches the outcome
    of an unsuccessful operation. `action` describes what was attempted, and
    is used in the error message (e.g., "create", "update content of").

    Raises `ValueError` if called with a successful result."""
    if result.ok:
        raise ValueError(f'Cannot raise an error for the successful request to {result.uri}')

    if result.outcome is Outcome.FORBIDDEN:
        error_class = ForbiddenError
        message = f'Request to {action} {result.uri} is not authorized'
    elif result.outcome is Outcome.NOT_FOUND:
        error_class = NotFoundError
        message = f'Resource {result.uri} does not exist'
    elif result.outcome is Outcome.CONFLICT:
        error_class = ChecksumMismatchError
        message = f'Checksum mismatch for resource {result.uri}'
    else:
        error_class = RepositoryError
        message = f'Unable to {action} {result.uri}: {result.status_code} {result.reason}'

    logger.error(message)
    raise error_class(message, uri=result.uri, response=result.response)
