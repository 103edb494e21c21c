"""
COURIER - Core Types

Common types and dataclasses used throughout the library.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


# HTTP method constants
GET = "GET"
POST = "POST"
PUT = "PUT"
DELETE = "DELETE"

METHODS = (GET, POST, PUT, DELETE)
BODY_METHODS = (POST, PUT)

# HTTP response code categories
HTTP_RESPONSE_INFORMATION = 100
HTTP_RESPONSE_SUCCESS = 200
HTTP_RESPONSE_REDIRECTION = 300
HTTP_RESPONSE_CLIENT_ERROR = 400
HTTP_RESPONSE_SERVER_ERROR = 500

# Status reported when the attached upload path is not a regular file
NO_FILE = 48

# Status of a request whose response was never read
RESPONSE_CODE_UNSET = -1

DEFAULT_MAX_BUFFER_SIZE = 1024 * 1024


class BodyFormat(Enum):
    """Wire format of POST/PUT bodies."""

    JSON = "json"
    FORM = "form"


class Outcome(Enum):
    """Terminal outcome of a request."""

    SUCCESS = "success"
    FAILURE = "failure"
    CONNECTION_DROPPED = "connection_dropped"


class LifecycleState(Enum):
    """Lifecycle states of a request, in the order they are reached."""

    CREATED = "created"
    INITIALIZING = "initializing"
    TRANSFERRING = "transferring"
    COMPLETING = "completing"
    DONE = "done"


@dataclass(frozen=True)
class Header:
    """A single request header. Duplicate keys are allowed."""

    key: str
    value: str


@dataclass(frozen=True)
class TransferResult:
    """
    Result of the transfer step.

    `completed` is False when no response was ever read (DNS failure,
    connect/read timeout, socket reset). Such a result is reported as a
    dropped connection regardless of `status` and `body`.
    """

    status: int = RESPONSE_CODE_UNSET
    body: Optional[str] = None
    completed: bool = False

    @classmethod
    def dropped(cls, status: int = RESPONSE_CODE_UNSET) -> "TransferResult":
        """Create a result for a transfer that never read a response."""
        return cls(status=status, body=None, completed=False)

    @property
    def outcome(self) -> Outcome:
        if not self.completed:
            return Outcome.CONNECTION_DROPPED
        if response_category(self.status) == HTTP_RESPONSE_SUCCESS:
            return Outcome.SUCCESS
        return Outcome.FAILURE


def response_category(status: int) -> int:
    """
    Coarse status category: the status truncated to the hundred.

    Args:
        status: Raw HTTP status code

    Returns:
        One of the HTTP_RESPONSE_* categories for real statuses, 0 for
        unset ones
    """
    return int(status / 100) * 100
