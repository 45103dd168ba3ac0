"""Core domain models for barn.

These models represent the data flowing through a request: the users
and groups loaded from configuration, the incoming request for an
executable, the authorization outcome, and the tagged output chunks
read from the spawned process.
"""

from __future__ import annotations

import enum
import html
import re
from pathlib import Path
from typing import Union

from pydantic import BaseModel, ConfigDict, Field

PASSWORDLESS_GROUP = "passwordless"


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class ErrorKind(str, enum.Enum):
    """Category of a request failure, each with a fixed HTTP status."""

    BAD_REQUEST = "bad_request"
    UNAUTHORIZED = "unauthorized"
    NOT_FOUND = "not_found"
    INTERNAL = "internal"

    @property
    def status_code(self) -> int:
        return _STATUS_CODES[self]


_STATUS_CODES = {
    ErrorKind.BAD_REQUEST: 400,
    ErrorKind.UNAUTHORIZED: 401,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.INTERNAL: 500,
}


class StreamSource(str, enum.Enum):
    """Which output channel of the process a chunk was read from.

    The value doubles as the CSS class of the rendered fragment.
    """

    STDOUT = "stdout"
    STDERR = "stderr"


# ---------------------------------------------------------------------------
# Configuration Models
# ---------------------------------------------------------------------------


class User(BaseModel):
    """A configured user. Passwords are stored and compared as plain text."""

    model_config = ConfigDict(frozen=True)

    username: str
    password: str
    groups: frozenset[str] = Field(
        default_factory=frozenset, description="Names of the groups this user belongs to"
    )


class Group(BaseModel):
    """A named filename pattern granting access to matching executables.

    The pattern is compiled once when the configuration is validated and
    is matched against the bare filename, never a path.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    regex: re.Pattern[str] = Field(description="Pattern searched for in the filename")

    @property
    def is_passwordless(self) -> bool:
        return self.name == PASSWORDLESS_GROUP

    def matches(self, filename: str) -> bool:
        """Whether the pattern occurs anywhere in ``filename``."""
        return self.regex.search(filename) is not None


# ---------------------------------------------------------------------------
# Request / Decision Models
# ---------------------------------------------------------------------------


class Credentials(BaseModel):
    """HTTP Basic credentials as supplied by the client."""

    model_config = ConfigDict(frozen=True)

    username: str
    password: str | None = Field(
        default=None, description="None when the header carried no ':' separator"
    )


class ExecutableRequest(BaseModel):
    """A request to run one executable from the root directory."""

    model_config = ConfigDict(frozen=True)

    filename: str = Field(description="The raw path segment from the URL")
    credentials: Credentials | None = None


class Allow(BaseModel):
    """Permission to invoke the requested executable."""

    model_config = ConfigDict(frozen=True)


class Failure(BaseModel):
    """A failure at any stage of a request, rendered as a templated page."""

    model_config = ConfigDict(frozen=True)

    kind: ErrorKind
    message: str

    @property
    def status_code(self) -> int:
        return self.kind.status_code


AuthDecision = Union[Allow, Failure]


# ---------------------------------------------------------------------------
# Output Models
# ---------------------------------------------------------------------------


class StreamChunk(BaseModel):
    """One or more complete lines read from a single output channel."""

    model_config = ConfigDict(frozen=True)

    source: StreamSource
    data: bytes

    def lines(self) -> list[str]:
        """Decode the payload and split it into display lines."""
        text = self.data.decode("utf-8", errors="replace")
        if text.endswith("\n"):
            text = text[:-1]
        return [line.removesuffix("\r") for line in text.split("\n")]

    def to_html(self) -> bytes:
        """Render each line as a ``<pre>`` fragment tagged with its source."""
        return "".join(
            f'<pre class="{self.source.value}">{html.escape(line)}</pre>\n'
            for line in self.lines()
        ).encode("utf-8")


def executable_path(root: Path, filename: str) -> Path:
    """Resolve a request filename against the executables' root."""
    return root / filename
