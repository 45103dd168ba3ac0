"""Domain models for barn.

This package contains the users and groups, the request and decision
values, and the output chunk types shared by the authorization engine,
the process pipeline and the HTTP endpoint. All models use Pydantic v2
and are frozen.
"""

from barn.domain.models import (
    PASSWORDLESS_GROUP,
    Allow,
    AuthDecision,
    Credentials,
    ErrorKind,
    ExecutableRequest,
    Failure,
    Group,
    StreamChunk,
    StreamSource,
    User,
)

__all__ = [
    "PASSWORDLESS_GROUP",
    "Allow",
    "AuthDecision",
    "Credentials",
    "ErrorKind",
    "ExecutableRequest",
    "Failure",
    "Group",
    "StreamChunk",
    "StreamSource",
    "User",
]
