"""Authorization engine deciding whether a request may run an executable.

``authorize`` is a pure function of the settings and the request: it
performs no logging and has no side effects beyond checking that the
requested file exists. Every denial is returned as a Failure carrying
the message and status shown to the client.
"""

from __future__ import annotations

import base64
import os
import re

from fastapi.security.utils import get_authorization_scheme_param

from barn.config.settings import Settings
from barn.domain.models import (
    Allow,
    AuthDecision,
    Credentials,
    ErrorKind,
    ExecutableRequest,
    Failure,
    executable_path,
)

# Starts with an alphanumeric, underscore or hyphen; no slashes, no leading dot.
FILENAME_PATTERN = re.compile(r"[a-zA-Z0-9_\-][a-zA-Z0-9_\-.]*")

DISALLOWED_FILENAME = Failure(kind=ErrorKind.BAD_REQUEST, message="Disallowed filename")
NON_EXISTENT_EXECUTABLE = Failure(
    kind=ErrorKind.BAD_REQUEST, message="Non-existent executable"
)
NO_PASSWORD = Failure(kind=ErrorKind.BAD_REQUEST, message="No password provided")
INVALID_CREDENTIALS = Failure(kind=ErrorKind.BAD_REQUEST, message="Invalid credentials")
NO_ACCESS = Failure(
    kind=ErrorKind.UNAUTHORIZED, message="You don't have access to this executable"
)


def is_safe_filename(filename: str) -> bool:
    return FILENAME_PATTERN.fullmatch(filename) is not None


def authorize(settings: Settings, request: ExecutableRequest) -> AuthDecision:
    """Decide whether ``request`` may invoke its executable.

    Checks run in order and the first failing one decides:

    1. the filename is safe (rejects traversal before touching the disk)
    2. ``root/filename`` is an existing regular file
    3. a ``passwordless`` group matches, which allows any caller
    4. credentials with a password were supplied
    5. they match a configured user exactly
    6. one of that user's groups matches the filename
    """
    filename = request.filename

    if not is_safe_filename(filename):
        return DISALLOWED_FILENAME

    # isfile treats any stat error (including ENAMETOOLONG) as missing
    if not os.path.isfile(executable_path(settings.options.root, filename)):
        return NON_EXISTENT_EXECUTABLE

    if any(g.is_passwordless and g.matches(filename) for g in settings.groups):
        return Allow()

    credentials = request.credentials
    if credentials is None or credentials.password is None:
        return NO_PASSWORD

    user = next(
        (
            u
            for u in settings.users
            if u.username == credentials.username and u.password == credentials.password
        ),
        None,
    )
    if user is None:
        return INVALID_CREDENTIALS

    if any(g.matches(filename) for g in settings.groups if g.name in user.groups):
        return Allow()
    return NO_ACCESS


def parse_basic_credentials(authorization: str | None) -> Credentials | None:
    """Extract Basic credentials from an ``Authorization`` header value.

    Returns None for a missing header, another scheme, or a payload that
    isn't ASCII base64 of UTF-8 text. A payload without ``:`` yields
    credentials with no password.
    """
    scheme, param = get_authorization_scheme_param(authorization)
    if not authorization or scheme.lower() != "basic":
        return None
    try:
        decoded = base64.b64decode(param, validate=True).decode("utf-8")
    except ValueError:
        return None
    username, separator, password = decoded.partition(":")
    return Credentials(username=username, password=password if separator else None)
