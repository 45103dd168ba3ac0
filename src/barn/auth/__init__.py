"""Authorization for barn.

Decides whether a request may run an executable from the configured
users, their groups' filename patterns, and the ``passwordless`` bypass.

Public API:
    authorize -- Pure decision function returning Allow or Failure
    parse_basic_credentials -- Authorization header parser
"""

from barn.auth.engine import authorize, is_safe_filename, parse_basic_credentials

__all__ = ["authorize", "is_safe_filename", "parse_basic_credentials"]
