"""
Access-control error taxonomy.

Denial is not an error: a failed capability check after a successful lookup is
an ordinary decision. These exceptions describe the cases where no decision
could be made (lookup failure, timeout, unparseable role) or where a caller
attempted an administrator-only mutation.
"""

from typing import Optional


class AccessError(Exception):
    """Base class for access-control failures."""


class UnknownRole(AccessError, ValueError):
    """A role string at the boundary did not match any known role."""

    def __init__(self, value: object):
        self.value = value
        super().__init__(f"Unknown role: {value!r}")


class AccessLookupError(AccessError):
    """Transient failure while looking up a role or approval status."""

    def __init__(self, message: str, identity_id: Optional[str] = None, kind: str = "role"):
        self.identity_id = identity_id
        self.kind = kind
        super().__init__(message)


class AccessTimeout(AccessLookupError):
    """A lookup did not complete within the configured bound."""


class UnauthorizedMutation(AccessError):
    """An administrator-only action was attempted without canManageUsers."""
