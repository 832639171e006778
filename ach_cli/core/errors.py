"""
Exceptions for ach CLI.

Library code raises these; the command line entry point turns them into a
diagnostic on stderr and a non-zero exit status.
"""

from __future__ import annotations


class AchError(Exception):
    """Base exception for ach errors."""

    exit_code = 2


class PlatformError(AchError):
    """Raised when a request to the remote platform fails.

    ``status`` is the HTTP status code, or ``None`` for network errors.
    """

    def __init__(self, status: int | None, message: str, url: str | None = None):
        self.status = status
        self.message = message
        self.url = url
        super().__init__(f"[HTTP {status}] {message}" if status else message)


class CollectionMissing(PlatformError):
    """Raised when a doctype has never been created on the instance."""


class CorruptCredential(AchError):
    """Raised when a stored token file exists but cannot be parsed."""

    def __init__(self, path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Token file {path} is corrupt: {reason}")


class PortUnavailable(AchError):
    """Raised when the OAuth callback listener cannot bind its port."""

    def __init__(self, port: int, reason: str):
        self.port = port
        super().__init__(f"Cannot listen on port {port} for the OAuth callback: {reason}")


class RegistrationFailed(AchError):
    """Raised when the platform rejects client registration or token exchange."""


class AuthorizationTimeout(AchError):
    """Raised when the OAuth redirect is not received in time."""


class FetchFailed(AchError):
    """Raised when fetching the documents of a doctype fails."""

    def __init__(self, doctype: str, cause: Exception):
        self.doctype = doctype
        self.cause = cause
        super().__init__(f"Cannot fetch {doctype}: {cause}")


class RevocationFailed(AchError):
    """Raised internally when stale clients cannot be revoked.

    Never propagated out of :func:`ach_cli.core.session.revoke_stale_clients`.
    """


class ScriptNotFound(AchError):
    """Raised when a migration script name is not registered."""

    exit_code = 1

    def __init__(self, name: str, location: str):
        self.name = name
        self.location = location
        super().__init__(f"{name} does not exist in {location}")
