"""Error taxonomy for the reference-resolution cache.

Every error carries an HTTP-like ``status`` and a user-facing ``message`` so
request handlers can turn any failure into a ``(status, message)`` pair without
knowing which layer raised it.
"""
from typing import Optional

INTERNAL_ERROR_MESSAGE = "Internal server error"


class SecretCacheError(Exception):
    """Base class for all resolution failures."""

    status = 500
    message = INTERNAL_ERROR_MESSAGE

    def __init__(self, detail: Optional[str] = None, status: Optional[int] = None,
                 message: Optional[str] = None):
        if status is not None:
            self.status = status
        if message is not None:
            self.message = message
        self.detail = detail or self.message
        super().__init__(self.detail)


class MalformedReference(SecretCacheError):
    """Backend returned a reference with no usable trailing identifier."""


class NotFound(SecretCacheError):
    """Cache or backend reports that a named item is absent."""

    status = 404
    message = "Not found"


class ContainerNotFound(NotFound):
    message = "Container not found"


class SecretNotFound(NotFound):
    message = "Secret not found"


class BackendUnavailable(SecretCacheError):
    """Barbican could not be reached, or answered with an unreadable body."""

    def __init__(self, url: str, detail: Optional[str] = None):
        self.url = url
        super().__init__(detail or f"Barbican request to {url} failed")


class BackendRejected(SecretCacheError):
    """Barbican answered with an unexpected status code."""

    def __init__(self, status: int, message: str, body: str = ""):
        self.body = body
        super().__init__(f"{message} (status {status}): {body}", status=status, message=message)


class CacheUnavailable(SecretCacheError):
    """The shared cache tier failed for a reason other than a missing field."""


class TokenError(SecretCacheError):
    """No authentication token could be obtained from Keystone."""
