"""Error taxonomy for the authentication core.

Every failure the core reports is an ``AuthServiceError`` carrying a
machine-readable category, a message key for the localized description and the
HTTP status the API layer should answer with.
"""

import logging
from contextlib import contextmanager
from typing import Any, Optional

from displayables_auth.core.messages import MessageKey

logger = logging.getLogger(__name__)


class AuthServiceError(Exception):
    """Base class for all errors raised by the authentication core."""

    category: str = "internal"
    status_code: int = 500

    def __init__(self, key: MessageKey, detail: Optional[str] = None, **params: Any):
        super().__init__(detail or key.value)
        self.key = key
        self.detail = detail
        self.params = params


class ValidationError(AuthServiceError):
    """Missing or malformed username/password input."""

    category = "validation"
    status_code = 400


class AuthenticationError(AuthServiceError):
    """Wrong password, or a rejected/expired/malformed/mis-signed credential."""

    category = "authentication"
    status_code = 401


class ProviderError(AuthServiceError):
    """External provider unreachable, returned an error, or no usable profile.

    Never surfaced to clients: adapters convert it to ``AuthenticationError``.
    """

    category = "provider"
    status_code = 401

    def __init__(self, reason: str):
        super().__init__(MessageKey.INVALID_TOKEN, detail=reason)


class InternalError(AuthServiceError):
    """Unexpected failure anywhere in a flow (persistence, programming error)."""

    category = "internal"
    status_code = 500


class DuplicateUsernameError(Exception):
    """Raised by the user store when the username unique constraint is violated."""

    def __init__(self, username: str):
        super().__init__(f"Username '{username}' already exists")
        self.username = username


@contextmanager
def internal_error_boundary(key: MessageKey, **params: Any):
    """Re-raise anything that is not an ``AuthServiceError`` as ``InternalError``.

    The triggering exception's message is kept as ``detail`` for diagnostics.
    """
    try:
        yield
    except AuthServiceError:
        raise
    except Exception as e:
        logger.error(f"Unexpected error ({key.value}): {e}", exc_info=True)
        raise InternalError(key, detail=str(e), **params) from e
