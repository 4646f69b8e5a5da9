"""
Process-wide credential context.

The host application owns the credential (a WordPress REST nonce or a bearer
token) and refreshes it on its own schedule. The client only reads it, once
per request, through ``get_credential``.
"""

import logging

from .config import settings

logger = logging.getLogger(__name__)


class CredentialContext:
    """Holds the current credential for the whole process."""

    def __init__(self, credential: str | None = None):
        self._credential = credential

    def set(self, credential: str | None) -> None:
        self._credential = credential
        logger.debug("Credential %s", "updated" if credential else "cleared")

    def get(self) -> str | None:
        return self._credential

    def clear(self) -> None:
        self.set(None)


credential_context = CredentialContext()


def set_credential(credential: str | None) -> None:
    """Install the credential attached to authenticated requests."""
    credential_context.set(credential)


def get_credential() -> str | None:
    """Return the current credential, falling back to the configured one."""
    return credential_context.get() or settings.credential
