"""Salted one-way password hashing."""

from __future__ import annotations

import logging

from passlib.context import CryptContext

logger = logging.getLogger(__name__)


class CredentialHasher:
    """Hash and verify passwords through a passlib ``CryptContext``.

    PBKDF2-SHA256 is the default scheme; older schemes listed after it still
    verify and are flagged as deprecated.
    """

    def __init__(self, schemes: list[str] | None = None) -> None:
        self._context = CryptContext(
            schemes=schemes or ["pbkdf2_sha256"],
            deprecated="auto",
        )

    def hash(self, plaintext: str) -> str:
        return self._context.hash(plaintext)

    def verify(self, plaintext: str, digest: str | None) -> bool:
        """Return ``True`` when ``plaintext`` matches ``digest``; malformed digests never match."""
        if not digest:
            return False
        try:
            return self._context.verify(plaintext, digest)
        except (ValueError, TypeError):
            logger.warning("stored password hash has an unrecognised format")
            return False
