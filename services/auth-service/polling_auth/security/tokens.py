"""Utilities for issuing and validating session and activation JWTs."""

from __future__ import annotations

import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

import jwt

from ..config import Settings


class TokenPurpose(str, Enum):
    SESSION = "session"
    ACTIVATION = "activation"


class InvalidTokenError(ValueError):
    """Raised when a token fails signature, issuer, expiry or purpose checks."""


@dataclass(frozen=True, slots=True)
class TokenSettings:
    """Signing key and lifetimes handed to :class:`TokenService` at construction."""

    secret: str
    issuer: str
    session_ttl_seconds: int = 3600
    activation_ttl_seconds: int = 86400
    enforce_purpose: bool = True
    algorithm: str = "HS256"

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenSettings":
        return cls(
            secret=settings.jwt_secret,
            issuer=settings.jwt_issuer,
            session_ttl_seconds=settings.session_ttl_seconds,
            activation_ttl_seconds=settings.activation_ttl_seconds,
            enforce_purpose=settings.token_enforce_purpose,
        )


@dataclass(frozen=True, slots=True)
class TokenClaims:
    subject: str
    purpose: TokenPurpose
    issued_at: int
    expires_at: int


class TokenService:
    """Stateless issuer/verifier for HMAC-signed tokens.

    Validity depends only on the signature, the issuer and ``exp``; nothing
    is stored, so there is no revocation.
    """

    def __init__(self, settings: TokenSettings, clock: Callable[[], float] = time.time) -> None:
        self._settings = settings
        self._clock = clock

    def ttl_for(self, purpose: TokenPurpose) -> int:
        if purpose is TokenPurpose.ACTIVATION:
            return self._settings.activation_ttl_seconds
        return self._settings.session_ttl_seconds

    def issue(
        self,
        subject: str,
        purpose: TokenPurpose,
        ttl: int | None = None,
        *,
        now: float | None = None,
    ) -> str:
        """Create a signed JWT for ``subject``.

        Parameters
        ----------
        subject:
            Username embedded in the ``sub`` claim.
        purpose:
            Signed ``purpose`` claim; checked on decode when purpose scoping is enabled.
        ttl:
            Lifetime in seconds; defaults to the configured TTL for ``purpose``.
        now:
            Issuance time as a UNIX timestamp, defaults to the current time.
        """
        issued_at = int(self._clock() if now is None else now)
        lifetime = self.ttl_for(purpose) if ttl is None else ttl
        payload: dict[str, Any] = {
            "iss": self._settings.issuer,
            "sub": subject,
            "purpose": purpose.value,
            "iat": issued_at,
            "exp": issued_at + lifetime,
        }
        return jwt.encode(payload, self._settings.secret, algorithm=self._settings.algorithm)

    def decode(self, token: str, purpose: TokenPurpose | None = None) -> TokenClaims:
        """Verify ``token`` and return its claims.

        Raises
        ------
        InvalidTokenError
            When the token is malformed, tampered, expired, from another issuer,
            or carries a different purpose than ``purpose`` while scoping is on.
        """
        try:
            payload = jwt.decode(
                token,
                self._settings.secret,
                algorithms=[self._settings.algorithm],
                issuer=self._settings.issuer,
                options={"verify_exp": False, "require": ["exp", "iat", "sub"]},
            )
        except jwt.PyJWTError as exc:
            raise InvalidTokenError(str(exc)) from exc

        # still valid during the second named by exp
        try:
            expires_at = int(payload["exp"])
        except (TypeError, ValueError) as exc:
            raise InvalidTokenError("exp claim is not a timestamp") from exc
        if self._clock() > expires_at:
            raise InvalidTokenError("token has expired")

        try:
            claimed = TokenPurpose(payload.get("purpose"))
        except ValueError as exc:
            raise InvalidTokenError("unknown token purpose") from exc

        if purpose is not None and self._settings.enforce_purpose and claimed is not purpose:
            raise InvalidTokenError(f"expected a {purpose.value} token, got {claimed.value}")

        return TokenClaims(
            subject=payload["sub"],
            purpose=claimed,
            issued_at=payload["iat"],
            expires_at=expires_at,
        )

    def validate(self, token: str, purpose: TokenPurpose | None = None) -> bool:
        try:
            self.decode(token, purpose)
        except InvalidTokenError:
            return False
        return True

    def extract_subject(self, token: str, purpose: TokenPurpose | None = None) -> str:
        return self.decode(token, purpose).subject


def strip_bearer(authorization: str | None) -> str | None:
    """Return the raw token from an ``Authorization: Bearer <token>`` header value."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()
