"""Domain-level request contracts and collaborator interfaces shared by multiple layers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

from schemas import Severity

from .user import User


@dataclass(slots=True)
class RegistrationInput:
    """Validated inputs required to register a new account."""

    username: str
    email: str
    password: str = field(repr=False)
    city: str = ""
    country: str = ""


class DuplicateAccountError(ValueError):
    """Raised by an account store when an insert collides with a unique field."""

    def __init__(self, field_name: str) -> None:
        super().__init__(f"{field_name} already exists")
        self.field_name = field_name


class AccountStore(Protocol):
    def exists_by_email(self, email: str) -> bool: ...

    def exists_by_username(self, username: str) -> bool: ...

    def find_by_username(self, username: str) -> User | None: ...

    def save(self, user: User) -> User:
        """Insert a new record or update an existing one by username.

        Inserts must raise :class:`DuplicateAccountError` instead of
        overwriting when the username or email is already taken.
        """
        ...

    def enable(self, username: str) -> bool:
        """Enable and unlock a pending account; ``False`` when it was already enabled."""
        ...


class AuditSink(Protocol):
    def publish(self, severity: Severity, message: str, origin: str) -> None: ...


class ActivationNotifier(Protocol):
    def send_activation(self, token: str, details: RegistrationInput) -> None: ...
