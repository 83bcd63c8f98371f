from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone
from threading import Lock

import pytest

from polling_auth.domain.contracts import DuplicateAccountError, RegistrationInput
from polling_auth.domain.service import AuthDependencies, AuthenticationService
from polling_auth.domain.user import User
from polling_auth.security.passwords import CredentialHasher
from polling_auth.security.tokens import TokenService, TokenSettings
from schemas import AuditEvent

TEST_SECRET = "test-secret-0123456789abcdef0123456789abcdef"


class FakeRepository:
    """In-memory account store mimicking the Postgres constraints."""

    def __init__(self) -> None:
        self.users: dict[str, User] = {}
        self.audit_log: list[AuditEvent] = []
        self._lock = Lock()

    def exists_by_email(self, email: str) -> bool:
        return any(user.email.lower() == email.lower() for user in self.users.values())

    def exists_by_username(self, username: str) -> bool:
        return username in self.users

    def find_by_username(self, username: str) -> User | None:
        user = self.users.get(username)
        return replace(user) if user else None

    def save(self, user: User) -> User:
        with self._lock:
            if user.is_new:
                if self.exists_by_email(user.email):
                    raise DuplicateAccountError("email")
                if self.exists_by_username(user.username):
                    raise DuplicateAccountError("username")
                user = replace(user, created_at=datetime.now(timezone.utc))
            self.users[user.username] = user
            return replace(user)

    def enable(self, username: str) -> bool:
        with self._lock:
            user = self.users.get(username)
            if user is None or user.enabled:
                return False
            user.enabled = True
            user.account_locked = False
            return True

    def write_audit_event(self, event: AuditEvent) -> None:
        self.audit_log.append(event)


class RecordingAuditSink:
    def __init__(self) -> None:
        self.events: list[tuple[str, str, str]] = []

    def publish(self, severity, message: str, origin: str) -> None:
        self.events.append((severity, message, origin))

    def severities(self) -> list[str]:
        return [severity for severity, _, _ in self.events]


class RecordingNotifier:
    def __init__(self) -> None:
        self.sent: list[tuple[str, RegistrationInput]] = []

    def send_activation(self, token: str, details: RegistrationInput) -> None:
        self.sent.append((token, details))

    def token_for(self, username: str) -> str:
        return next(token for token, details in self.sent if details.username == username)


@pytest.fixture
def token_settings() -> TokenSettings:
    return TokenSettings(
        secret=TEST_SECRET,
        issuer="polling.test",
        session_ttl_seconds=600,
        activation_ttl_seconds=900,
    )


@pytest.fixture
def tokens(token_settings) -> TokenService:
    return TokenService(token_settings)


@pytest.fixture
def hasher() -> CredentialHasher:
    return CredentialHasher()


@pytest.fixture
def repository() -> FakeRepository:
    return FakeRepository()


@pytest.fixture
def audit_sink() -> RecordingAuditSink:
    return RecordingAuditSink()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def service(repository, tokens, hasher, audit_sink, notifier) -> AuthenticationService:
    return AuthenticationService(
        AuthDependencies(
            repository=repository,
            tokens=tokens,
            hasher=hasher,
            audit=audit_sink,
            notifier=notifier,
        )
    )


def registration(username: str, email: str, password: str = "pw1") -> RegistrationInput:
    return RegistrationInput(
        username=username,
        email=email,
        password=password,
        city="Nairobi",
        country="Kenya",
    )
