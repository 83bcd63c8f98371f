"""Authentication service orchestrating registration, login, and account activation."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from .contracts import (
    AccountStore,
    ActivationNotifier,
    AuditSink,
    DuplicateAccountError,
    RegistrationInput,
)
from .outcomes import LOGIN_FAILURES, OUTCOMES, AuthOutcome, AuthResult, Outcome
from .user import Address, User
from ..dispatch import Dispatcher, InlineDispatcher
from ..metrics import AUTH_OUTCOMES
from ..security.passwords import CredentialHasher
from ..security.tokens import InvalidTokenError, TokenPurpose, TokenService, strip_bearer

logger = logging.getLogger(__name__)

AUDIT_ORIGIN = "AuthenticationService"


@dataclass(slots=True)
class AuthDependencies:
    """Everything the service needs, passed in explicitly at construction."""

    repository: AccountStore
    tokens: TokenService
    hasher: CredentialHasher
    audit: AuditSink
    notifier: ActivationNotifier
    dispatcher: Dispatcher = field(default_factory=InlineDispatcher)


class AuthenticationService:
    """Account lifecycle workflows: register, activate, login.

    Every public operation computes an :class:`Outcome`, then hands it to
    :meth:`_finish`, which emits the audit events listed for that outcome in
    :data:`OUTCOMES` and builds the result. Audit events and activation
    e-mails go through the dispatcher and never fail the operation.
    """

    def __init__(self, deps: AuthDependencies) -> None:
        """Store dependencies used to orchestrate persistence, hashing and token issuance."""
        self._repository = deps.repository
        self._tokens = deps.tokens
        self._hasher = deps.hasher
        self._audit = deps.audit
        self._notifier = deps.notifier
        self._dispatcher = deps.dispatcher

    def register(self, payload: RegistrationInput) -> AuthResult:
        """Create a disabled account and send it an activation token."""
        if self._repository.exists_by_email(payload.email):
            return self._finish("register", Outcome.EMAIL_EXISTS, payload.username)
        if self._repository.exists_by_username(payload.username):
            return self._finish("register", Outcome.USERNAME_EXISTS, payload.username)

        user = User(
            username=payload.username,
            email=payload.email,
            password_hash=self._hasher.hash(payload.password),
            address=Address(city=payload.city, country=payload.country),
            enabled=False,
        )
        try:
            self._repository.save(user)
        except DuplicateAccountError as exc:
            # lost a race with a concurrent registration
            outcome = Outcome.EMAIL_EXISTS if exc.field_name == "email" else Outcome.USERNAME_EXISTS
            return self._finish("register", outcome, payload.username)

        activation_token = self._tokens.issue(payload.username, TokenPurpose.ACTIVATION)
        self._dispatcher.submit(self._notifier.send_activation, activation_token, payload)
        return self._finish("register", Outcome.REGISTERED, payload.username)

    def verify(self, username: str, password: str) -> AuthOutcome:
        """Check credentials against the store.

        Account state is checked before the password (lock first, then
        enablement), so locked and disabled accounts are reported even when
        the password is wrong.
        """
        user = self._repository.find_by_username(username)
        if user is None:
            return AuthOutcome.BAD_CREDENTIALS
        if user.account_locked:
            return AuthOutcome.LOCKED
        if not user.enabled:
            return AuthOutcome.DISABLED
        if not self._hasher.verify(password, user.password_hash):
            return AuthOutcome.BAD_CREDENTIALS
        return AuthOutcome.SUCCESS

    def login(self, username: str, password: str) -> AuthResult:
        """Issue a bearer session token when the credentials check out."""
        verdict = self.verify(username, password)
        if verdict is not AuthOutcome.SUCCESS:
            return self._finish("login", LOGIN_FAILURES[verdict], username)

        user = self._repository.find_by_username(username)
        if user is None:
            return self._finish("login", Outcome.BAD_CREDENTIALS, username)
        session_token = self._tokens.issue(user.username, TokenPurpose.SESSION)
        return self._finish("login", Outcome.LOGGED_IN, username, token=f"Bearer {session_token}")

    def activate(self, token: str) -> AuthResult:
        """Enable the account named by an activation token."""
        try:
            username = self._tokens.extract_subject(token, TokenPurpose.ACTIVATION)
        except InvalidTokenError as exc:
            logger.debug("activation token rejected: %s", exc)
            return self._finish("activate", Outcome.TOKEN_INVALID, None)

        user = self._repository.find_by_username(username)
        if user is None:
            return self._finish("activate", Outcome.TOKEN_INVALID, username)
        if user.enabled or not self._repository.enable(username):
            return self._finish("activate", Outcome.ALREADY_ACTIVATED, username)
        return self._finish("activate", Outcome.ACTIVATED, username)

    def authenticate_session(self, authorization: str | None) -> str | None:
        """Return the username behind a ``Bearer`` session token, or ``None``."""
        token = strip_bearer(authorization)
        if token is None:
            return None
        try:
            return self._tokens.extract_subject(token, TokenPurpose.SESSION)
        except InvalidTokenError as exc:
            logger.debug("session token rejected: %s", exc)
            return None

    def get_account(self, username: str) -> User | None:
        return self._repository.find_by_username(username)

    def _finish(
        self,
        operation: str,
        outcome: Outcome,
        username: str | None,
        *,
        token: str | None = None,
    ) -> AuthResult:
        spec = OUTCOMES[outcome]
        for severity, template in spec.audit:
            message = template.format(username=username or "anonymous")
            self._dispatcher.submit(self._audit.publish, severity, message, AUDIT_ORIGIN)
        AUTH_OUTCOMES.labels(operation=operation, outcome=outcome.value).inc()
        return AuthResult(
            outcome=outcome,
            error=spec.error,
            message=spec.message,
            token=None if spec.error else token,
        )
