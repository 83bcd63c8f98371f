"""Outcome kinds for the account lifecycle and the table mapping them to responses and audit events."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from schemas import Severity


class AuthOutcome(str, Enum):
    """Result of checking a username/password pair against the account store."""

    SUCCESS = "success"
    DISABLED = "disabled"
    LOCKED = "locked"
    BAD_CREDENTIALS = "bad_credentials"


class Outcome(str, Enum):
    REGISTERED = "registered"
    EMAIL_EXISTS = "email_exists"
    USERNAME_EXISTS = "username_exists"
    LOGGED_IN = "logged_in"
    DISABLED = "disabled"
    LOCKED = "locked"
    BAD_CREDENTIALS = "bad_credentials"
    ACTIVATED = "activated"
    TOKEN_INVALID = "token_invalid"
    ALREADY_ACTIVATED = "already_activated"


@dataclass(frozen=True, slots=True)
class OutcomeSpec:
    """User-facing message plus the audit events emitted once an outcome is reached.

    Audit messages are ``str.format`` templates receiving ``username``.
    """

    message: str
    error: bool
    audit: tuple[tuple[Severity, str], ...]


@dataclass(slots=True)
class AuthResult:
    outcome: Outcome
    error: bool
    message: str
    token: str | None = None


LOGIN_FAILURES: dict[AuthOutcome, Outcome] = {
    AuthOutcome.DISABLED: Outcome.DISABLED,
    AuthOutcome.LOCKED: Outcome.LOCKED,
    AuthOutcome.BAD_CREDENTIALS: Outcome.BAD_CREDENTIALS,
}


# DISABLED and LOCKED share their user text historically; their audit messages differ.
OUTCOMES: dict[Outcome, OutcomeSpec] = {
    Outcome.REGISTERED: OutcomeSpec(
        message="Please Check your Email To Activate your Account",
        error=False,
        audit=(
            (Severity.INFO, "{username} Has Successfully Been Registered"),
            (Severity.INFO, "{username} Activation Email Dispatched"),
        ),
    ),
    Outcome.EMAIL_EXISTS: OutcomeSpec(
        message="Email Already Exists",
        error=True,
        audit=((Severity.WARN, "Someone tried Registering With an Email That Already exists"),),
    ),
    Outcome.USERNAME_EXISTS: OutcomeSpec(
        message="UserName Already Exists",
        error=True,
        audit=((Severity.WARN, "Someone tried Registering With a UserName That Already exists"),),
    ),
    Outcome.LOGGED_IN: OutcomeSpec(
        message="Successfully Logged In",
        error=False,
        audit=((Severity.INFO, "{username} Successfully Logged In"),),
    ),
    Outcome.DISABLED: OutcomeSpec(
        message="Your Account Has Not been Activated",
        error=True,
        audit=((Severity.WARN, "{username} Tried To Login with a Disabled Account"),),
    ),
    Outcome.LOCKED: OutcomeSpec(
        message="Your Account Has Not Yet Been Activated",
        error=True,
        audit=((Severity.WARN, "{username} Tried To Login with a Locked Account"),),
    ),
    Outcome.BAD_CREDENTIALS: OutcomeSpec(
        message="Invalid Credentials",
        error=True,
        audit=((Severity.WARN, "{username} Submitted Invalid Login Credentials"),),
    ),
    Outcome.ACTIVATED: OutcomeSpec(
        message="Your Account Has Been Activated Successfully",
        error=False,
        audit=((Severity.INFO, "{username} has activated their account"),),
    ),
    Outcome.TOKEN_INVALID: OutcomeSpec(
        message="Your Activation Token No longer works",
        error=True,
        audit=((Severity.WARN, "Activation Token Is Expired Or Invalid"),),
    ),
    Outcome.ALREADY_ACTIVATED: OutcomeSpec(
        message="Your Account was already activated",
        error=True,
        audit=((Severity.WARN, "{username} Tried to activate Account again"),),
    ),
}
