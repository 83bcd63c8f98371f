"""Activation e-mail delivery."""

from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage
from urllib.parse import urlencode

from .config import Settings
from .domain.contracts import RegistrationInput

logger = logging.getLogger(__name__)


def build_activation_link(base_url: str, token: str) -> str:
    separator = "&" if "?" in base_url else "?"
    return f"{base_url}{separator}{urlencode({'token': token})}"


def compose_activation_message(
    *, sender: str, link: str, details: RegistrationInput
) -> EmailMessage:
    """Build the plain-text activation e-mail for a freshly registered account."""
    msg = EmailMessage()
    msg["Subject"] = "Activate your polling account"
    msg["From"] = sender
    msg["To"] = details.email
    msg.set_content(
        f"Hi {details.username},\n\n"
        "Thanks for registering. Open the link below to activate your account:\n\n"
        f"{link}\n\n"
        "If you did not create this account you can ignore this message.\n"
    )
    return msg


class LoggingNotifier:
    """Development notifier that logs the activation link instead of sending mail."""

    def __init__(self, activation_url: str) -> None:
        self._activation_url = activation_url

    def send_activation(self, token: str, details: RegistrationInput) -> None:
        link = build_activation_link(self._activation_url, token)
        logger.info("activation link for %s <%s>: %s", details.username, details.email, link)


class SmtpActivationNotifier:
    """Send activation e-mails synchronously over SMTP."""

    def __init__(self, settings: Settings, *, timeout: float = 10.0) -> None:
        self._settings = settings
        self._timeout = timeout

    def send_activation(self, token: str, details: RegistrationInput) -> None:
        settings = self._settings
        msg = compose_activation_message(
            sender=settings.mail_from,
            link=build_activation_link(settings.activation_url, token),
            details=details,
        )
        with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=self._timeout) as server:
            if settings.smtp_use_tls:
                server.starttls()
            if settings.smtp_username:
                server.login(settings.smtp_username, settings.smtp_password)
            server.send_message(msg)
        logger.info("activation e-mail sent to %s", details.email)
