"""Audit sinks receiving lifecycle events from the authentication service."""

from __future__ import annotations

import logging
from typing import Iterable

from redis import Redis

from schemas import AuditEvent, Severity

from .domain.contracts import AuditSink

logger = logging.getLogger(__name__)

_LOG_LEVELS = {
    Severity.INFO: logging.INFO,
    Severity.WARN: logging.WARNING,
    Severity.ERROR: logging.ERROR,
}


class LoggingAuditSink:
    """Write audit events to the ``polling_auth.audit`` logger at a matching level."""

    def __init__(self, audit_logger: logging.Logger | None = None) -> None:
        self._logger = audit_logger or logging.getLogger("polling_auth.audit")

    def publish(self, severity: Severity, message: str, origin: str) -> None:
        level = _LOG_LEVELS.get(Severity(severity), logging.INFO)
        self._logger.log(level, "[%s] %s", origin, message)


class RedisAuditSink:
    """Append audit events to a capped Redis stream consumed by the real-time log viewer."""

    def __init__(self, client: Redis, stream: str, *, max_length: int = 10_000) -> None:
        self._client = client
        self._stream = stream
        self._max_length = max_length

    def publish(self, severity: Severity, message: str, origin: str) -> None:
        event = AuditEvent(severity=severity, message=message, origin=origin)
        self._client.xadd(
            self._stream,
            {"event": event.model_dump_json()},
            maxlen=self._max_length,
            approximate=True,
        )


class RepositoryAuditSink:
    """Persist audit events through the account repository's audit table."""

    def __init__(self, repository) -> None:
        self._repository = repository

    def publish(self, severity: Severity, message: str, origin: str) -> None:
        self._repository.write_audit_event(
            AuditEvent(severity=severity, message=message, origin=origin)
        )


class FanoutAuditSink:
    """Deliver each event to every configured sink; one failing sink does not stop the others."""

    def __init__(self, sinks: Iterable[AuditSink]) -> None:
        self._sinks = list(sinks)

    def publish(self, severity: Severity, message: str, origin: str) -> None:
        for sink in self._sinks:
            try:
                sink.publish(severity, message, origin)
            except Exception as exc:
                logger.error("audit sink %s dropped an event: %s", type(sink).__name__, exc)
