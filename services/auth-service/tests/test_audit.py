"""Tests for the audit sinks."""

from __future__ import annotations

import logging

import fakeredis
import pytest

from polling_auth.audit import FanoutAuditSink, LoggingAuditSink, RedisAuditSink, RepositoryAuditSink
from schemas import AuditEvent, Severity

from conftest import FakeRepository, RecordingAuditSink


@pytest.fixture()
def redis_client() -> fakeredis.FakeStrictRedis:
    client = fakeredis.FakeStrictRedis()
    client.flushall()
    return client


def test_redis_sink_appends_events_to_stream(redis_client):
    sink = RedisAuditSink(redis_client, "test:audit")

    sink.publish(Severity.WARN, "alice Submitted Invalid Login Credentials", "AuthenticationService")
    sink.publish(Severity.INFO, "alice Successfully Logged In", "AuthenticationService")

    entries = redis_client.xrange("test:audit")
    assert len(entries) == 2
    first = AuditEvent.model_validate_json(entries[0][1][b"event"])
    assert first.severity == "WARN"
    assert first.origin == "AuthenticationService"
    assert first.message.startswith("alice")


def test_logging_sink_maps_severity_to_level(caplog):
    caplog.set_level(logging.INFO, logger="polling_auth.audit")
    sink = LoggingAuditSink()

    sink.publish(Severity.INFO, "registered", "AuthenticationService")
    sink.publish(Severity.WARN, "duplicate email", "AuthenticationService")
    sink.publish("ERROR", "broken", "AuthenticationService")

    levels = [record.levelno for record in caplog.records if record.name == "polling_auth.audit"]
    assert levels == [logging.INFO, logging.WARNING, logging.ERROR]
    assert "[AuthenticationService] duplicate email" in caplog.text


def test_repository_sink_writes_audit_rows():
    repository = FakeRepository()

    RepositoryAuditSink(repository).publish(Severity.INFO, "bob has activated their account", "AuthenticationService")

    assert len(repository.audit_log) == 1
    assert repository.audit_log[0].message == "bob has activated their account"


class BrokenSink:
    def publish(self, severity, message, origin) -> None:
        raise ConnectionError("redis down")


def test_fanout_keeps_delivering_when_one_sink_fails(caplog):
    recorder = RecordingAuditSink()
    fanout = FanoutAuditSink([BrokenSink(), recorder])

    fanout.publish(Severity.WARN, "Activation Token Is Expired Or Invalid", "AuthenticationService")

    assert recorder.events == [(Severity.WARN, "Activation Token Is Expired Or Invalid", "AuthenticationService")]
    assert "BrokenSink dropped an event" in caplog.text
