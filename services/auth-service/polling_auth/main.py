"""FastAPI application wiring for the authentication service."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import redis
import uvicorn
from fastapi import FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from psycopg_pool import ConnectionPool

from .api.routes import router as v1_router
from .audit import FanoutAuditSink, LoggingAuditSink, RedisAuditSink, RepositoryAuditSink
from .config import Settings, get_settings
from .dispatch import BackgroundDispatcher
from .domain.contracts import ActivationNotifier, AuditSink
from .domain.service import AuthDependencies, AuthenticationService
from .notifications import LoggingNotifier, SmtpActivationNotifier
from .repository import UserRepository
from .security.passwords import CredentialHasher
from .security.tokens import TokenService, TokenSettings

settings = get_settings()
logger = logging.getLogger(__name__)


def build_audit_sink(settings: Settings, repository: UserRepository) -> AuditSink:
    """Combine the audit backends named in ``AUDIT_BACKENDS``."""
    sinks: list[AuditSink] = []
    for backend in settings.audit_backends:
        if backend == "log":
            sinks.append(LoggingAuditSink())
        elif backend == "redis":
            if not settings.redis_url:
                raise ValueError("AUDIT_BACKENDS includes redis but REDIS_URL is not set")
            sinks.append(RedisAuditSink(redis.from_url(settings.redis_url), settings.audit_channel))
        elif backend == "postgres":
            sinks.append(RepositoryAuditSink(repository))
        else:
            raise ValueError(f"unknown audit backend: {backend}")
    if not sinks:
        sinks.append(LoggingAuditSink())
    logger.info("audit backends: %s", ", ".join(settings.audit_backends) or "log")
    return FanoutAuditSink(sinks)


def build_notifier(settings: Settings) -> ActivationNotifier:
    if settings.notifier_backend == "smtp":
        return SmtpActivationNotifier(settings)
    if settings.notifier_backend != "log":
        raise ValueError(f"unknown notifier backend: {settings.notifier_backend}")
    return LoggingNotifier(settings.activation_url)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialise shared resources (Postgres pool, side-effect workers, services) for the app lifecycle."""
    pool = ConnectionPool(settings.database_url, open=False)
    pool.open()
    dispatcher = BackgroundDispatcher(max_workers=settings.side_effect_workers)
    repository = UserRepository(pool)
    app.state.pool = pool
    app.state.auth_service = AuthenticationService(
        AuthDependencies(
            repository=repository,
            tokens=TokenService(TokenSettings.from_settings(settings)),
            hasher=CredentialHasher(),
            audit=build_audit_sink(settings, repository),
            notifier=build_notifier(settings),
            dispatcher=dispatcher,
        )
    )
    try:
        yield
    finally:
        dispatcher.shutdown(wait=True)
        pool.close()
        pool.wait_close()


app = FastAPI(title=settings.app_name, version=settings.version, lifespan=lifespan)

# CORS for the polling web client during local development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    max_age=600,
)


@app.get("/healthz", tags=["health"])
def healthz() -> dict[str, str]:
    """Return a minimal readiness indicator used by orchestration systems."""
    return {"status": "ok"}


@app.get("/metrics", tags=["health"])
def metrics() -> Response:
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


app.include_router(v1_router)


def run() -> None:
    logging.basicConfig(level=settings.log_level)
    uvicorn.run(app, host=settings.http_host, port=settings.http_port)
