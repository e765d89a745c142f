"""FastAPI application factory"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from finia_gateway.api.middleware import RequestIDMiddleware, MetricsMiddleware
from finia_gateway.api.v1 import webhook
from finia_gateway.infrastructure.clients.classifier import ChatCompletionClient
from finia_gateway.infrastructure.clients.ledger import LedgerClient
from finia_gateway.infrastructure.database.models import Base
from finia_gateway.infrastructure.database.session import build_engine, build_session_factory
from finia_gateway.infrastructure.observability.logging import setup_logging
from finia_gateway.config import Settings, settings as default_settings
from finia_gateway.utils.locks import KeyedLocks

# Setup structured logging
setup_logging(default_settings.log_level, default_settings.service_name)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Create and configure FastAPI application"""
    settings = settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        engine = build_engine(settings.database_url)
        Base.metadata.create_all(bind=engine)
        app.state.session_factory = build_session_factory(engine)
        app.state.completion_client = ChatCompletionClient(
            base_url=settings.classifier_api_base,
            api_key=settings.classifier_api_key,
            model=settings.classifier_model,
            timeout=settings.http_timeout_seconds,
            temperature=settings.classifier_temperature,
        )
        app.state.ledger_client = (
            LedgerClient(settings.ledger_webhook_url, timeout=settings.http_timeout_seconds)
            if settings.ledger_backend == "webhook"
            else None
        )
        try:
            yield
        finally:
            await app.state.completion_client.aclose()
            if app.state.ledger_client is not None:
                await app.state.ledger_client.aclose()
            engine.dispose()

    app = FastAPI(
        title="Finia Gateway",
        description="Conversational bookkeeping assistant webhook",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.user_locks = KeyedLocks()

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(webhook.router, prefix="/v1", tags=["webhook"])

    return app


app = create_app()
