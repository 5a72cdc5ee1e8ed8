"""FastAPI application factory"""

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from checkout_sdk.api.errors import register_error_handlers
from checkout_sdk.api.middleware import RequestIDMiddleware, MetricsMiddleware
from checkout_sdk.api.sessions import SessionRegistry
from checkout_sdk.api.v1 import checkout, emi
from checkout_sdk.infrastructure.observability.logging import setup_logging
from checkout_sdk.config import settings

# Setup structured logging
setup_logging(settings.log_level)


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Checkout SDK",
        description="Payment checkout orchestration, EMI plans and MPIN authorization",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.state.sessions = SessionRegistry(max_sessions=settings.max_sessions)

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_error_handlers(app)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(emi.router, prefix="/v1", tags=["emi"])
    app.include_router(checkout.router, prefix="/v1", tags=["checkout"])

    return app


app = create_app()
