"""FastAPI application factory"""

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from finance_engine.api.middleware import RequestIDMiddleware, MetricsMiddleware
from finance_engine.api.v1 import accounts, cadence, debts, goals, planning, purchases, summary
from finance_engine.infrastructure.observability.logging import setup_logging
from finance_engine.config import settings

# Setup structured logging
setup_logging(settings.log_level)


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Finance Engine",
        description="Debt, goal, planning and summary projections for personal finance records",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

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
    app.include_router(cadence.router, prefix="/v1", tags=["cadence"])
    app.include_router(debts.router, prefix="/v1", tags=["debts"])
    app.include_router(purchases.router, prefix="/v1", tags=["purchases"])
    app.include_router(accounts.router, prefix="/v1", tags=["accounts"])
    app.include_router(goals.router, prefix="/v1", tags=["goals"])
    app.include_router(planning.router, prefix="/v1", tags=["planning"])
    app.include_router(summary.router, prefix="/v1", tags=["summary"])

    return app


app = create_app()
