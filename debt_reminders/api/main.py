"""FastAPI application factory"""

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from debt_reminders.api.middleware import RequestIDMiddleware, MetricsMiddleware
from debt_reminders.api.v1 import alerts, cron, dashboard, debts, email, reminders
from debt_reminders.infrastructure.observability.logging import setup_logging
from debt_reminders.config import settings

# Setup structured logging
setup_logging(settings.log_level)


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Debt Reminders",
        description="Debt ledger, collection alerts and reminder digests",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Last added = first executed
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    app.include_router(alerts.router, prefix="/v1", tags=["alerts"])
    app.include_router(reminders.router, prefix="/v1", tags=["reminders"])
    app.include_router(dashboard.router, prefix="/v1", tags=["dashboard"])
    app.include_router(debts.router, prefix="/v1", tags=["debts"])
    app.include_router(email.router, prefix="/v1", tags=["email"])
    app.include_router(cron.router, prefix="/v1", tags=["cron"])

    return app


app = create_app()
