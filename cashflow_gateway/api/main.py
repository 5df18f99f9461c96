"""FastAPI application factory"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from cashflow_gateway.api.dependencies import domain_error_to_http, get_request_id
from cashflow_gateway.api.middleware import RequestIDMiddleware, MetricsMiddleware
from cashflow_gateway.api.v1 import debts, forecast, projections
from cashflow_gateway.domain.exceptions import DomainException
from cashflow_gateway.infrastructure.observability.logging import setup_logging
from cashflow_gateway.config import settings

setup_logging(settings.log_level)


def create_app() -> FastAPI:
    """Build the stateless projection service: middleware, probes and v1 routers"""
    app = FastAPI(
        title="Cashflow Gateway",
        description="Cash-flow projection, debt payoff and balance forecast service",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Last added runs first, so request ids exist before latency is recorded
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    @app.exception_handler(DomainException)
    async def handle_domain_error(request: Request, exc: DomainException):
        # Domain errors that escape a router unmapped
        error = domain_error_to_http(exc, get_request_id(request))
        return JSONResponse(status_code=error.status_code, content={"detail": error.detail})

    @app.get("/health")
    def health_check():
        return {
            "status": "ok",
            "service": settings.service_name,
            "max_occurrences": settings.max_occurrences,
            "max_payoff_months": settings.max_payoff_months,
        }

    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    app.include_router(projections.router, prefix="/v1", tags=["projections"])
    app.include_router(debts.router, prefix="/v1", tags=["debts"])
    app.include_router(forecast.router, prefix="/v1", tags=["forecast"])

    return app


app = create_app()
