"""
FastAPI application entry point.
Configures logging, routers and the metrics endpoint.
"""

import hmac

from fastapi import FastAPI, Header, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from audit_archiver.core.config import get_settings
from audit_archiver.core.logging import configure_logging, get_logger
from audit_archiver.modules.export.router import router as export_router

configure_logging()
logger = get_logger(__name__)


def create_application() -> FastAPI:
    """
    Application factory function.

    Creates the FastAPI application with the export router and metrics
    endpoint registered.
    """
    settings = get_settings()

    app = FastAPI(
        title=settings.project_name,
        version=settings.version,
        openapi_url=f"{settings.api_v1_prefix}/openapi.json",
    )

    @app.get("/health", tags=["Health"])
    async def health_check() -> dict[str, object]:
        missing = settings.missing_export_settings()
        return {
            "status": "healthy" if not missing else "unconfigured",
            "version": settings.version,
            "missing_settings": missing,
        }

    app.include_router(
        export_router,
        prefix=f"{settings.api_v1_prefix}/exports",
        tags=["Exports"],
    )

    @app.get("/metrics", include_in_schema=False)
    async def metrics_endpoint(
        authorization: str | None = Header(default=None),
    ) -> Response:
        if settings.environment != "development" or settings.metrics_auth_token:
            if not settings.metrics_auth_token:
                # No token configured outside development: hide the endpoint
                return Response(status_code=404)
            if not authorization or not authorization.startswith("Bearer "):
                return Response(status_code=401)
            provided = authorization.removeprefix("Bearer ")
            if not hmac.compare_digest(provided, settings.metrics_auth_token):
                return Response(status_code=401)

        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    logger.info("application_created", environment=settings.environment)
    return app


app = create_application()
