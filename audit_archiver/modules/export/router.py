"""
API Router for export runs.

Invoked by the scheduler (or a function trigger) once per interval.
"""

from fastapi import APIRouter, Body, HTTPException, status

from audit_archiver.core.errors import ArchiverError, ConfigError, TooSoonError
from audit_archiver.core.logging import get_logger
from audit_archiver.modules.export.schemas import ExportRequest, ExportResponse
from audit_archiver.modules.export.service import run_export

logger = get_logger(__name__)

router = APIRouter()


@router.post("/run", response_model=ExportResponse)
async def run_export_endpoint(
    request: ExportRequest | None = Body(default=None),
) -> ExportResponse:
    """Archive the audit events logged since the last archived batch."""
    overrides = request or ExportRequest()
    try:
        result = await run_export(
            max_events=overrides.max_events,
            min_elapsed_seconds=overrides.min_elapsed_seconds,
        )
    except TooSoonError as exc:
        logger.info("export_skipped_too_soon", reason=str(exc))
        raise HTTPException(status_code=exc.status_code, detail="Min time not elapsed") from exc
    except ConfigError as exc:
        logger.error("export_not_configured", error=str(exc))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Export hasn't been configured correctly yet!",
        ) from exc
    except ArchiverError as exc:
        logger.exception("export_failed")
        raise HTTPException(
            status_code=exc.status_code,
            detail="Error while running export.",
        ) from exc

    return ExportResponse(**result.model_dump())
