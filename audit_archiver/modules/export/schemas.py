"""Pydantic schemas for export runs."""

from typing import Any

from pydantic import BaseModel, Field


class ExportRequest(BaseModel):
    """Per-invocation overrides of the configured run limits."""

    max_events: int | None = Field(default=None, ge=1)
    min_elapsed_seconds: int | None = Field(default=None, ge=0)


class ExportWindow(BaseModel):
    """Events covered by one archive object."""

    start_timestamp: str
    end_timestamp: str
    events: list[dict[str, Any]]


class ExportResult(BaseModel):
    """Outcome of a completed run; ``object_name`` is None when nothing was written."""

    start_timestamp: str
    end_timestamp: str | None = None
    event_count: int = 0
    object_name: str | None = None


class ExportResponse(ExportResult):
    done: str = "yes!"
