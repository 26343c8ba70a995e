"""
Budgeted retrieval of IDCS audit events.

The AuditEvents resource returns at most 1000 records per request. A run
asks for at most ``max_events`` records: the first page is fetched alone to
learn ``totalResults``, then any further pages the budget allows are fetched
concurrently and appended in index order.
"""

from __future__ import annotations

import asyncio
from typing import Any

import httpx

from audit_archiver.core.errors import MalformedResponseError
from audit_archiver.core.http import ensure_scheme, read_json, send
from audit_archiver.core.logging import get_logger

logger = get_logger(__name__)

AUDIT_EVENTS_PATH = "/admin/v1/AuditEvents"
IDCS_MAX_PAGE_SIZE = 1000

AuditEvent = dict[str, Any]


def plan_additional_pages(
    total_results: int,
    max_events: int,
    page_size: int = IDCS_MAX_PAGE_SIZE,
) -> list[tuple[int, int]]:
    """Return ``(start_index, count)`` for every page after the first.

    Indexes are 1-based. Pages stop when the remaining budget is spent or the
    next index reaches ``total_results``, whichever comes first.
    """
    if max_events <= page_size or total_results <= page_size:
        return []
    pages: list[tuple[int, int]] = []
    remaining = max_events - page_size
    start_index = page_size + 1
    while remaining > 0 and start_index < total_results:
        pages.append((start_index, min(remaining, page_size)))
        remaining -= page_size
        start_index += page_size
    return pages


class AuditEventFetcher:
    """Bearer-authenticated reader for the AuditEvents resource."""

    def __init__(self, client: httpx.AsyncClient, idcs_base_url: str, token: str) -> None:
        self._client = client
        self._url = f"{ensure_scheme(idcs_base_url)}{AUDIT_EVENTS_PATH}"
        self._headers = {"Authorization": f"Bearer {token}"}

    async def fetch_page(self, since: str, count: int, start_index: int) -> dict[str, Any]:
        """Request one page of events newer than ``since``, oldest first."""
        response = await send(
            self._client,
            "GET",
            self._url,
            params={
                "filter": f'timestamp gt "{since}"',
                "count": count,
                "startIndex": start_index,
                "sortBy": "timestamp",
                "sortOrder": "ascending",
            },
            headers=self._headers,
        )
        return read_json(response)

    async def fetch(self, since: str, max_events: int) -> list[AuditEvent]:
        """Fetch up to ``max_events`` events with ``timestamp`` after ``since``."""
        first = await self.fetch_page(since, min(max_events, IDCS_MAX_PAGE_SIZE), 1)
        resources = first.get("Resources")
        total_results = first.get("totalResults")
        if not isinstance(resources, list) or not isinstance(total_results, int):
            raise MalformedResponseError("Audit Events response from IDCS malformed.")

        events: list[AuditEvent] = list(resources)
        pages = plan_additional_pages(total_results, max_events)
        logger.debug(
            "audit_events_first_page",
            since=since,
            total_results=total_results,
            received=len(events),
            additional_pages=len(pages),
        )
        if not pages:
            return events

        try:
            async with asyncio.TaskGroup() as group:
                tasks = [
                    group.create_task(self.fetch_page(since, count, start_index))
                    for start_index, count in pages
                ]
        except ExceptionGroup as failures:
            # The group has cancelled the sibling pages; report the first failure.
            raise failures.exceptions[0]

        # Tasks are kept in start index order, not completion order.
        for (start_index, _count), task in zip(pages, tasks, strict=True):
            page_resources = task.result().get("Resources")
            if not isinstance(page_resources, list):
                raise MalformedResponseError(
                    f"Audit Events response from IDCS malformed at startIndex {start_index}."
                )
            events.extend(page_resources)
        return events
