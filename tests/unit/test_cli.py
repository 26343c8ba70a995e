"""Tests for the one-shot export command."""

import json
from unittest.mock import AsyncMock, patch

import pytest

from audit_archiver.cli import EXIT_FAILED, EXIT_OK, EXIT_TOO_SOON, main
from audit_archiver.core.errors import AuthError, TooSoonError
from audit_archiver.modules.export.schemas import ExportResult

RUN_EXPORT = "audit_archiver.cli.run_export"


def test_successful_run_prints_summary(capsys: pytest.CaptureFixture[str]) -> None:
    result = ExportResult(
        start_timestamp="2020-09-08T01:30:10.000Z",
        end_timestamp="2020-09-08T01:45:59.120Z",
        event_count=2,
        object_name="2020-09-08T01:30:10.000Z-2020-09-08T01:45:59.120Z-idcs-audit-events.json",
    )
    with patch(RUN_EXPORT, AsyncMock(return_value=result)) as run:
        code = main(["--max-events", "500", "--min-elapsed-seconds", "60"])

    assert code == EXIT_OK
    run.assert_awaited_once_with(max_events=500, min_elapsed_seconds=60)
    summary = json.loads(capsys.readouterr().out)
    assert summary["event_count"] == 2
    assert summary["object_name"] == result.object_name
    assert "ran_at" in summary


def test_too_soon_exit_code(capsys: pytest.CaptureFixture[str]) -> None:
    with patch(RUN_EXPORT, AsyncMock(side_effect=TooSoonError("Min time not elapsed"))):
        code = main([])

    assert code == EXIT_TOO_SOON
    assert json.loads(capsys.readouterr().out)["skipped"] == "Min time not elapsed"


def test_failure_exit_code(capsys: pytest.CaptureFixture[str]) -> None:
    with patch(RUN_EXPORT, AsyncMock(side_effect=AuthError("Error obtaining token from IDCS"))):
        code = main(["--log-level", "DEBUG"])

    assert code == EXIT_FAILED
    assert "Error obtaining token" in json.loads(capsys.readouterr().out)["error"]


def test_invalid_arguments_exit() -> None:
    with pytest.raises(SystemExit):
        main(["--max-events", "many"])
