"""Run a single audit event export (for cron/CronJob execution or local testing)."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from collections.abc import Sequence
from datetime import UTC, datetime

from audit_archiver.core.errors import ArchiverError, TooSoonError
from audit_archiver.core.logging import configure_logging
from audit_archiver.modules.export.service import run_export

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_TOO_SOON = 2


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Archive IDCS audit events logged since the last archived batch."
    )
    parser.add_argument(
        "--max-events",
        type=int,
        default=None,
        help="Override the configured cap on events archived in this run.",
    )
    parser.add_argument(
        "--min-elapsed-seconds",
        type=int,
        default=None,
        help="Skip the run if the last archived event is more recent than this.",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Override LOG_LEVEL for this run.",
    )
    return parser.parse_args(argv)


async def _main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)
    configure_logging(args.log_level, stream=sys.stderr)
    summary: dict[str, object] = {"ran_at": datetime.now(UTC).isoformat()}
    try:
        result = await run_export(
            max_events=args.max_events,
            min_elapsed_seconds=args.min_elapsed_seconds,
        )
    except TooSoonError as exc:
        summary["skipped"] = str(exc)
        print(json.dumps(summary, indent=2))
        return EXIT_TOO_SOON
    except ArchiverError as exc:
        summary["error"] = str(exc)
        print(json.dumps(summary, indent=2))
        return EXIT_FAILED

    summary.update(result.model_dump())
    print(json.dumps(summary, indent=2))
    return EXIT_OK


def main(argv: Sequence[str] | None = None) -> int:
    return asyncio.run(_main(argv))


if __name__ == "__main__":
    raise SystemExit(main())
