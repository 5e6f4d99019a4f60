"""
Grade submissions from the command line (one-off worker).

    python -m judge.worker <submission_id> [<submission_id> ...]

A job queue normally calls ``grade_submission_job`` directly; this entry point
runs the same path for manual re-grades.
"""

import argparse
import asyncio
import sys
from uuid import UUID

import structlog

from judge.config import get_settings
from judge.log import configure_logging
from judge.sandbox.errors import SandboxUnavailable, WorkspaceError
from judge.services import grade_submission_job, judge_runtime

logger = structlog.get_logger()


async def _grade_all(submission_ids: list[UUID]) -> int:
    failures = 0
    async with judge_runtime():
        for submission_id in submission_ids:
            try:
                status = await grade_submission_job(submission_id)
            except (SandboxUnavailable, WorkspaceError) as e:
                logger.error("Grading aborted", submission_id=str(submission_id), error=str(e))
                failures += 1
                continue
            print(f"{submission_id}: {status or 'NOT_FOUND'}")
            if status is None:
                failures += 1
    return failures


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Grade submissions in the sandbox")
    parser.add_argument("submission_ids", nargs="+", type=UUID, help="Submission UUIDs")
    args = parser.parse_args(argv)
    configure_logging(get_settings())
    return 1 if asyncio.run(_grade_all(args.submission_ids)) else 0


if __name__ == "__main__":
    sys.exit(main())
