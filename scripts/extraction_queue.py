#!/usr/bin/env python3
"""
Maintenance for the note-extraction queue.

Drains pending jobs with the extraction worker and deletes finished jobs
past their retention period. Intended to run from cron.

Usage:
    python scripts/extraction_queue.py [--max-jobs 10] [--cleanup] [--retention-days 30]

Options:
    --max-jobs: Worker passes to run before stopping (default: 10, 0 to skip)
    --cleanup: Also delete completed, failed and skipped jobs
    --retention-days: Age after which finished jobs are deleted (default: setting)
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from momentum.core.config import get_settings
from momentum.core.logging import get_logger, log_with_context
from momentum.db.extraction_queue import cleanup_old_jobs
from momentum.graphs.extraction_worker_graph import run_extraction_worker

logger = get_logger(__name__)


async def drain_queue(max_jobs: int) -> int:
    """Run worker passes until the queue is empty or ``max_jobs`` is reached."""
    processed = 0
    while processed < max_jobs:
        result = await run_extraction_worker()
        if result.get("message") == "No pending jobs":
            break

        processed += 1
        if "error" in result:
            logger.warning(f"Job failed: {result['error']}")
        else:
            logger.info(f"Job finished: {result}")

    return processed


def main():
    parser = argparse.ArgumentParser(description="Process and clean up the extraction queue")
    parser.add_argument("--max-jobs", type=int, default=10, help="Worker passes to run")
    parser.add_argument("--cleanup", action="store_true", help="Delete old finished jobs")
    parser.add_argument("--retention-days", type=int, default=None, help="Retention for finished jobs")
    args = parser.parse_args()

    settings = get_settings()
    retention_days = args.retention_days or settings.EXTRACTION_RETENTION_DAYS

    try:
        if args.max_jobs > 0:
            processed = asyncio.run(drain_queue(args.max_jobs))
            log_with_context(
                logger, logging.INFO, "Drained extraction queue", processed=processed, max_jobs=args.max_jobs
            )

        if args.cleanup:
            deleted = cleanup_old_jobs(retention_days)
            logger.info(f"Deleted {deleted} finished jobs older than {retention_days} days")

    except Exception as e:
        logger.error(f"Queue maintenance failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
