"""
End-of-day todo migration job.

Runs one migration cycle: every user whose local time is 00:00 gets the
todos they created during the local day that just ended attached to that
day's diary entry.
Midnight is detected at minute resolution, so this job must run every minute.

Each run is a separate process, so runs are not serialised by the migrator's
in-process lock. Overlapping runs are kept safe by the per-user
``lastEntryDate`` compare-and-swap and the unique index on migrated diary
entries; a run that misses a user's midnight minute skips that day for them.

Usage:
    Run via CRON:
        * * * * * cd /path/to/project && python -m jobs.end_of_day

    Or run directly:
        python -m jobs.end_of_day
"""

import asyncio
import logging
import sys

from common.database import MongoDB
from journal.config import settings
from journal.database import INDEXES
from journal.dependencies import get_eod_migrator, init_eod_services, init_journal_services

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


async def main():
    """Main entry point for the end-of-day job."""
    db = MongoDB()
    await db.connect(
        uri=settings.MONGODB_URI,
        database_name=settings.MONGODB_DATABASE,
        indexes=INDEXES,
    )

    try:
        init_journal_services(db.db)
        init_eod_services(settings)

        results = await get_eod_migrator().run_migration_cycle()

        print("\n=== End-of-Day Migration Results ===")
        print(f"Start Time: {results['startTime']}")
        print(f"End Time: {results['endTime']}")
        print(f"Users Scanned: {results['usersScanned']}")
        print(f"Users Migrated: {results['usersMigrated']}")
        print(f"Todos Moved: {results['todosMoved']}")
        print(f"Skipped: {results['skipped']}")

        if results["errors"]:
            print(f"\nErrors ({len(results['errors'])}):")
            for error in results["errors"]:
                print(f"  - {error}")

        exit_code = 1 if results["errors"] else 0
        sys.exit(exit_code)

    finally:
        await db.disconnect()


if __name__ == "__main__":
    asyncio.run(main())
