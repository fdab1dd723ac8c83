"""
Scheduler for automated marketing data syncs

Uses APScheduler to pull the marketing spreadsheet and rebuild aggregated
records on a cron schedule. Failed runs are not retried; the next
scheduled run (or a manual trigger) picks up.
"""
import sys

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from marketing_hub.config import get_settings
from marketing_hub.exceptions import IngestionError
from marketing_hub.models.base import SessionLocal
from marketing_hub.services.aggregation_service import AggregationService
from marketing_hub.services.sheets_sync_service import SheetsSyncService
from marketing_hub.utils.logger import log

settings = get_settings()
scheduler = AsyncIOScheduler(timezone=settings.scheduler_timezone)


# Sync Functions
# Plain functions: AsyncIOScheduler runs them in its thread pool, so the
# blocking database and Google API calls stay off the event loop.

def sync_sheets():
    """Pull every spreadsheet tab and upsert the aggregated records"""
    db = SessionLocal()
    try:
        log.info("Starting Google Sheets sync...")
        results = SheetsSyncService(db).sync_all()
        log.info(f"Google Sheets sync completed: {results}")
        return results
    except IngestionError as e:
        log.error(f"Google Sheets sync error: {e.message}")
        raise
    finally:
        db.close()


def refresh_aggregates():
    """Rebuild aggregated records from raw rows for every source"""
    db = SessionLocal()
    try:
        log.info("Starting aggregate refresh...")
        results = AggregationService(db).refresh_all()
        refreshed = sum(1 for r in results if r["status"] == "aggregated")
        log.info(f"Aggregate refresh completed: {refreshed}/{len(results)} sources")
        return results
    except IngestionError as e:
        log.error(f"Aggregate refresh error: {e.message}")
        raise
    finally:
        db.close()


SYNC_FUNCTIONS = {
    'sheets': sync_sheets,
    'aggregates': refresh_aggregates,
}


def setup_scheduler():
    """
    Configure the scheduler.

    Cron expressions come from settings (scheduler_timezone):
    - Sheets sync:        sheets_sync_schedule       (default daily 6:00)
    - Aggregate refresh:  aggregate_refresh_schedule (default daily 6:30)
    """
    scheduler.add_job(
        sync_sheets,
        trigger=CronTrigger.from_crontab(settings.sheets_sync_schedule, timezone=settings.scheduler_timezone),
        id='sheets_sync',
        name='Google Sheets Marketing Sync',
        replace_existing=True,
        max_instances=1
    )

    scheduler.add_job(
        refresh_aggregates,
        trigger=CronTrigger.from_crontab(settings.aggregate_refresh_schedule, timezone=settings.scheduler_timezone),
        id='aggregate_refresh',
        name='Aggregated Record Refresh',
        replace_existing=True,
        max_instances=1
    )


def start_scheduler():
    """Start the scheduler"""
    setup_scheduler()
    scheduler.start()
    log.info("Scheduler started")


def stop_scheduler():
    """Stop the scheduler"""
    if scheduler.running:
        scheduler.shutdown()
        log.info("Scheduler stopped")


def run_sync_now(sync_name: str) -> dict:
    """
    Manually trigger a sync

    Args:
        sync_name: 'sheets' or 'aggregates'

    Returns:
        Dict with sync results
    """
    if sync_name not in SYNC_FUNCTIONS:
        return {
            'success': False,
            'error': f'Unknown sync: {sync_name}. Valid options: {", ".join(SYNC_FUNCTIONS.keys())}'
        }

    log.info(f"Manually triggering {sync_name} sync...")
    try:
        result = SYNC_FUNCTIONS[sync_name]()
    except IngestionError as e:
        return {'success': False, 'error': e.message}

    return {'success': True, 'result': result}


def get_scheduled_jobs() -> list:
    """
    Get list of all scheduled jobs

    Returns:
        List of job info dicts
    """
    jobs = []

    for job in scheduler.get_jobs():
        next_run = getattr(job, "next_run_time", None)

        jobs.append({
            'id': job.id,
            'name': job.name,
            'next_run': next_run.isoformat() if next_run else None,
            'trigger': str(job.trigger)
        })

    return jobs


# CLI for manual syncs

if __name__ == "__main__":
    if len(sys.argv) < 3 or sys.argv[1] != "sync":
        print("Usage: python -m marketing_hub.scheduler sync <sheets|aggregates>")
        sys.exit(1)

    print(run_sync_now(sys.argv[2]))
