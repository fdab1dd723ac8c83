"""
Data synchronization endpoints
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from marketing_hub.config import get_settings
from marketing_hub.connectors.google_sheets import GoogleSheetsConnector
from marketing_hub.models.base import get_db
from marketing_hub.scheduler import get_scheduled_jobs
from marketing_hub.services import marketing_store
from marketing_hub.services.aggregation_service import AggregationService
from marketing_hub.services.sheets_sync_service import SheetsSyncService

router = APIRouter(prefix="/sync", tags=["sync"])


def get_sheets_connector_factory():
    """Dependency so tests can swap in a fake Sheets client."""
    return GoogleSheetsConnector


@router.post("/sheets")
def sync_sheets(
    db: Session = Depends(get_db),
    connector_factory=Depends(get_sheets_connector_factory),
):
    """
    Pull the marketing spreadsheet and rebuild the aggregated records.

    Example: POST /sync/sheets
    """
    results = SheetsSyncService(db, connector_factory=connector_factory).sync_all()
    return {"success": True, "results": results}


@router.post("/aggregate")
def refresh_all_aggregates(db: Session = Depends(get_db)):
    """Rebuild aggregated records from raw rows for every source."""
    return {"success": True, "results": AggregationService(db).refresh_all()}


@router.post("/aggregate/{source}")
def refresh_aggregate(source: str, db: Session = Depends(get_db)):
    """Rebuild one source's aggregated record from its raw rows."""
    return {"success": True, "result": AggregationService(db).refresh(source)}


@router.get("/status")
def get_sync_status(db: Session = Depends(get_db)):
    """Connection status of every service plus scheduled jobs."""
    return {
        "connections": [row.to_dict() for row in marketing_store.list_connection_statuses(db)],
        "scheduler": {
            "enabled": get_settings().enable_scheduler,
            "jobs": get_scheduled_jobs(),
        },
    }


@router.get("/log")
def get_sync_log(
    source: Optional[str] = Query(None, description="Filter by source"),
    limit: int = Query(50, ge=1, le=500, description="Max entries"),
    db: Session = Depends(get_db),
):
    """Most recent sync_log entries, newest first."""
    entries = marketing_store.recent_sync_log(db, source=source, limit=limit)
    return {"entries": [entry.to_dict() for entry in entries], "count": len(entries)}
