"""
Dashboard read endpoints

Latest aggregated record per source and per-service connection status.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from marketing_hub.models.base import get_db
from marketing_hub.services import marketing_store
from marketing_hub.services.data_views import render_aggregate

router = APIRouter(tags=["dashboard"])


@router.get("/marketing-data/{source}")
def get_marketing_data(source: str, db: Session = Depends(get_db)):
    """Aggregated record for a source, every field defaulted ({"data": null} when none)."""
    return render_aggregate(source, marketing_store.get_aggregate(db, source))


@router.get("/connection-status/{service_name}")
def get_connection_status(service_name: str, db: Session = Depends(get_db)):
    row = marketing_store.get_connection_status(db, service_name)
    if row is None:
        return {
            "service_name": service_name,
            "status": "disconnected",
            "last_check_at": None,
            "error_message": None,
            "metadata": None,
        }
    return row.to_dict()
