"""
Dataslayer webhook endpoint

Vendor-pushed marketing payloads land here and go through the
IngestionGateway.
"""
from datetime import date
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Response
from fastapi.responses import JSONResponse
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from marketing_hub.exceptions import IngestionError
from marketing_hub.models.base import get_db
from marketing_hub.services.ingestion_gateway import IngestionGateway
from marketing_hub.utils.logger import log

router = APIRouter(prefix="/functions", tags=["functions"])

OTHER_METHODS = ["GET", "PUT", "PATCH", "DELETE"]


class WebhookPayload(BaseModel):
    # Required fields are checked by the gateway so auth runs first
    source: Optional[str] = None
    metric_type: Optional[str] = None
    data: Optional[Dict[str, Any]] = None
    date_range_start: Optional[date] = None  # YYYY-MM-DD
    date_range_end: Optional[date] = None
    api_key: Optional[str] = None

    @field_validator("date_range_start", "date_range_end", mode="before")
    @classmethod
    def empty_date_is_none(cls, value):
        return value or None


def method_not_allowed() -> JSONResponse:
    return JSONResponse(status_code=405, content={"error": "Method not allowed"})


@router.post("/dataslayer-webhook")
def receive_webhook(payload: WebhookPayload, db: Session = Depends(get_db)):
    """
    Store one pushed payload as a raw marketing_data row.

    Example: POST /functions/dataslayer-webhook
        {"source": "google_ads", "metric_type": "campaign_performance",
         "data": {...}, "api_key": "..."}
    """
    try:
        result = IngestionGateway(db).ingest(payload.model_dump())
    except IngestionError:
        raise
    except Exception as e:
        log.exception(f"Webhook error: {str(e)}")
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error", "details": str(e)},
        )

    return {
        "success": True,
        "message": "Data received and stored",
        "record_id": result["record_id"],
    }


@router.options("/dataslayer-webhook")
def webhook_preflight():
    return Response(status_code=200)


@router.api_route("/dataslayer-webhook", methods=OTHER_METHODS, include_in_schema=False)
def webhook_other_methods():
    return method_not_allowed()
