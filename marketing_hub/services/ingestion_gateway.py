"""
Ingestion Gateway

Authenticated write path for vendor-pushed payloads (Dataslayer webhook).

Each call runs strictly in order:
    authenticate -> validate -> normalize -> persist -> status update -> log

Authentication and validation fail before any side effect. A persistence
failure is written to sync_log and connection_status before it is raised.
Redelivery of the same payload creates a second raw row.
"""
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from marketing_hub.config import Settings, get_settings
from marketing_hub.exceptions import AuthenticationError, PersistenceError, ValidationError
from marketing_hub.models.marketing_data import AGGREGATED_METRIC_TYPE
from marketing_hub.services import marketing_store
from marketing_hub.services.normalizers import RESERVED_METRIC_TYPE_ERROR, normalize, validate_payload
from marketing_hub.utils.logger import log


class IngestionGateway:
    """Ingest one webhook payload into marketing_data."""

    def __init__(self, db: Session, settings: Optional[Settings] = None):
        self.db = db
        self.settings = settings or get_settings()
        self.service_name = self.settings.webhook_service_name

    def authenticate(self, api_key: Optional[str]) -> None:
        """
        Check the supplied secret against the active credential row.

        Raises:
            AuthenticationError: no key, no active credential, or key mismatch
        """
        if not api_key:
            raise AuthenticationError("API key is required")

        credential = marketing_store.get_active_credential(self.db, self.service_name)
        if credential is None:
            log.warning(f"No active credential for {self.service_name}")
            raise AuthenticationError("Invalid API credentials")

        if credential.api_key != api_key:
            log.warning(f"Rejected webhook call for {self.service_name}: key mismatch")
            raise AuthenticationError("Invalid API key")

    def ingest(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Store one pushed payload as a raw marketing_data row.

        Args:
            payload: {source?, metric_type, data, date_range_start?,
                date_range_end?, api_key}

        Returns:
            {"record_id": id of the inserted row}
        """
        self.authenticate(payload.get("api_key"))

        payload = dict(payload)
        if not payload.get("source"):
            payload["source"] = self.settings.webhook_default_source

        problems = validate_payload(payload)
        if problems:
            raise ValidationError("Invalid payload", details=problems)
        if not isinstance(payload["data"], dict):
            raise ValidationError("Invalid payload", details=["Field data must be an object"])

        record = normalize(
            source=payload["source"],
            metric_type=payload["metric_type"],
            data=payload["data"],
            date_range_start=payload.get("date_range_start"),
            date_range_end=payload.get("date_range_end"),
        )
        if record.metric_type == AGGREGATED_METRIC_TYPE:
            raise ValidationError("Invalid payload", details=[RESERVED_METRIC_TYPE_ERROR])

        try:
            row = marketing_store.insert_record(self.db, record)
        except PersistenceError as e:
            log.error(f"Webhook insert failed for {record.source}: {e.message}")
            marketing_store.log_sync(
                self.db, source=record.source, status="error",
                records_count=0, error_message=e.message,
            )
            marketing_store.upsert_connection_status(
                self.db, self.service_name, status="error", error_message=e.message,
            )
            raise PersistenceError("Failed to insert data", details=e.message) from e

        marketing_store.log_sync(self.db, source=record.source, status="success", records_count=1)
        marketing_store.upsert_connection_status(
            self.db,
            self.service_name,
            status="connected",
            metadata={"last_sync": datetime.utcnow().isoformat(), "records_synced": 1},
        )
        marketing_store.touch_credential(self.db, self.service_name)

        log.info(f"Webhook stored {record.source}/{record.metric_type} as record {row.id}")
        return {"record_id": row.id}
