"""
Marketing Store

All writes to marketing_data, connection_status, sync_log and
api_credentials go through here. Every write commits on its own
(best-effort sequential writes, not one transaction) so an audit row
survives a failed data write.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import asc, desc
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from marketing_hub.config import get_settings
from marketing_hub.exceptions import PersistenceError
from marketing_hub.models.api_credential import ApiCredential
from marketing_hub.models.connection_status import ConnectionStatus
from marketing_hub.models.marketing_data import MarketingData, AGGREGATED_METRIC_TYPE
from marketing_hub.models.sync_log import SyncLog
from marketing_hub.services.marketing_record import MarketingRecord
from marketing_hub.utils.helpers import parse_date, truncate
from marketing_hub.utils.logger import log

settings = get_settings()


def _row_values(record: MarketingRecord) -> Dict[str, Any]:
    """Column values for a record; bad dates raise ValueError before any write."""
    return {
        "source": record.source,
        "metric_type": record.metric_type,
        "data": record.data if record.data is not None else {},
        "date_range_start": parse_date(record.date_range_start),
        "date_range_end": parse_date(record.date_range_end),
    }


# ---------------------------------------------------------------------------
# marketing_data
# ---------------------------------------------------------------------------

def insert_record(db: Session, record: MarketingRecord) -> MarketingData:
    """
    Append one raw record. Never deduplicates: the same payload twice
    gives two rows.

    Raises:
        PersistenceError: the insert failed (session rolled back)
    """
    try:
        row = MarketingData(**_row_values(record))
        db.add(row)
        db.commit()
        db.refresh(row)
        return row
    except (SQLAlchemyError, ValueError, TypeError) as e:
        db.rollback()
        raise PersistenceError(f"Failed to insert {record.source}/{record.metric_type}: {e}") from e


def upsert_aggregate(db: Session, record: MarketingRecord) -> MarketingData:
    """
    Replace the single aggregated row for record.source.

    Uses the database's INSERT ... ON CONFLICT against the partial unique
    index on (source, metric_type) so concurrent refreshes are last-writer-wins.
    """
    values = _row_values(record)
    values["metric_type"] = AGGREGATED_METRIC_TYPE
    now = datetime.utcnow()
    dialect = db.get_bind().dialect.name

    try:
        if dialect in ("sqlite", "postgresql"):
            if dialect == "sqlite":
                from sqlalchemy.dialects.sqlite import insert
            else:
                from sqlalchemy.dialects.postgresql import insert

            stmt = insert(MarketingData).values(**values, synced_at=now, created_at=now)
            stmt = stmt.on_conflict_do_update(
                index_elements=["source", "metric_type"],
                index_where=(MarketingData.metric_type == AGGREGATED_METRIC_TYPE),
                set_={
                    "data": stmt.excluded.data,
                    "date_range_start": stmt.excluded.date_range_start,
                    "date_range_end": stmt.excluded.date_range_end,
                    "synced_at": now,
                },
            )
            db.execute(stmt)
        else:
            existing = get_aggregate(db, record.source)
            if existing:
                existing.data = values["data"]
                existing.date_range_start = values["date_range_start"]
                existing.date_range_end = values["date_range_end"]
                existing.synced_at = now
            else:
                db.add(MarketingData(**values, synced_at=now, created_at=now))
        db.commit()
    except (SQLAlchemyError, ValueError, TypeError) as e:
        db.rollback()
        raise PersistenceError(f"Failed to upsert aggregate for {record.source}: {e}") from e

    row = get_aggregate(db, record.source)
    db.refresh(row)
    return row


def get_aggregate(db: Session, source: str) -> Optional[MarketingData]:
    return db.query(MarketingData).filter(
        MarketingData.source == source,
        MarketingData.metric_type == AGGREGATED_METRIC_TYPE,
    ).order_by(desc(MarketingData.synced_at)).first()


def fetch_raw_rows(db: Session, source: str) -> List[MarketingData]:
    """All non-aggregated rows of a source in insertion order."""
    return db.query(MarketingData).filter(
        MarketingData.source == source,
        MarketingData.metric_type != AGGREGATED_METRIC_TYPE,
    ).order_by(asc(MarketingData.id)).all()


def raw_sources(db: Session) -> List[str]:
    """Distinct sources that have raw rows."""
    rows = db.query(MarketingData.source).filter(
        MarketingData.metric_type != AGGREGATED_METRIC_TYPE
    ).distinct().all()
    return sorted(r[0] for r in rows)


# ---------------------------------------------------------------------------
# sync_log / connection_status
# ---------------------------------------------------------------------------

def log_sync(
    db: Session,
    source: str,
    status: str,
    records_count: int = 0,
    error_message: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> Optional[SyncLog]:
    """
    Append one audit row.

    Audit writes never raise: a broken log table must not mask the
    outcome being reported.
    """
    try:
        entry = SyncLog(
            source=source,
            status=status,
            records_count=records_count,
            error_message=truncate(error_message, settings.sync_log_error_max_chars),
            metadata_=metadata,
            created_at=datetime.utcnow(),
        )
        db.add(entry)
        db.commit()
        return entry
    except SQLAlchemyError as e:
        log.error(f"Error writing sync_log for {source}: {str(e)}")
        db.rollback()
        return None


def upsert_connection_status(
    db: Session,
    service_name: str,
    status: str,
    error_message: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> Optional[ConnectionStatus]:
    """Create or overwrite the status row for a service."""
    try:
        row = db.query(ConnectionStatus).filter(
            ConnectionStatus.service_name == service_name
        ).first()

        if not row:
            row = ConnectionStatus(service_name=service_name)
            db.add(row)

        row.status = status
        row.last_check_at = datetime.utcnow()
        row.error_message = truncate(error_message, settings.sync_log_error_max_chars)
        if metadata is not None:
            row.metadata_ = metadata

        db.commit()
        return row
    except SQLAlchemyError as e:
        log.error(f"Error updating connection status for {service_name}: {str(e)}")
        db.rollback()
        return None


def get_connection_status(db: Session, service_name: str) -> Optional[ConnectionStatus]:
    return db.query(ConnectionStatus).filter(
        ConnectionStatus.service_name == service_name
    ).first()


def list_connection_statuses(db: Session) -> List[ConnectionStatus]:
    return db.query(ConnectionStatus).order_by(ConnectionStatus.service_name).all()


def recent_sync_log(db: Session, source: Optional[str] = None, limit: int = 50) -> List[SyncLog]:
    query = db.query(SyncLog)
    if source:
        query = query.filter(SyncLog.source == source)
    return query.order_by(desc(SyncLog.created_at), desc(SyncLog.id)).limit(limit).all()


# ---------------------------------------------------------------------------
# api_credentials
# ---------------------------------------------------------------------------

def get_active_credential(db: Session, service_name: str) -> Optional[ApiCredential]:
    return db.query(ApiCredential).filter(
        ApiCredential.service_name == service_name,
        ApiCredential.is_active.is_(True),
    ).first()


def touch_credential(db: Session, service_name: str) -> None:
    """Stamp last_sync_at after a successful ingestion."""
    try:
        credential = db.query(ApiCredential).filter(
            ApiCredential.service_name == service_name
        ).first()
        if credential:
            credential.last_sync_at = datetime.utcnow()
            db.commit()
    except SQLAlchemyError as e:
        log.error(f"Error updating last_sync_at for {service_name}: {str(e)}")
        db.rollback()


def upsert_credential(
    db: Session,
    service_name: str,
    api_key: str,
    is_active: bool = True,
    additional_config: Optional[Dict[str, Any]] = None,
) -> ApiCredential:
    """Seed or rotate a credential (the settings UI owns this in production)."""
    credential = db.query(ApiCredential).filter(
        ApiCredential.service_name == service_name
    ).first()
    if not credential:
        credential = ApiCredential(service_name=service_name)
        db.add(credential)
    credential.api_key = api_key
    credential.is_active = is_active
    if additional_config is not None:
        credential.additional_config = additional_config
    db.commit()
    return credential
