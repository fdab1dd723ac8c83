"""
Aggregation Refresh Service

Recomputes a source's aggregated record from a full scan of its raw rows.
Never merges incrementally, so concurrent refreshes of the same source
converge on the same result (last writer wins).
"""
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from marketing_hub.models.marketing_data import MarketingData
from marketing_hub.services import marketing_store
from marketing_hub.services.aggregators import aggregate, has_aggregator
from marketing_hub.utils.logger import log


def _row_payload(row: MarketingData) -> Dict[str, Any]:
    """Raw row data with the stored date range filled in where the data has none."""
    payload = dict(row.data or {})
    if row.date_range_start is not None:
        payload.setdefault("date_range_start", row.date_range_start.isoformat())
    if row.date_range_end is not None:
        payload.setdefault("date_range_end", row.date_range_end.isoformat())
    return payload


class AggregationService:
    """Refresh aggregated records from raw marketing_data rows."""

    def __init__(self, db: Session):
        self.db = db

    def refresh(self, source: str) -> Dict[str, Any]:
        """
        Rebuild the aggregated record for one source.

        Returns:
            {"source", "status": "aggregated"|"skipped", "rowsAggregated"}
        """
        if not has_aggregator(source):
            log.info(f"No aggregator for {source}, skipping")
            return {"source": source, "status": "skipped", "rowsAggregated": 0}

        rows = [_row_payload(row) for row in marketing_store.fetch_raw_rows(self.db, source)]
        if not rows:
            return {"source": source, "status": "skipped", "rowsAggregated": 0}

        marketing_store.upsert_aggregate(self.db, aggregate(source, rows))
        log.info(f"Refreshed aggregate for {source} from {len(rows)} rows")
        return {"source": source, "status": "aggregated", "rowsAggregated": len(rows)}

    def refresh_all(self) -> List[Dict[str, Any]]:
        """Refresh every source that has raw rows."""
        return [self.refresh(source) for source in marketing_store.raw_sources(self.db)]
