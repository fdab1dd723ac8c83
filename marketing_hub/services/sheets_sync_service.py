"""
Google Sheets Sync Service

Reads the marketing spreadsheet (one tab per source), aggregates each tab
and upserts the per-source aggregated record.

Tabs are positional: row 1 is a header row and is skipped by the range,
blank rows and rows whose first cell starts with "//" (instructions) are
dropped. A failing tab is reported in its own result and does not stop
the others.
"""
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from sqlalchemy.orm import Session

from marketing_hub.config import Settings, get_settings
from marketing_hub.connectors.google_sheets import GoogleSheetsConnector
from marketing_hub.exceptions import IngestionError, ValidationError
from marketing_hub.services import marketing_store
from marketing_hub.services.aggregators import aggregate
from marketing_hub.utils.logger import log

COMMENT_PREFIX = "//"

# (tab range, aggregated source, positional column names)
SHEET_TABS: List[Tuple[str, str, Tuple[str, ...]]] = [
    ("GA4_Traffic!A2:J", "ga4_traffic", (
        "date", "device_category", "sessions", "total_users", "new_users",
        "page_views", "bounce_rate", "avg_session_duration", "pages_per_session",
    )),
    ("GA4_Conversions!A2:G", "ga4_conversions", (
        "date", "channel", "sessions", "conversions", "revenue", "purchases",
    )),
    ("Search_Console!A2:H", "search_console", (
        "date", "query", "page", "clicks", "impressions", "ctr", "position",
    )),
    ("Google_Ads!A2:J", "google_ads", (
        "date", "campaign", "impressions", "clicks", "conversions", "cost",
        "ctr", "cpc", "conversion_rate",
    )),
    ("LinkedIn_Ads!A2:I", "linkedin_ads", (
        "date", "campaign", "impressions", "clicks", "conversions", "spend",
        "ctr", "leads",
    )),
]

SheetsConnectorFactory = Callable[[str, str], GoogleSheetsConnector]


def is_data_row(row: Sequence[Any]) -> bool:
    """False for blank rows and '//' instruction rows."""
    if not row or not row[0]:
        return False
    return not str(row[0]).startswith(COMMENT_PREFIX)


def rows_to_records(rows: Sequence[Sequence[Any]], columns: Sequence[str]) -> List[Dict[str, Any]]:
    """Map positional cells to named fields; short rows get None for missing cells."""
    records = []
    for row in rows:
        if not is_data_row(row):
            continue
        records.append({
            column: row[index] if index < len(row) else None
            for index, column in enumerate(columns)
        })
    return records


class SheetsSyncService:
    """Sync the five marketing tabs into aggregated records."""

    def __init__(
        self,
        db: Session,
        settings: Optional[Settings] = None,
        connector_factory: Optional[SheetsConnectorFactory] = None,
    ):
        self.db = db
        self.settings = settings or get_settings()
        self.service_name = self.settings.sheets_service_name
        self.connector_factory = connector_factory or GoogleSheetsConnector

    def sync_all(self) -> Dict[str, Dict[str, Any]]:
        """
        Sync every tab.

        Returns:
            {tab name: {"rowsProcessed": n} or {"error": message}}

        Raises:
            ValidationError: API key or spreadsheet id not configured
        """
        api_key = self.settings.google_api_key
        spreadsheet_id = self.settings.google_spreadsheet_id
        if not api_key or not spreadsheet_id:
            raise ValidationError(
                "Missing configuration",
                details="GOOGLE_API_KEY and GOOGLE_SPREADSHEET_ID must be set",
            )

        connector = self.connector_factory(api_key, spreadsheet_id)
        results: Dict[str, Dict[str, Any]] = {}

        for cell_range, source, columns in SHEET_TABS:
            tab = cell_range.split("!")[0]
            try:
                results[tab] = self.sync_tab(connector, cell_range, source, columns)
            except IngestionError as e:
                log.error(f"Error processing {tab}: {e.message}")
                results[tab] = {"error": e.message}

        total_rows = sum(r.get("rowsProcessed", 0) for r in results.values())

        marketing_store.upsert_connection_status(
            self.db,
            self.service_name,
            status="connected",
            metadata={"last_sync": datetime.utcnow().isoformat(), "results": results},
        )
        marketing_store.log_sync(
            self.db, source=self.service_name, status="success", records_count=total_rows,
        )

        log.info(f"Sheets sync complete: {total_rows} rows across {len(results)} tabs")
        return results

    def sync_tab(
        self,
        connector: GoogleSheetsConnector,
        cell_range: str,
        source: str,
        columns: Sequence[str],
    ) -> Dict[str, Any]:
        """Fetch one tab, aggregate its rows and upsert the result."""
        records = rows_to_records(connector.fetch_values(cell_range), columns)
        if not records:
            return {"rowsProcessed": 0}

        marketing_store.upsert_aggregate(self.db, aggregate(source, records))
        log.info(f"Aggregated {len(records)} rows into {source}")
        return {"rowsProcessed": len(records)}
