"""
Sheets sync tests with a fake Sheets client.
"""
import pytest

from marketing_hub.config import Settings
from marketing_hub.exceptions import UpstreamError, ValidationError
from marketing_hub.models import ConnectionStatus, SyncLog
from marketing_hub.services import marketing_store
from marketing_hub.services.sheets_sync_service import (
    SHEET_TABS,
    SheetsSyncService,
    is_data_row,
    rows_to_records,
)

from fakes import FakeSheetsConnector

CONFIGURED = Settings(google_api_key="k", google_spreadsheet_id="s")

TRAFFIC_ROWS = [
    ["2024-01-01", "desktop", "100", "80", "20", "300", "40", "120"],
    ["// Paste GA4 traffic below this line"],
    [],
    ["2024-01-02", "mobile", "50", "40", "10", "100", "50", "90"],
]


class TestRowFiltering:

    def test_blank_and_comment_rows(self):
        assert is_data_row(["2024-01-01", "x"])
        assert not is_data_row([])
        assert not is_data_row([""])
        assert not is_data_row(["// instructions"])

    def test_short_rows_are_padded(self):
        records = rows_to_records([["2024-01-01"]], ("date", "clicks"))
        assert records == [{"date": "2024-01-01", "clicks": None}]


class TestSyncAll:

    def test_missing_configuration(self, db):
        service = SheetsSyncService(db, settings=Settings(google_api_key=None, google_spreadsheet_id=None))
        with pytest.raises(ValidationError) as exc:
            service.sync_all()
        assert exc.value.status_code == 400
        assert db.query(SyncLog).count() == 0

    def test_tabs_are_aggregated(self, db):
        sheets = FakeSheetsConnector({"GA4_Traffic!A2:J": TRAFFIC_ROWS})
        results = SheetsSyncService(db, settings=CONFIGURED, connector_factory=sheets).sync_all()

        assert results["GA4_Traffic"] == {"rowsProcessed": 2}
        assert results["Google_Ads"] == {"rowsProcessed": 0}
        assert sheets.requested == [cell_range for cell_range, _, _ in SHEET_TABS]

        aggregated = marketing_store.get_aggregate(db, "ga4_traffic")
        assert aggregated.data["sessions"] == 150
        assert aggregated.data["deviceBreakdown"] == {"desktop": 67, "mobile": 33}
        # empty tabs leave no aggregate behind
        assert marketing_store.get_aggregate(db, "google_ads") is None

    def test_failing_tab_does_not_stop_the_others(self, db):
        sheets = FakeSheetsConnector({
            "GA4_Traffic!A2:J": UpstreamError("Google Sheets request failed", status_code=403),
            "Google_Ads!A2:J": [["2024-01-01", "Brand", "1000", "50", "5", "100"]],
        })
        results = SheetsSyncService(db, settings=CONFIGURED, connector_factory=sheets).sync_all()

        assert results["GA4_Traffic"] == {"error": "Google Sheets request failed"}
        assert results["Google_Ads"] == {"rowsProcessed": 1}
        assert marketing_store.get_aggregate(db, "google_ads").data["clicks"] == 50

    def test_audit_rows(self, db):
        sheets = FakeSheetsConnector({"GA4_Traffic!A2:J": TRAFFIC_ROWS})
        SheetsSyncService(db, settings=CONFIGURED, connector_factory=sheets).sync_all()

        status = db.query(ConnectionStatus).filter_by(service_name="google_sheets").one()
        assert status.status == "connected"
        assert status.metadata_["results"]["GA4_Traffic"] == {"rowsProcessed": 2}

        log_entry = db.query(SyncLog).one()
        assert (log_entry.source, log_entry.status, log_entry.records_count) == ("google_sheets", "success", 2)

    def test_repeated_sync_keeps_one_aggregate(self, db):
        sheets = FakeSheetsConnector({"GA4_Traffic!A2:J": TRAFFIC_ROWS})
        service = SheetsSyncService(db, settings=CONFIGURED, connector_factory=sheets)
        service.sync_all()
        service.sync_all()

        from marketing_hub.models import MarketingData
        assert db.query(MarketingData).filter_by(source="ga4_traffic").count() == 1
