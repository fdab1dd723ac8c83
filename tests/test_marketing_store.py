"""
Data store tests: raw appends, the one-aggregated-row-per-source invariant,
audit writes and aggregation refresh from raw rows.
"""
from datetime import date

import pytest

from marketing_hub.exceptions import PersistenceError
from marketing_hub.models import ConnectionStatus, MarketingData, SyncLog
from marketing_hub.models.marketing_data import AGGREGATED_METRIC_TYPE
from marketing_hub.services import marketing_store
from marketing_hub.services.aggregation_service import AggregationService
from marketing_hub.services.aggregators import aggregate
from marketing_hub.services.marketing_record import MarketingRecord


def _aggregated_rows(db, source):
    return db.query(MarketingData).filter(
        MarketingData.source == source,
        MarketingData.metric_type == AGGREGATED_METRIC_TYPE,
    ).all()


# ────────────────────────────────────────────
# RAW INSERTS
# ────────────────────────────────────────────


class TestInsertRecord:

    def test_dates_are_parsed(self, db):
        row = marketing_store.insert_record(db, MarketingRecord(
            source="seo", metric_type="organic", data={"clicks": 1},
            date_range_start="2024-01-01", date_range_end="2024-01-31",
        ))
        assert row.id is not None
        assert row.date_range_start == date(2024, 1, 1)
        assert row.date_range_end == date(2024, 1, 31)

    def test_identical_records_are_not_deduplicated(self, db):
        record = MarketingRecord(source="seo", metric_type="organic", data={"clicks": 1})
        first = marketing_store.insert_record(db, record)
        second = marketing_store.insert_record(db, record)
        assert first.id != second.id
        assert db.query(MarketingData).count() == 2

    def test_invalid_date_raises_persistence_error(self, db):
        with pytest.raises(PersistenceError):
            marketing_store.insert_record(db, MarketingRecord(
                source="seo", metric_type="organic", date_range_start="not-a-date",
            ))
        assert db.query(MarketingData).count() == 0


# ────────────────────────────────────────────
# AGGREGATED UPSERT
# ────────────────────────────────────────────


class TestUpsertAggregate:

    def test_at_most_one_aggregated_row_per_source(self, db):
        """Repeated aggregation runs replace, never append."""
        for sessions in (10, 20, 30):
            marketing_store.upsert_aggregate(db, aggregate("ga4_traffic", [{"sessions": sessions}]))

        rows = _aggregated_rows(db, "ga4_traffic")
        assert len(rows) == 1
        db.refresh(rows[0])
        assert rows[0].data["sessions"] == 30

    def test_sources_are_independent(self, db):
        marketing_store.upsert_aggregate(db, aggregate("ga4_traffic", [{"sessions": 1}]))
        marketing_store.upsert_aggregate(db, aggregate("google_ads", [{"clicks": 1}]))
        assert len(_aggregated_rows(db, "ga4_traffic")) == 1
        assert len(_aggregated_rows(db, "google_ads")) == 1

    def test_raw_rows_are_unaffected(self, db):
        marketing_store.insert_record(db, MarketingRecord(source="ga4_traffic", metric_type="daily"))
        marketing_store.insert_record(db, MarketingRecord(source="ga4_traffic", metric_type="daily"))
        marketing_store.upsert_aggregate(db, aggregate("ga4_traffic", []))
        assert len(marketing_store.fetch_raw_rows(db, "ga4_traffic")) == 2
        assert marketing_store.get_aggregate(db, "ga4_traffic") is not None

    def test_date_range_is_updated(self, db):
        marketing_store.upsert_aggregate(db, aggregate("google_ads", [{"date": "2024-01-01"}]))
        row = marketing_store.upsert_aggregate(db, aggregate("google_ads", [{"date": "2024-02-01"}]))
        assert row.date_range_start == date(2024, 2, 1)


# ────────────────────────────────────────────
# AUDIT / STATUS
# ────────────────────────────────────────────


class TestAuditWrites:

    def test_log_sync_truncates_long_errors(self, db):
        entry = marketing_store.log_sync(db, "seo", "error", error_message="x" * 5000)
        assert len(entry.error_message) == 1000
        assert db.query(SyncLog).count() == 1

    def test_connection_status_is_upserted(self, db):
        marketing_store.upsert_connection_status(db, "dataslayer", "error", error_message="boom")
        marketing_store.upsert_connection_status(db, "dataslayer", "connected", metadata={"records_synced": 1})

        rows = db.query(ConnectionStatus).all()
        assert len(rows) == 1
        assert rows[0].status == "connected"
        assert rows[0].error_message is None
        assert rows[0].metadata_ == {"records_synced": 1}
        assert rows[0].last_check_at is not None

    def test_active_credential_lookup(self, db, seed_credential):
        seed_credential("dataslayer", "k", is_active=False)
        assert marketing_store.get_active_credential(db, "dataslayer") is None
        seed_credential("dataslayer", "k", is_active=True)
        assert marketing_store.get_active_credential(db, "dataslayer").api_key == "k"


# ────────────────────────────────────────────
# AGGREGATION REFRESH
# ────────────────────────────────────────────


class TestAggregationService:

    def test_refresh_scans_raw_rows(self, db):
        for clicks in (10, 20):
            marketing_store.insert_record(db, MarketingRecord(
                source="google_ads", metric_type="campaign_performance",
                data={"campaign_name": "Brand", "clicks": clicks, "impressions": 100, "cost": 5},
                date_range_start="2024-01-0%d" % (clicks // 10),
            ))

        result = AggregationService(db).refresh("google_ads")

        assert result == {"source": "google_ads", "status": "aggregated", "rowsAggregated": 2}
        aggregated = marketing_store.get_aggregate(db, "google_ads")
        assert aggregated.data["clicks"] == 30
        assert aggregated.data["campaigns"]["Brand"]["clicks"] == 30
        assert aggregated.date_range_start == date(2024, 1, 1)
        # Raw rows carry no end date; bounds are first/last row as stored
        assert aggregated.date_range_end is None

    def test_refresh_twice_keeps_one_row(self, db):
        marketing_store.insert_record(db, MarketingRecord(source="seo", metric_type="organic", data={"clicks": 1}))
        service = AggregationService(db)
        service.refresh("seo")
        service.refresh("seo")
        assert len(_aggregated_rows(db, "seo")) == 1

    def test_source_without_aggregator_is_skipped(self, db):
        marketing_store.insert_record(db, MarketingRecord(source="tiktok_ads", metric_type="daily"))
        assert AggregationService(db).refresh("tiktok_ads")["status"] == "skipped"

    def test_refresh_all(self, db):
        marketing_store.insert_record(db, MarketingRecord(source="seo", metric_type="organic", data={"clicks": 2}))
        marketing_store.insert_record(db, MarketingRecord(source="dataslayer", metric_type="raw"))

        results = {r["source"]: r["status"] for r in AggregationService(db).refresh_all()}

        assert results == {"dataslayer": "skipped", "seo": "aggregated"}
