"""
HTTP surface tests.

Covers:
  - Webhook status codes (200/400/401/405) and preflight
  - Drive import action switch, apiKey check and vendor status propagation
  - Dashboard reads with defaulted views
  - Sync endpoints and health
"""
from marketing_hub.exceptions import UpstreamError
from marketing_hub.models import MarketingData
from marketing_hub.services import marketing_store
from marketing_hub.services.aggregators import aggregate

WEBHOOK = "/functions/dataslayer-webhook"
DRIVE = "/functions/google-drive-import"

EMAIL_TRENDS_CSV = "Month,Date,Sends,Open Rate\nJanuary,2024-01-01,1000,25.5\nFebruary,2024-02-01,1200,27.1"


def _webhook_body(**overrides):
    body = {
        "source": "linkedin_ads",
        "metric_type": "campaign_performance",
        "data": {"impressions": 500, "clicks": 10, "spend": 40},
        "date_range_start": "2024-01-01",
        "api_key": "secret-key",
    }
    body.update(overrides)
    return body


# ────────────────────────────────────────────
# WEBHOOK
# ────────────────────────────────────────────


class TestWebhook:

    def test_accepts_authenticated_payload(self, client, db, seed_credential):
        seed_credential()
        response = client.post(WEBHOOK, json=_webhook_body())

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Data received and stored"
        row = db.get(MarketingData, body["record_id"])
        assert row.data["ctr"] == "2.00"

    def test_wrong_key_is_401(self, client, seed_credential):
        seed_credential(api_key="other")
        response = client.post(WEBHOOK, json=_webhook_body())
        assert response.status_code == 401
        assert response.json() == {"error": "Invalid API key"}

    def test_missing_key_is_401(self, client, seed_credential):
        seed_credential()
        response = client.post(WEBHOOK, json=_webhook_body(api_key=None))
        assert response.status_code == 401
        assert response.json()["error"] == "API key is required"

    def test_missing_field_is_400(self, client, seed_credential):
        seed_credential()
        response = client.post(WEBHOOK, json=_webhook_body(metric_type=None))
        assert response.status_code == 400
        assert response.json()["error"] == "Invalid payload"

    def test_malformed_date_is_400(self, client, seed_credential):
        seed_credential()
        response = client.post(WEBHOOK, json=_webhook_body(date_range_start="31/01/2024"))
        assert response.status_code == 400
        assert response.json()["error"] == "Invalid request body"

    def test_empty_date_is_accepted(self, client, db, seed_credential):
        seed_credential()
        response = client.post(WEBHOOK, json=_webhook_body(date_range_start=""))
        assert response.status_code == 200
        assert db.get(MarketingData, response.json()["record_id"]).date_range_start is None

    def test_other_methods(self, client):
        assert client.get(WEBHOOK).status_code == 405
        assert client.put(WEBHOOK, json={}).status_code == 405
        assert client.options(WEBHOOK).status_code == 200


# ────────────────────────────────────────────
# DRIVE IMPORT
# ────────────────────────────────────────────


class TestDriveImport:

    def test_access_token_required(self, client):
        response = client.post(DRIVE, json={"action": "list_files", "folderId": "f"})
        assert response.status_code == 400
        assert response.json()["error"] == "Google Drive access token is required"

    def test_invalid_action(self, client):
        response = client.post(DRIVE, json={"action": "delete", "accessToken": "t"})
        assert response.status_code == 400
        assert response.json()["error"].startswith("Invalid action")

    def test_missing_ids(self, client):
        assert client.post(DRIVE, json={"action": "list_files", "accessToken": "t"}).json()["error"] == "Folder ID is required"
        assert client.post(DRIVE, json={"action": "import_file", "accessToken": "t"}).json()["error"] == "File ID is required"

    def test_invalid_api_key(self, client, seed_credential):
        seed_credential("google_drive", "drive-key")
        response = client.post(DRIVE, json={"action": "list_files", "folderId": "f", "accessToken": "t", "apiKey": "nope"})
        assert response.status_code == 401

    def test_matching_api_key(self, client, seed_credential):
        seed_credential("google_drive", "drive-key")
        response = client.post(DRIVE, json={"action": "list_files", "folderId": "f", "accessToken": "t", "apiKey": "drive-key"})
        assert response.status_code == 200
        assert response.json() == {"files": []}

    def test_list_files(self, client, fake_drive):
        fake_drive.files = {"a": {"name": "a.csv", "content": ""}}
        response = client.post(DRIVE, json={"action": "list_files", "folderId": "f", "accessToken": "t"})
        assert [f["name"] for f in response.json()["files"]] == ["a.csv"]
        assert fake_drive.access_token == "t"

    def test_import_file(self, client, fake_drive):
        fake_drive.files = {"f1": {"name": "email_trends.csv", "content": EMAIL_TRENDS_CSV}}
        response = client.post(DRIVE, json={"action": "import_file", "fileId": "f1", "accessToken": "t"})

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "result": {"fileName": "email_trends.csv", "recordsImported": 2, "errors": []},
        }

    def test_import_file_with_no_records(self, client, fake_drive):
        fake_drive.files = {"f1": {"name": "empty.csv", "content": "a,b"}}
        response = client.post(DRIVE, json={"action": "import_file", "fileId": "f1", "accessToken": "t"})
        assert response.status_code == 200
        assert response.json()["success"] is False

    def test_import_folder(self, client, fake_drive):
        fake_drive.files = {
            "good": {"name": "email_trends.csv", "content": EMAIL_TRENDS_CSV},
            "bad": {"name": "corrupt.csv", "content": None},
        }
        response = client.post(DRIVE, json={"action": "import_folder", "folderId": "f", "accessToken": "t"})

        body = response.json()
        assert response.status_code == 200
        assert body["success"] is True
        assert body["totalImported"] == 2
        assert {r["fileName"]: r["recordsImported"] for r in body["results"]} == {
            "email_trends.csv": 2, "corrupt.csv": 0,
        }

    def test_vendor_status_is_propagated(self, client, fake_drive):
        fake_drive.list_error = UpstreamError("Google Drive file listing failed", status_code=401, details="Invalid Credentials")
        response = client.post(DRIVE, json={"action": "list_files", "folderId": "f", "accessToken": "expired"})

        assert response.status_code == 401
        assert response.json() == {"error": "Google Drive file listing failed", "details": "Invalid Credentials"}

    def test_other_methods(self, client):
        assert client.delete(DRIVE).status_code == 405
        assert client.options(DRIVE).status_code == 200


# ────────────────────────────────────────────
# DASHBOARD READS
# ────────────────────────────────────────────


class TestDashboardReads:

    def test_no_aggregate_gives_null_data(self, client):
        assert client.get("/marketing-data/google_ads").json() == {"source": "google_ads", "data": None}

    def test_aggregate_is_rendered_with_defaults(self, client, db):
        marketing_store.upsert_aggregate(db, aggregate("ga4_traffic", [{"sessions": 10, "date": "2024-01-01"}]))

        body = client.get("/marketing-data/ga4_traffic").json()
        assert body["metric_type"] == "aggregated"
        assert body["date_range_start"] == "2024-01-01"
        assert body["data"]["sessions"] == 10
        assert body["data"]["deviceBreakdown"] == {"unknown": 100}

    def test_unknown_connection_is_disconnected(self, client):
        body = client.get("/connection-status/google_drive").json()
        assert body["status"] == "disconnected"
        assert body["last_check_at"] is None

    def test_connection_status_after_ingest(self, client, seed_credential):
        seed_credential()
        client.post(WEBHOOK, json=_webhook_body())
        assert client.get("/connection-status/dataslayer").json()["status"] == "connected"


# ────────────────────────────────────────────
# SYNC / HEALTH
# ────────────────────────────────────────────


class TestSyncEndpoints:

    def test_sheets_sync_without_configuration(self, client):
        response = client.post("/sync/sheets")
        assert response.status_code == 400
        assert response.json()["error"] == "Missing configuration"

    def test_aggregate_refresh(self, client, seed_credential):
        seed_credential()
        client.post(WEBHOOK, json=_webhook_body())

        response = client.post("/sync/aggregate/linkedin_ads")
        assert response.json()["result"] == {"source": "linkedin_ads", "status": "aggregated", "rowsAggregated": 1}
        assert client.get("/marketing-data/linkedin_ads").json()["data"]["clicks"] == 10

    def test_status_and_log(self, client, seed_credential):
        seed_credential()
        client.post(WEBHOOK, json=_webhook_body())

        status = client.get("/sync/status").json()
        assert [c["service_name"] for c in status["connections"]] == ["dataslayer"]
        assert status["scheduler"]["enabled"] is False

        log_body = client.get("/sync/log", params={"source": "linkedin_ads"}).json()
        assert log_body["count"] == 1
        assert log_body["entries"][0]["status"] == "success"

    def test_log_limit_is_bounded(self, client):
        assert client.get("/sync/log", params={"limit": 0}).status_code == 400


class TestHealth:

    def test_health(self, client):
        body = client.get("/health").json()
        assert body["status"] == "healthy"

    def test_status_lists_sources(self, client):
        body = client.get("/status").json()
        assert "google_ads" in body["normalized_sources"]
        assert "ga4_traffic" in body["aggregated_sources"]
