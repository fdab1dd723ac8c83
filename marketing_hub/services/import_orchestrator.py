"""
Google Drive CSV Import Orchestrator

Pulls CSV exports from a Drive folder into marketing_data.

- list_files: non-trashed CSVs directly inside a folder
- import_file: parse one CSV, classify it, insert every row on its own
- import_folder: import_file for every CSV in a folder, continuing past
  per-file failures

Row inserts are independent: a failing row is recorded as
"Row N: <message>" and the remaining rows still go in. Every import ends
with one sync_log row and a connection_status update for google_drive.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.orm import Session

from marketing_hub.config import Settings, get_settings
from marketing_hub.connectors.google_drive import GoogleDriveConnector
from marketing_hub.exceptions import PersistenceError, RowLevelError, UpstreamError
from marketing_hub.services import marketing_store
from marketing_hub.services.csv_parser import csv_headers, parse_csv
from marketing_hub.services.marketing_record import MarketingRecord
from marketing_hub.services.metric_classifier import detect_metric_type
from marketing_hub.utils.logger import log

NO_RECORDS_ERROR = "No valid records found in CSV"
DOWNLOAD_ERROR = "Failed to download file"

ConnectorFactory = Callable[[str], GoogleDriveConnector]


@dataclass
class ImportResult:
    """Outcome of importing one file."""
    file_name: str
    records_imported: int = 0
    errors: List[str] = field(default_factory=list)
    total_records: int = 0

    @property
    def status(self) -> str:
        if not self.errors:
            return "success"
        if self.records_imported == 0:
            return "error"
        return "partial"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "fileName": self.file_name,
            "recordsImported": self.records_imported,
            "errors": list(self.errors),
        }


class ImportOrchestrator:
    """Import CSV files from Google Drive for one access token."""

    def __init__(
        self,
        db: Session,
        access_token: str,
        settings: Optional[Settings] = None,
        connector_factory: Optional[ConnectorFactory] = None,
    ):
        self.db = db
        self.settings = settings or get_settings()
        self.service_name = self.settings.drive_service_name
        factory = connector_factory or GoogleDriveConnector
        self.drive = factory(access_token)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def list_files(self, folder_id: str) -> List[Dict[str, Any]]:
        return self.drive.list_csv_files(folder_id)

    def import_file(self, file_id: str) -> ImportResult:
        """
        Import one Drive file.

        Raises:
            UpstreamError: metadata or content could not be fetched
                (audited before raising)
        """
        try:
            meta = self.drive.get_file_metadata(file_id)
            content = self.drive.download_file(file_id)
        except UpstreamError as e:
            self._record_failure(e, metadata={"file_id": file_id})
            raise

        file_name = meta.get("name") or file_id
        result = self._import_content(file_name, content)
        errors = result.errors

        marketing_store.log_sync(
            self.db,
            source=self.service_name,
            status=result.status,
            records_count=result.records_imported,
            error_message=self._error_preview(errors),
            metadata={
                "file_name": file_name,
                "file_id": file_id,
                "total_records": result.total_records,
                "errors_count": len(errors),
            },
        )
        marketing_store.upsert_connection_status(
            self.db,
            self.service_name,
            status="error" if result.status == "error" else "connected",
            error_message=self._error_preview(errors) if result.status == "error" else None,
            metadata={"last_import": file_name, "records_imported": result.records_imported},
        )

        log.info(
            f"Imported {result.records_imported}/{result.total_records} rows from {file_name} "
            f"({len(errors)} errors)"
        )
        result.errors = errors[:self.settings.drive_import_max_errors]
        return result

    def import_folder(self, folder_id: str) -> Dict[str, Any]:
        """
        Import every CSV in a folder.

        Returns:
            {"results": [ImportResult, ...], "total_imported": int}
        """
        try:
            files = self.drive.list_csv_files(folder_id)
        except UpstreamError as e:
            self._record_failure(e, metadata={"folder_id": folder_id})
            raise

        results: List[ImportResult] = []
        max_errors = self.settings.drive_folder_max_errors

        # Sequential: the session is not shared across threads.
        for drive_file in files:
            file_name = drive_file.get("name") or drive_file.get("id")
            try:
                content = self.drive.download_file(drive_file["id"])
            except UpstreamError as e:
                log.warning(f"Skipping {file_name}: {e.message}")
                results.append(ImportResult(file_name=file_name, errors=[DOWNLOAD_ERROR]))
                continue

            result = self._import_content(file_name, content)
            result.errors = result.errors[:max_errors]
            results.append(result)

        total_imported = sum(r.records_imported for r in results)
        nothing_imported = bool(files) and total_imported == 0

        marketing_store.log_sync(
            self.db,
            source=self.service_name,
            status="success" if total_imported > 0 else "error",
            records_count=total_imported,
            metadata={
                "folder_id": folder_id,
                "files_processed": len(files),
                "results": [r.to_dict() for r in results],
            },
        )
        marketing_store.upsert_connection_status(
            self.db,
            self.service_name,
            status="error" if nothing_imported else "connected",
            error_message="No records imported from folder" if nothing_imported else None,
            metadata={
                "last_bulk_import": datetime.utcnow().isoformat(),
                "files_processed": len(files),
                "records_imported": total_imported,
            },
        )

        log.info(f"Folder import {folder_id}: {total_imported} rows from {len(files)} files")
        return {"results": results, "total_imported": total_imported}

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _import_content(self, file_name: str, content: str) -> ImportResult:
        records = parse_csv(content)
        if not records:
            return ImportResult(file_name=file_name, errors=[NO_RECORDS_ERROR])

        metric_type = detect_metric_type(file_name, csv_headers(records))
        result = ImportResult(file_name=file_name, total_records=len(records))

        for row_number, row in enumerate(records, start=1):
            try:
                self._insert_row(row_number, row, metric_type)
                result.records_imported += 1
            except RowLevelError as e:
                result.errors.append(e.message)

        return result

    def _insert_row(self, row_number: int, row: Dict[str, Any], metric_type: str) -> None:
        record = MarketingRecord(
            source=self.settings.drive_import_source,
            metric_type=metric_type,
            data=row,
            date_range_start=row.get("date_range_start") or row.get("date") or None,
            date_range_end=row.get("date_range_end") or row.get("date") or None,
        )
        try:
            marketing_store.insert_record(self.db, record)
        except PersistenceError as e:
            raise RowLevelError(row_number, str(e.__cause__ or e.message)) from e

    def _error_preview(self, errors: List[str]) -> Optional[str]:
        if not errors:
            return None
        return "; ".join(errors[:self.settings.sync_log_error_preview])

    def _record_failure(self, error: UpstreamError, metadata: Dict[str, Any]) -> None:
        message = error.message if error.details is None else f"{error.message}: {error.details}"
        marketing_store.log_sync(
            self.db, source=self.service_name, status="error",
            records_count=0, error_message=message, metadata=metadata,
        )
        marketing_store.upsert_connection_status(
            self.db, self.service_name, status="error", error_message=message,
        )
