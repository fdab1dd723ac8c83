"""
Google Drive CSV import endpoint

Single entry point with an `action` switch:
- list_files:    {folderId}  -> {files}
- import_file:   {fileId}    -> {success, result}
- import_folder: {folderId}  -> {success, results, totalImported}
"""
from typing import Optional

from fastapi import APIRouter, Depends, Response
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.orm import Session

from marketing_hub.api.webhook import OTHER_METHODS, method_not_allowed
from marketing_hub.config import get_settings
from marketing_hub.connectors.google_drive import GoogleDriveConnector
from marketing_hub.exceptions import AuthenticationError, IngestionError, ValidationError
from marketing_hub.models.base import get_db
from marketing_hub.services import marketing_store
from marketing_hub.services.import_orchestrator import ImportOrchestrator
from marketing_hub.utils.logger import log

router = APIRouter(prefix="/functions", tags=["functions"])

ACTIONS = ("list_files", "import_file", "import_folder")


class DriveImportRequest(BaseModel):
    action: Optional[str] = None
    folderId: Optional[str] = None
    accessToken: Optional[str] = None
    fileId: Optional[str] = None
    apiKey: Optional[str] = None


def get_drive_connector_factory():
    """Dependency so tests can swap in a fake Drive client."""
    return GoogleDriveConnector


def _check_api_key(db: Session, api_key: Optional[str]) -> None:
    """An apiKey is optional, but when given it must match the active google_drive credential."""
    if not api_key:
        return
    credential = marketing_store.get_active_credential(db, get_settings().drive_service_name)
    if credential is None or credential.api_key != api_key:
        raise AuthenticationError("Invalid API key")


def _require(value: Optional[str], message: str) -> str:
    if not value:
        raise ValidationError(message)
    return value


@router.post("/google-drive-import")
def google_drive_import(
    request: DriveImportRequest,
    db: Session = Depends(get_db),
    connector_factory=Depends(get_drive_connector_factory),
):
    """List or import CSV files from a Google Drive folder."""
    _check_api_key(db, request.apiKey)
    access_token = _require(request.accessToken, "Google Drive access token is required")

    if request.action not in ACTIONS:
        raise ValidationError("Invalid action. Use list_files, import_file, or import_folder")

    try:
        orchestrator = ImportOrchestrator(db, access_token, connector_factory=connector_factory)

        if request.action == "list_files":
            folder_id = _require(request.folderId, "Folder ID is required")
            return {"files": orchestrator.list_files(folder_id)}

        if request.action == "import_file":
            file_id = _require(request.fileId, "File ID is required")
            result = orchestrator.import_file(file_id)
            return {"success": result.status != "error", "result": result.to_dict()}

        folder_id = _require(request.folderId, "Folder ID is required")
        outcome = orchestrator.import_folder(folder_id)
        return {
            "success": True,
            "results": [r.to_dict() for r in outcome["results"]],
            "totalImported": outcome["total_imported"],
        }

    except IngestionError:
        raise
    except Exception as e:
        log.exception(f"Error in google-drive-import: {str(e)}")
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error", "details": str(e)},
        )


@router.options("/google-drive-import")
def drive_import_preflight():
    return Response(status_code=200)


@router.api_route("/google-drive-import", methods=OTHER_METHODS, include_in_schema=False)
def drive_import_other_methods():
    return method_not_allowed()
