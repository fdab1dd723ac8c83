"""
Google Drive Connector

Lists and downloads CSV files from a Drive folder on behalf of a user,
using the OAuth access token supplied with the import request.
"""
from typing import Any, Dict, List, Optional

import google_auth_httplib2
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build

from marketing_hub.connectors.base import BaseConnector
from marketing_hub.utils.logger import log

CSV_MIME_TYPE = "text/csv"
FILE_FIELDS = "files(id,name,mimeType,modifiedTime)"


class GoogleDriveConnector(BaseConnector):
    """
    Connector for the Drive v3 API

    Only direct children of a folder are listed (non-recursive).
    """

    def __init__(self, access_token: str, timeout: Optional[int] = None):
        super().__init__(service_name="google_drive", timeout=timeout)
        credentials = Credentials(token=access_token)
        authed_http = google_auth_httplib2.AuthorizedHttp(credentials, http=self._http())
        self.service = build("drive", "v3", http=authed_http, cache_discovery=False)

    def list_csv_files(self, folder_id: str) -> List[Dict[str, Any]]:
        """
        Non-trashed CSV files directly parented by folder_id.

        Returns:
            List of {id, name, mimeType, modifiedTime}
        """
        query = f"'{folder_id}' in parents and mimeType='{CSV_MIME_TYPE}' and trashed=false"
        response = self._execute(
            self.service.files().list(q=query, fields=FILE_FIELDS),
            "Google Drive file listing",
        )
        files = response.get("files", [])
        log.info(f"Found {len(files)} CSV files in Drive folder {folder_id}")
        return files

    def get_file_metadata(self, file_id: str) -> Dict[str, Any]:
        return self._execute(
            self.service.files().get(fileId=file_id, fields="id,name,modifiedTime"),
            "Google Drive metadata request",
        )

    def download_file(self, file_id: str) -> str:
        """Raw file content decoded as UTF-8 (BOM stripped)."""
        content = self._execute(
            self.service.files().get_media(fileId=file_id),
            "Google Drive download",
        )
        if isinstance(content, bytes):
            return content.decode("utf-8-sig", errors="replace")
        return content
