"""
Fake Google clients used in place of the Drive and Sheets connectors.
"""
from marketing_hub.exceptions import UpstreamError


class FakeDriveConnector:
    """
    Stand-in for GoogleDriveConnector.

    files: {file_id: {"name": ..., "content": str}}; a content of None
    makes the download fail the way an HttpError would.
    """

    def __init__(self, files=None, list_error=None):
        self.files = files or {}
        self.list_error = list_error
        self.access_token = None

    def __call__(self, access_token):
        self.access_token = access_token
        return self

    def list_csv_files(self, folder_id):
        if self.list_error:
            raise self.list_error
        return [
            {"id": file_id, "name": f["name"], "mimeType": "text/csv", "modifiedTime": "2024-01-01T00:00:00Z"}
            for file_id, f in self.files.items()
        ]

    def get_file_metadata(self, file_id):
        if file_id not in self.files:
            raise UpstreamError("Google Drive metadata request failed", status_code=404, details="File not found")
        return {"id": file_id, "name": self.files[file_id]["name"]}

    def download_file(self, file_id):
        f = self.files.get(file_id)
        if f is None or f.get("content") is None:
            raise UpstreamError("Google Drive download failed", status_code=403, details="Forbidden")
        return f["content"]


class FakeSheetsConnector:
    """Stand-in for GoogleSheetsConnector: {range: rows or Exception}."""

    def __init__(self, ranges=None):
        self.ranges = ranges or {}
        self.requested = []

    def __call__(self, api_key, spreadsheet_id):
        return self

    def fetch_values(self, cell_range):
        self.requested.append(cell_range)
        value = self.ranges.get(cell_range, [])
        if isinstance(value, Exception):
            raise value
        return value
