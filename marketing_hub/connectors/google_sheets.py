"""
Google Sheets Connector

Reads cell ranges from the marketing data spreadsheet with an API key
(the spreadsheet is shared for read access).
"""
from typing import List, Optional

from googleapiclient.discovery import build

from marketing_hub.connectors.base import BaseConnector


class GoogleSheetsConnector(BaseConnector):
    """Connector for the Sheets v4 values API"""

    def __init__(self, api_key: str, spreadsheet_id: str, timeout: Optional[int] = None):
        """
        Args:
            api_key: Google API key with Sheets API enabled
            spreadsheet_id: Spreadsheet holding one tab per source
        """
        super().__init__(service_name="google_sheets", timeout=timeout)
        self.spreadsheet_id = spreadsheet_id
        self.service = build(
            "sheets", "v4",
            developerKey=api_key,
            http=self._http(),
            cache_discovery=False,
        )

    def fetch_values(self, cell_range: str) -> List[List[str]]:
        """Rows of a range such as 'GA4_Traffic!A2:J' (trailing empty cells are omitted)."""
        response = self._execute(
            self.service.spreadsheets().values().get(
                spreadsheetId=self.spreadsheet_id,
                range=cell_range,
            ),
            f"Google Sheets read of {cell_range}",
        )
        return response.get("values", [])
