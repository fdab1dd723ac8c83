"""Google API connectors for Marketing Hub"""

from marketing_hub.connectors.base import BaseConnector
from marketing_hub.connectors.google_drive import GoogleDriveConnector
from marketing_hub.connectors.google_sheets import GoogleSheetsConnector

__all__ = [
    "BaseConnector",
    "GoogleDriveConnector",
    "GoogleSheetsConnector"
]
