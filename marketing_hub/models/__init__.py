"""Database models for Marketing Hub"""

from marketing_hub.models.marketing_data import MarketingData, AGGREGATED_METRIC_TYPE
from marketing_hub.models.connection_status import ConnectionStatus
from marketing_hub.models.api_credential import ApiCredential
from marketing_hub.models.sync_log import SyncLog

__all__ = [
    "MarketingData",
    "AGGREGATED_METRIC_TYPE",
    "ConnectionStatus",
    "ApiCredential",
    "SyncLog",
]
