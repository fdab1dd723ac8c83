"""
Marketing Data Models

Canonical marketing records from every source. Raw webhook pushes and CSV
rows are appended; each source keeps a single precomputed roll-up row with
metric_type 'aggregated' that dashboards read directly.
"""
from sqlalchemy import Column, Integer, String, DateTime, Date, JSON, Index
from datetime import datetime

from marketing_hub.models.base import Base

AGGREGATED_METRIC_TYPE = "aggregated"


class MarketingData(Base):
    """One canonical record: a source's payload for a metric type and date window"""
    __tablename__ = "marketing_data"

    id = Column(Integer, primary_key=True, index=True)

    # Discriminators
    source = Column(String, nullable=False, index=True)
    # google_ads, ga4_traffic, search_console, linkedin_ads, marketing_cloud, seo, website_traffic
    metric_type = Column(String, nullable=False, index=True)
    # campaign_performance, daily_performance, email_trends, ... or 'aggregated'

    # Open, source-specific payload
    data = Column(JSON, nullable=False, default=dict)

    # Window the record describes (null for point-in-time records)
    date_range_start = Column(Date, nullable=True)
    date_range_end = Column(Date, nullable=True)

    # Timestamps
    synced_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        # At most one aggregated row per source; raw rows are unconstrained
        Index(
            "uq_marketing_data_aggregated",
            "source",
            "metric_type",
            unique=True,
            sqlite_where=(metric_type == AGGREGATED_METRIC_TYPE),
            postgresql_where=(metric_type == AGGREGATED_METRIC_TYPE),
        ),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "source": self.source,
            "metric_type": self.metric_type,
            "data": self.data,
            "date_range_start": self.date_range_start.isoformat() if self.date_range_start else None,
            "date_range_end": self.date_range_end.isoformat() if self.date_range_end else None,
            "synced_at": self.synced_at.isoformat() if self.synced_at else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<MarketingData {self.source}/{self.metric_type} #{self.id}>"
