"""
Dashboard data views

Typed, fully-defaulted views over the schema-less `data` of aggregated
records. The store keeps whatever the aggregator produced; consumers get
every field with a safe default, so a partially populated record never
breaks a dashboard.
"""
from dataclasses import asdict, dataclass, field, fields
from typing import Any, Dict, List, Optional, Type

from marketing_hub.models.marketing_data import MarketingData


@dataclass
class DataView:
    """Base view: fields missing (or null/empty) in the record keep their default."""

    @classmethod
    def from_data(cls, data: Optional[Dict[str, Any]]):
        data = data or {}
        values = {}
        for f in fields(cls):
            value = data.get(f.name)
            if value is not None and value != "":
                values[f.name] = value
        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class GA4TrafficView(DataView):
    sessions: int = 0
    users: int = 0
    newUsers: int = 0
    newUserPercent: str = "0"
    pageViews: int = 0
    bounceRate: str = "0"
    avgSessionDuration: int = 0
    pagesPerSession: str = "0"
    deviceBreakdown: Dict[str, int] = field(default_factory=dict)


@dataclass
class GA4ConversionsView(DataView):
    conversions: int = 0
    revenue: float = 0.0
    purchases: int = 0
    channelBreakdown: Dict[str, Dict[str, Any]] = field(default_factory=dict)


@dataclass
class SearchConsoleView(DataView):
    clicks: int = 0
    impressions: int = 0
    ctr: str = "0"
    avgPosition: str = "0"
    topQueries: List[Dict[str, Any]] = field(default_factory=list)
    topPages: List[Dict[str, Any]] = field(default_factory=list)


@dataclass
class GoogleAdsView(DataView):
    impressions: int = 0
    clicks: int = 0
    conversions: int = 0
    cost: float = 0.0
    ctr: str = "0"
    cpc: str = "0"
    conversionRate: str = "0"
    costPerConversion: str = "0"
    campaigns: Dict[str, Dict[str, Any]] = field(default_factory=dict)


@dataclass
class LinkedInAdsView(DataView):
    impressions: int = 0
    clicks: int = 0
    conversions: int = 0
    spend: float = 0.0
    leads: int = 0
    ctr: str = "0"
    cpc: str = "0"
    costPerConversion: str = "0"
    campaigns: Dict[str, Dict[str, Any]] = field(default_factory=dict)


@dataclass
class MarketingCloudView(DataView):
    sends: int = 0
    opens: int = 0
    clicks: int = 0
    bounces: int = 0
    unsubscribes: int = 0
    openRate: str = "0"
    clickRate: str = "0"
    bounceRate: str = "0"
    rowsAggregated: int = 0


VIEWS: Dict[str, Type[DataView]] = {
    "ga4_traffic": GA4TrafficView,
    "website_traffic": GA4TrafficView,
    "ga4_conversions": GA4ConversionsView,
    "search_console": SearchConsoleView,
    "seo": SearchConsoleView,
    "google_ads": GoogleAdsView,
    "linkedin_ads": LinkedInAdsView,
    "marketing_cloud": MarketingCloudView,
}


def render_aggregate(source: str, row: Optional[MarketingData]) -> Dict[str, Any]:
    """
    Response body for an aggregated record.

    Sources without a view return their stored data unchanged; a missing
    record gives data None so the dashboard falls back to its own sample data.
    """
    if row is None:
        return {"source": source, "data": None}

    view = VIEWS.get(source)
    data = view.from_data(row.data).to_dict() if view else row.data
    return {
        "source": source,
        "metric_type": row.metric_type,
        "data": data,
        "date_range_start": row.date_range_start.isoformat() if row.date_range_start else None,
        "date_range_end": row.date_range_end.isoformat() if row.date_range_end else None,
        "synced_at": row.synced_at.isoformat() if row.synced_at else None,
    }
