"""
Source Normalizers

Map vendor-shaped objects (as pushed by Dataslayer) into MarketingRecord.
Every normalizer is total: missing numbers default to 0 and derived rates
are "0" whenever the ratio would be empty (zero numerator or zero
denominator). Unknown sources pass through unchanged.
"""
from typing import Any, Callable, Dict, List, Optional

from marketing_hub.models.marketing_data import AGGREGATED_METRIC_TYPE
from marketing_hub.services.marketing_record import MarketingRecord
from marketing_hub.utils.helpers import format_percent, format_ratio, to_number

Normalizer = Callable[[Dict[str, Any]], MarketingRecord]

REQUIRED_PAYLOAD_FIELDS = ("source", "metric_type", "data", "api_key")
RESERVED_METRIC_TYPE_ERROR = f"metric_type '{AGGREGATED_METRIC_TYPE}' is reserved for roll-up records"


def _num(raw: Dict[str, Any], key: str) -> Any:
    return to_number(raw.get(key))


def _rate(numerator: float, denominator: float, percent: bool = True) -> str:
    """Derived rate as a two-decimal string; "0" when either side is zero."""
    if not numerator or not denominator:
        return "0"
    if percent:
        return format_percent(numerator, denominator)
    return format_ratio(numerator, denominator)


def _record(source: str, raw: Dict[str, Any], default_metric_type: str, data: Dict[str, Any]) -> MarketingRecord:
    return MarketingRecord(
        source=source,
        metric_type=raw.get("metric_type") or default_metric_type,
        data=data,
        date_range_start=raw.get("date_range_start") or None,
        date_range_end=raw.get("date_range_end") or None,
    )


def normalize_google_ads(raw: Dict[str, Any]) -> MarketingRecord:
    impressions = _num(raw, "impressions")
    clicks = _num(raw, "clicks")
    conversions = _num(raw, "conversions")
    cost = _num(raw, "cost")
    return _record("google_ads", raw, "campaign_performance", {
        "campaign_name": raw.get("campaign_name"),
        "impressions": impressions,
        "clicks": clicks,
        "conversions": conversions,
        "cost": cost,
        "ctr": _rate(clicks, impressions),
        "cpc": _rate(cost, clicks, percent=False),
        "conversion_rate": _rate(conversions, clicks),
    })


def normalize_linkedin_ads(raw: Dict[str, Any]) -> MarketingRecord:
    impressions = _num(raw, "impressions")
    clicks = _num(raw, "clicks")
    return _record("linkedin_ads", raw, "campaign_performance", {
        "campaign_name": raw.get("campaign_name"),
        "impressions": impressions,
        "clicks": clicks,
        "conversions": _num(raw, "conversions"),
        "spend": _num(raw, "spend"),
        "engagement_rate": _num(raw, "engagement_rate"),
        "leads": _num(raw, "leads"),
        "ctr": _rate(clicks, impressions),
    })


def normalize_marketing_cloud(raw: Dict[str, Any]) -> MarketingRecord:
    sends = _num(raw, "sends")
    opens = _num(raw, "opens")
    clicks = _num(raw, "clicks")
    bounces = _num(raw, "bounces")
    return _record("marketing_cloud", raw, "email_performance", {
        "email_name": raw.get("email_name"),
        "sends": sends,
        "opens": opens,
        "clicks": clicks,
        "bounces": bounces,
        "unsubscribes": _num(raw, "unsubscribes"),
        "open_rate": _rate(opens, sends),
        "click_rate": _rate(clicks, opens),
        "bounce_rate": _rate(bounces, sends),
    })


def normalize_seo(raw: Dict[str, Any]) -> MarketingRecord:
    impressions = _num(raw, "impressions")
    clicks = _num(raw, "clicks")
    return _record("seo", raw, "organic_performance", {
        "page_url": raw.get("page_url"),
        "impressions": impressions,
        "clicks": clicks,
        "average_position": _num(raw, "average_position"),
        "ctr": _rate(clicks, impressions),
    })


def normalize_website_traffic(raw: Dict[str, Any]) -> MarketingRecord:
    sessions = _num(raw, "sessions")
    page_views = _num(raw, "page_views")
    return _record("website_traffic", raw, "page_views", {
        "sessions": sessions,
        "users": _num(raw, "users"),
        "page_views": page_views,
        "bounce_rate": _num(raw, "bounce_rate"),
        "avg_session_duration": _num(raw, "avg_session_duration"),
        "pages_per_session": _rate(page_views, sessions, percent=False),
    })


# Declared source name (lowercased) -> normalizer
NORMALIZERS: Dict[str, Normalizer] = {
    "google_ads": normalize_google_ads,
    "linkedin_ads": normalize_linkedin_ads,
    "marketing_cloud": normalize_marketing_cloud,
    "salesforce_marketing_cloud": normalize_marketing_cloud,
    "seo": normalize_seo,
    "google_search_console": normalize_seo,
    "website_traffic": normalize_website_traffic,
    "google_analytics": normalize_website_traffic,
}


def get_normalizer(source: Optional[str]) -> Optional[Normalizer]:
    return NORMALIZERS.get((source or "").lower())


def normalize(
    source: str,
    metric_type: Optional[str],
    data: Dict[str, Any],
    date_range_start: Optional[str] = None,
    date_range_end: Optional[str] = None,
) -> MarketingRecord:
    """
    Route a pushed payload through its source's normalizer.

    Envelope fields (metric_type, date range) fill in whatever the vendor
    object does not carry itself. Unknown sources are stored as-is.
    """
    normalizer = get_normalizer(source)
    if normalizer is None:
        return MarketingRecord(
            source=source,
            metric_type=metric_type,
            data=data,
            date_range_start=date_range_start or None,
            date_range_end=date_range_end or None,
        )

    raw = dict(data)
    if metric_type:
        raw.setdefault("metric_type", metric_type)
    if date_range_start:
        raw.setdefault("date_range_start", date_range_start)
    if date_range_end:
        raw.setdefault("date_range_end", date_range_end)
    return normalizer(raw)


def validate_payload(payload: Dict[str, Any]) -> List[str]:
    """List what is wrong with a webhook payload: missing fields or a reserved metric_type."""
    errors = [
        f"Missing required field: {name}"
        for name in REQUIRED_PAYLOAD_FIELDS
        if payload.get(name) in (None, "")
    ]
    if payload.get("metric_type") == AGGREGATED_METRIC_TYPE:
        errors.append(RESERVED_METRIC_TYPE_ERROR)
    return errors
