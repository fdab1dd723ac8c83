"""
Aggregators

Fold an ordered list of raw rows for one source into the single summary
record dashboards read (metric_type 'aggregated').

All aggregators are pure: they are recomputed from the full set of raw rows
on every run, never merged incrementally. Rows may come from the
spreadsheet tabs (snake_case columns), from normalized webhook records, or
from camelCase vendor objects, so every field is looked up through a short
alias list.

Conventions shared by every aggregator:
- Rates use the zero-denominator-safe formatting of the normalizers ("0").
- Means of per-row rates (bounce rate, session duration, position) are plain
  arithmetic means over rows, not weighted by sessions/impressions.
- date_range_start/end come from the first and last row in input order.
"""
import math
from collections import OrderedDict
from typing import Any, Callable, Dict, List, Sequence

from marketing_hub.models.marketing_data import AGGREGATED_METRIC_TYPE
from marketing_hub.services.marketing_record import MarketingRecord
from marketing_hub.utils.helpers import format_percent, format_ratio, to_float, to_int

Row = Dict[str, Any]

TOP_N = 10


def _field(row: Row, *keys: str) -> Any:
    for key in keys:
        value = row.get(key)
        if value is not None and value != "":
            return value
    return None


def _int(row: Row, *keys: str) -> int:
    return to_int(_field(row, *keys))


def _float(row: Row, *keys: str) -> float:
    return to_float(_field(row, *keys))


def _text(row: Row, default: str, *keys: str) -> str:
    value = _field(row, *keys)
    return str(value) if value is not None else default


def round_half_up(value: float) -> int:
    """Math.round semantics: 0.5 rounds up, unlike Python's round()."""
    return int(math.floor(value + 0.5))


def _mean(total: float, count: int, digits: int = 1) -> str:
    return f"{total / count:.{digits}f}" if count > 0 else "0"


def share_percentages(totals: Dict[str, float]) -> Dict[str, int]:
    """
    Integer percentage of the grand total per group.

    Each group is rounded on its own, so the values may not add up to
    exactly 100.
    """
    grand_total = sum(totals.values())
    return {
        key: round_half_up(value / grand_total * 100) if grand_total > 0 else 0
        for key, value in totals.items()
    }


def _date_bounds(rows: Sequence[Row]) -> tuple:
    if not rows:
        return None, None
    start = _field(rows[0], "date", "date_range_start")
    end = _field(rows[-1], "date", "date_range_end")
    return (str(start) if start is not None else None, str(end) if end is not None else None)


# ---------------------------------------------------------------------------
# Per-source reducers (rows -> summary payload)
# ---------------------------------------------------------------------------

def summarize_ga4_traffic(rows: Sequence[Row]) -> Dict[str, Any]:
    """Sessions/users/page views with device split (GA4 traffic or website traffic)."""
    total_sessions = 0
    total_users = 0
    total_new_users = 0
    total_page_views = 0
    bounce_rate_sum = 0.0
    session_duration_sum = 0.0
    data_points = 0
    device_sessions: Dict[str, int] = OrderedDict()

    for row in rows:
        sessions = _int(row, "sessions")
        total_sessions += sessions
        total_users += _int(row, "users", "total_users", "totalUsers")
        total_new_users += _int(row, "newUsers", "new_users")
        total_page_views += _int(row, "pageViews", "page_views")
        bounce_rate_sum += _float(row, "bounceRate", "bounce_rate")
        session_duration_sum += _float(row, "avgSessionDuration", "avg_session_duration")
        data_points += 1

        device = _text(row, "unknown", "device", "device_category", "deviceCategory")
        device_sessions[device] = device_sessions.get(device, 0) + sessions

    return {
        "sessions": total_sessions,
        "users": total_users,
        "newUsers": total_new_users,
        "newUserPercent": format_percent(total_new_users, total_users, digits=1),
        "pageViews": total_page_views,
        "bounceRate": _mean(bounce_rate_sum, data_points),
        "avgSessionDuration": round_half_up(session_duration_sum / data_points) if data_points > 0 else 0,
        "pagesPerSession": format_ratio(total_page_views, total_sessions),
        "deviceBreakdown": share_percentages(device_sessions),
    }


def summarize_ga4_conversions(rows: Sequence[Row]) -> Dict[str, Any]:
    """Conversion/revenue totals with a per-channel breakdown."""
    total_conversions = 0
    total_revenue = 0.0
    total_purchases = 0
    channels: Dict[str, Dict[str, Any]] = OrderedDict()

    for row in rows:
        channel = _text(row, "Direct", "channel")
        sessions = _int(row, "sessions")
        conversions = _int(row, "conversions")
        revenue = _float(row, "revenue")

        total_conversions += conversions
        total_revenue += revenue
        total_purchases += _int(row, "purchases")

        bucket = channels.setdefault(channel, {"sessions": 0, "conversions": 0, "revenue": 0.0})
        bucket["sessions"] += sessions
        bucket["conversions"] += conversions
        bucket["revenue"] += revenue

    return {
        "conversions": total_conversions,
        "revenue": total_revenue,
        "purchases": total_purchases,
        "channelBreakdown": dict(channels),
    }


def summarize_search_console(rows: Sequence[Row]) -> Dict[str, Any]:
    """Clicks/impressions totals plus top queries and pages by clicks."""
    total_clicks = 0
    total_impressions = 0
    position_sum = 0.0
    queries: Dict[str, Dict[str, Any]] = OrderedDict()
    pages: Dict[str, Dict[str, Any]] = OrderedDict()

    for row in rows:
        clicks = _int(row, "clicks")
        impressions = _int(row, "impressions")
        position = _float(row, "position", "average_position", "avgPosition")
        query = _text(row, "", "query")
        page = _text(row, "", "page", "page_url")

        total_clicks += clicks
        total_impressions += impressions
        position_sum += position

        if query:
            q = queries.setdefault(query, {"clicks": 0, "impressions": 0, "position_sum": 0.0, "count": 0})
            q["clicks"] += clicks
            q["impressions"] += impressions
            q["position_sum"] += position
            q["count"] += 1

        if page:
            p = pages.setdefault(page, {"clicks": 0, "impressions": 0})
            p["clicks"] += clicks
            p["impressions"] += impressions

    top_queries = sorted(
        (
            {
                "query": query,
                "clicks": q["clicks"],
                "impressions": q["impressions"],
                "position": _mean(q["position_sum"], q["count"]),
            }
            for query, q in queries.items()
        ),
        key=lambda item: item["clicks"],
        reverse=True,
    )[:TOP_N]

    top_pages = sorted(
        ({"page": page, "clicks": p["clicks"], "impressions": p["impressions"]} for page, p in pages.items()),
        key=lambda item: item["clicks"],
        reverse=True,
    )[:TOP_N]

    return {
        "clicks": total_clicks,
        "impressions": total_impressions,
        "ctr": format_percent(total_clicks, total_impressions),
        "avgPosition": _mean(position_sum, len(rows)),
        "topQueries": top_queries,
        "topPages": top_pages,
    }


def summarize_google_ads(rows: Sequence[Row]) -> Dict[str, Any]:
    """Paid search totals, efficiency ratios and per-campaign sums."""
    total_impressions = 0
    total_clicks = 0
    total_conversions = 0
    total_cost = 0.0
    campaigns: Dict[str, Dict[str, Any]] = OrderedDict()

    for row in rows:
        campaign = _text(row, "Unknown", "campaign", "campaign_name")
        impressions = _int(row, "impressions")
        clicks = _int(row, "clicks")
        conversions = _int(row, "conversions")
        cost = _float(row, "cost")

        total_impressions += impressions
        total_clicks += clicks
        total_conversions += conversions
        total_cost += cost

        bucket = campaigns.setdefault(
            campaign, {"impressions": 0, "clicks": 0, "conversions": 0, "cost": 0.0, "revenue": 0.0}
        )
        bucket["impressions"] += impressions
        bucket["clicks"] += clicks
        bucket["conversions"] += conversions
        bucket["cost"] += cost
        bucket["revenue"] += _float(row, "revenue", "conversions_value")

    return {
        "impressions": total_impressions,
        "clicks": total_clicks,
        "conversions": total_conversions,
        "cost": total_cost,
        "ctr": format_percent(total_clicks, total_impressions),
        "cpc": format_ratio(total_cost, total_clicks),
        "conversionRate": format_percent(total_conversions, total_clicks),
        "costPerConversion": format_ratio(total_cost, total_conversions),
        "campaigns": dict(campaigns),
    }


def summarize_linkedin_ads(rows: Sequence[Row]) -> Dict[str, Any]:
    """LinkedIn campaign totals including spend and leads."""
    total_impressions = 0
    total_clicks = 0
    total_conversions = 0
    total_spend = 0.0
    total_leads = 0
    campaigns: Dict[str, Dict[str, Any]] = OrderedDict()

    for row in rows:
        campaign = _text(row, "Unknown", "campaign", "campaign_name")
        impressions = _int(row, "impressions")
        clicks = _int(row, "clicks")
        conversions = _int(row, "conversions")
        spend = _float(row, "spend")
        leads = _int(row, "leads")

        total_impressions += impressions
        total_clicks += clicks
        total_conversions += conversions
        total_spend += spend
        total_leads += leads

        bucket = campaigns.setdefault(
            campaign, {"impressions": 0, "clicks": 0, "conversions": 0, "spend": 0.0, "leads": 0}
        )
        bucket["impressions"] += impressions
        bucket["clicks"] += clicks
        bucket["conversions"] += conversions
        bucket["spend"] += spend
        bucket["leads"] += leads

    return {
        "impressions": total_impressions,
        "clicks": total_clicks,
        "conversions": total_conversions,
        "spend": total_spend,
        "leads": total_leads,
        "ctr": format_percent(total_clicks, total_impressions),
        "cpc": format_ratio(total_spend, total_clicks),
        "costPerConversion": format_ratio(total_spend, total_conversions),
        "campaigns": dict(campaigns),
    }


def summarize_marketing_cloud(rows: Sequence[Row]) -> Dict[str, Any]:
    """Email send/engagement totals with rates computed from the sums."""
    totals = {"sends": 0, "opens": 0, "clicks": 0, "bounces": 0, "unsubscribes": 0}

    for row in rows:
        totals["sends"] += _int(row, "sends", "sent", "emails_sent")
        totals["opens"] += _int(row, "opens", "unique_opens")
        totals["clicks"] += _int(row, "clicks", "unique_clicks")
        totals["bounces"] += _int(row, "bounces")
        totals["unsubscribes"] += _int(row, "unsubscribes")

    return {
        **totals,
        "openRate": format_percent(totals["opens"], totals["sends"]),
        "clickRate": format_percent(totals["clicks"], totals["opens"]),
        "bounceRate": format_percent(totals["bounces"], totals["sends"]),
        "rowsAggregated": len(rows),
    }


# Source -> reducer. website_traffic and seo reuse the GA4 / Search Console shapes.
AGGREGATORS: Dict[str, Callable[[Sequence[Row]], Dict[str, Any]]] = {
    "ga4_traffic": summarize_ga4_traffic,
    "website_traffic": summarize_ga4_traffic,
    "ga4_conversions": summarize_ga4_conversions,
    "search_console": summarize_search_console,
    "seo": summarize_search_console,
    "google_ads": summarize_google_ads,
    "linkedin_ads": summarize_linkedin_ads,
    "marketing_cloud": summarize_marketing_cloud,
}


def has_aggregator(source: str) -> bool:
    return source in AGGREGATORS


def aggregate(source: str, rows: Sequence[Row]) -> MarketingRecord:
    """
    Build the aggregated record for a source.

    Args:
        source: Source name (must have an entry in AGGREGATORS)
        rows: Raw rows in the order they should be read; bounds come from
            the first and last row, so callers sort by date if that matters

    Returns:
        MarketingRecord with metric_type 'aggregated'
    """
    summarize = AGGREGATORS.get(source)
    if summarize is None:
        raise KeyError(f"No aggregator registered for source '{source}'")

    rows = list(rows)
    start, end = _date_bounds(rows)
    return MarketingRecord(
        source=source,
        metric_type=AGGREGATED_METRIC_TYPE,
        data=summarize(rows),
        date_range_start=start,
        date_range_end=end,
    )


def supported_sources() -> List[str]:
    return list(AGGREGATORS.keys())
