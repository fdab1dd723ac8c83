"""
Metric-Type Classifier

Best-effort guess of what an imported CSV contains, from its file name and
column names. Filename rules are checked first, in table order; column rules
only run when no filename rule matched. Anything unrecognised lands in
'kpi_summary'.
"""
from typing import Callable, Iterable, List, Optional, Tuple

EMAIL_TRENDS = "email_trends"
GA4_ATTRIBUTION = "ga4_attribution"
KPI_SUMMARY = "kpi_summary"
CAMPAIGN_PERFORMANCE = "campaign_performance"

METRIC_TYPES = (EMAIL_TRENDS, GA4_ATTRIBUTION, KPI_SUMMARY, CAMPAIGN_PERFORMANCE)
DEFAULT_METRIC_TYPE = KPI_SUMMARY

EMAIL_RATE_COLUMNS = ("open_rate", "ctr", "ctor")


def _any_header_contains(headers: List[str], fragment: str) -> bool:
    return any(fragment in h for h in headers)


def _classify_email_file(file_name: str, headers: List[str]) -> str:
    """Email exports: trend files (by name or a month column) vs. KPI snapshots."""
    if "trend" in file_name or _any_header_contains(headers, "month"):
        return EMAIL_TRENDS
    return KPI_SUMMARY


# (filename fragments, resolver). First matching row wins.
FILENAME_RULES: List[Tuple[Tuple[str, ...], Callable[[str, List[str]], str]]] = [
    (("email", "marketing_cloud"), _classify_email_file),
    (("attribution", "utm"), lambda name, headers: GA4_ATTRIBUTION),
    (("kpi", "summary"), lambda name, headers: KPI_SUMMARY),
    (("campaign",), lambda name, headers: CAMPAIGN_PERFORMANCE),
]


def _is_email_metrics(headers: List[str]) -> bool:
    return any(_any_header_contains(headers, col) for col in EMAIL_RATE_COLUMNS)


def _is_attribution(headers: List[str]) -> bool:
    return _any_header_contains(headers, "revenue") and _any_header_contains(headers, "conversion")


COLUMN_RULES: List[Tuple[Callable[[List[str]], bool], str]] = [
    (_is_email_metrics, EMAIL_TRENDS),
    (_is_attribution, GA4_ATTRIBUTION),
]


def classify_by_filename(file_name: str, headers: List[str]) -> Optional[str]:
    name = (file_name or "").lower()
    for fragments, resolve in FILENAME_RULES:
        if any(fragment in name for fragment in fragments):
            return resolve(name, headers)
    return None


def classify_by_columns(headers: List[str]) -> Optional[str]:
    for matches, metric_type in COLUMN_RULES:
        if matches(headers):
            return metric_type
    return None


def detect_metric_type(file_name: str, headers: Iterable[str]) -> str:
    """
    Pick a metric type for an import batch.

    Args:
        file_name: Human-supplied file name (e.g. "Email Trends Q3.csv")
        headers: Normalised column names of the parsed CSV

    Returns:
        One of METRIC_TYPES
    """
    header_list = [h.lower() for h in headers]
    return (
        classify_by_filename(file_name, header_list)
        or classify_by_columns(header_list)
        or DEFAULT_METRIC_TYPE
    )
