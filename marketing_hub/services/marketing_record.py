"""Canonical record shape shared by normalizers, aggregators and the store."""
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, Optional


@dataclass
class MarketingRecord:
    """A source's payload for one metric type, optionally bounded by a date window."""
    source: str
    metric_type: str
    data: Dict[str, Any] = field(default_factory=dict)
    date_range_start: Optional[str] = None
    date_range_end: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
