"""Aggregate 3-hour forecast samples into per-day summaries."""
from __future__ import annotations

import datetime as dt
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Iterable, List

from weather_mcp.models import RawSample
from utils.logging_utils import get_tagged_logger
logger = get_tagged_logger(__name__, tag="forecast_service")

MIN_FORECAST_DAYS = 1
MAX_FORECAST_DAYS = 5
DEFAULT_FORECAST_DAYS = 3


@dataclass(frozen=True)
class DaySummary:
    """Finalized conditions for one UTC calendar day.

    Temperatures keep full precision; rounding is a rendering concern.
    """
    date: str  # ISO YYYY-MM-DD
    temp_min: float
    temp_max: float
    condition_code: int
    condition_text: str
    avg_wind_speed: float
    precipitation: float

    def weekday_label(self) -> str:
        """Return e.g. 'Monday, Jan 01'."""
        return dt.date.fromisoformat(self.date).strftime("%A, %b %d")


@dataclass
class DayBucket:
    """Running accumulator for the samples of one calendar day."""
    date: str
    temp_min: float = float("inf")
    temp_max: float = float("-inf")
    condition_codes: List[int] = field(default_factory=list)
    condition_texts: Dict[int, str] = field(default_factory=dict)  # first text seen per code
    precipitation: float = 0.0
    wind_total: float = 0.0
    sample_count: int = 0

    def add(self, sample: RawSample) -> None:
        """Fold one sample into the bucket."""
        self.temp_min = min(self.temp_min, sample.main.temp_min)
        self.temp_max = max(self.temp_max, sample.main.temp_max)
        self.condition_codes.append(sample.condition_code)
        self.condition_texts.setdefault(sample.condition_code, sample.condition_text)
        self.precipitation += sample.precipitation
        self.wind_total += sample.wind.speed
        self.sample_count += 1

    def summarize(self) -> DaySummary:
        """Build the DaySummary for this bucket."""
        code = dominant_condition(self.condition_codes)
        return DaySummary(
            date=self.date,
            temp_min=self.temp_min,
            temp_max=self.temp_max,
            condition_code=code,
            condition_text=self.condition_texts[code],
            avg_wind_speed=self.wind_total / self.sample_count,
            precipitation=self.precipitation,
        )


def dominant_condition(codes: Iterable[int]) -> int:
    """Return the most frequent condition code.

    Counts are scanned in first-seen order and a code replaces the current
    winner when its count is >= the best so far, so among tied codes the last
    one in that order wins (e.g. [800, 800, 500, 500] -> 500). This mirrors the
    behaviour clients already see; keep it unless the tie policy is redefined.
    """
    counts = Counter(codes)
    if not counts:
        raise ValueError("dominant_condition() requires at least one code")

    best_code, best_count = 0, 0
    for code, count in counts.items():
        if count >= best_count:
            best_code, best_count = code, count
    return best_code


def clamp_days(days: int) -> int:
    """Clamp a requested day count into the supported range."""
    return max(MIN_FORECAST_DAYS, min(MAX_FORECAST_DAYS, days))


def aggregate_forecast(samples: Iterable[RawSample], days: int) -> List[DaySummary]:
    """
    Group samples by UTC date and summarize the first `days` dates.

    Samples are expected in chronological order (the provider's order); they
    are not re-sorted. Dates are sorted before selection, so output is always
    ascending. If fewer than `days` dates exist, only those are returned.
    """
    buckets: Dict[str, DayBucket] = {}
    for sample in samples:
        key = sample.date_key
        bucket = buckets.get(key)
        if bucket is None:
            bucket = buckets[key] = DayBucket(date=key)
        bucket.add(sample)

    selected = sorted(buckets)[:days]
    logger.debug(
        "Aggregated forecast samples",
        extra={"days_available": len(buckets), "days_requested": days, "days_selected": len(selected)},
    )
    return [buckets[d].summarize() for d in selected]
