import logging
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Tuple

from sqlalchemy.orm import Session

from shortlink.core.errors import LinkNotFound
from shortlink.db import repository
from shortlink.db.Models.models import ClickEvent
from shortlink.schemas.UrlAnalysisStats import CountryCount, DeviceCount, SourceCount, UrlAnalysisStats
from shortlink.utils.encoding import normalize_short_code

logger = logging.getLogger(__name__)

UNKNOWN_BUCKET = "UNKNOWN"
PERIOD_ALL = "Whole history"
PERIOD_FILTERED = "Filtered window"


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes; everything is stored as UTC
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def filter_by_window(events: Iterable[ClickEvent], start: Optional[datetime],
                     end: Optional[datetime]) -> List[ClickEvent]:
    """Keep events inside the inclusive [start, end] window.

    With no bounds every event is kept. With any bound, events without a
    timestamp are dropped.
    """
    events = list(events)
    if start is None and end is None:
        return events

    start, end = as_utc(start), as_utc(end)
    kept = []
    for event in events:
        ts = as_utc(event.timestamp)
        if ts is None:
            continue
        if start is not None and ts < start:
            continue
        if end is not None and ts > end:
            continue
        kept.append(event)
    return kept


def count_by(events: Iterable[ClickEvent], attribute: str) -> List[Tuple[str, int]]:
    """Occurrences per value, in first-seen order; empty values count as UNKNOWN."""
    counts = {}
    for event in events:
        value = getattr(event, attribute) or UNKNOWN_BUCKET
        counts[value] = counts.get(value, 0) + 1
    return list(counts.items())


class LinkAnalytics:

    @staticmethod
    def summarize(db: Session, short_code: str, start: Optional[datetime] = None,
                  end: Optional[datetime] = None) -> UrlAnalysisStats:
        code = normalize_short_code(short_code or "")
        link = repository.find_link_by_short_code(db, code) if code else None
        if link is None:
            raise LinkNotFound(f"Link with shortCode '{code}' not found")

        logged = repository.list_click_events(db, link.id)
        events = filter_by_window(logged, start, end)

        timestamps = [as_utc(e.timestamp) for e in events if e.timestamp is not None]
        first_click = min(timestamps) if timestamps else None
        last_click = max(timestamps) if timestamps else None

        total_clicks = len(events)
        if not logged:
            # links older than the click log only have the counter
            total_clicks = link.hit_count or 0

        stats = UrlAnalysisStats(
            url_id=link.id,
            short_code=link.short_code,
            long_url=link.long_url,
            total_clicks=total_clicks,
            period=PERIOD_FILTERED if (start or end) else PERIOD_ALL,
            first_click=first_click,
            last_click=last_click,
            countries=[CountryCount(country=v, count=n) for v, n in count_by(events, "country")],
            devices=[DeviceCount(device_type=v, count=n) for v, n in count_by(events, "device_type")],
            sources=[SourceCount(source=v, count=n) for v, n in count_by(events, "source")],
        )
        logger.info(
            "analysis:%s events=%d total=%d period=%s",
            link.short_code, len(events), stats.total_clicks, stats.period,
        )
        return stats

    @staticmethod
    def build_summary(stats: UrlAnalysisStats) -> str:
        top_country = stats.countries[0].country if stats.countries else "an unknown country"
        top_device = stats.devices[0].device_type if stats.devices else "unknown"
        first = f"on {stats.first_click.isoformat()}" if stats.first_click else "at an unknown time"
        last = f"on {stats.last_click.isoformat()}" if stats.last_click else "at an unknown time"
        return (
            f"The link {stats.short_code} ({stats.long_url}) was opened {stats.total_clicks} time(s) in total. "
            f"Most visits came from {top_country}, mostly on {top_device} devices. "
            f"The first click happened {first}, the last click {last}."
        )
