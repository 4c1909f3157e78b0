"""Hit counters and click events recorded after a redirect has been sent.

Everything here runs as a FastAPI background task. Failures are logged and
swallowed: a lost counter increment or click event is accepted, a failed
redirect is not.
"""
import logging
import re
from dataclasses import dataclass
from typing import Optional

from fastapi import BackgroundTasks, Request

from shortlink.RateLimitHelper import get_client_ip
from shortlink.db import repository
from shortlink.db.Connection import database
from shortlink.db.Models.models import ClickEvent
from shortlink.services.redirect import RedirectTarget

logger = logging.getLogger(__name__)

TABLET_PATTERN = re.compile(r"tablet|ipad")
MOBILE_PATTERN = re.compile(r"mobi|android|iphone")

UNKNOWN_COUNTRY = "UNKNOWN"
DIRECT_SOURCE = "direct"


@dataclass(frozen=True)
class ClickMetadata:
    user_agent: Optional[str] = None
    accept_language: Optional[str] = None
    referrer: Optional[str] = None
    ip: Optional[str] = None
    src: Optional[str] = None


def collect_click_metadata(request: Request) -> ClickMetadata:
    return ClickMetadata(
        user_agent=request.headers.get("user-agent"),
        accept_language=request.headers.get("accept-language"),
        referrer=request.headers.get("referer") or request.headers.get("referrer") or None,
        ip=get_client_ip(request),
        src=request.query_params.get("src"),
    )


def detect_device_type(user_agent: Optional[str]) -> str:
    if not user_agent:
        return "desktop"
    ua = user_agent.lower()
    if TABLET_PATTERN.search(ua):
        return "tablet"
    if MOBILE_PATTERN.search(ua):
        return "mobile"
    return "desktop"


def detect_country(accept_language: Optional[str]) -> str:
    """Coarse country from the first Accept-Language entry.

    "de-DE,de;q=0.9" gives "DE". A bare language such as "fr" is returned
    uppercased as if it were a country; existing buckets depend on that.
    """
    if not accept_language:
        return UNKNOWN_COUNTRY
    first = accept_language.split(",")[0]
    parts = first.split("-")
    country = parts[1] if len(parts) == 2 else parts[0]
    return country.upper() or UNKNOWN_COUNTRY


def detect_source(src: Optional[str]) -> str:
    src = (src or "").strip()
    return src if src else DIRECT_SOURCE


def build_click_event(target: RedirectTarget, metadata: ClickMetadata) -> ClickEvent:
    return ClickEvent(
        link_id=target.link_id,
        short_code=target.short_code,
        long_url=target.long_url,
        device_type=detect_device_type(metadata.user_agent),
        country=detect_country(metadata.accept_language),
        source=detect_source(metadata.src),
        referrer=metadata.referrer,
        user_agent=metadata.user_agent,
        ip=metadata.ip,
    )


def record_hit(link_id: int):
    db = database.get_session_factory()()
    try:
        updated = repository.increment_hit(db, link_id)
        if updated:
            logger.debug("metrics.record_hit: hit counter updated for link %s", link_id)
    except Exception:
        logger.warning("metrics.record_hit: failed to update hit counter for link %s", link_id, exc_info=True)
    finally:
        db.close()


def record_click(target: RedirectTarget, metadata: ClickMetadata):
    db = database.get_session_factory()()
    try:
        event = repository.append_click_event(db, build_click_event(target, metadata))
        logger.debug(
            "metrics.record_click: %s device=%s country=%s source=%s",
            target.short_code, event.device_type, event.country, event.source,
        )
    except Exception:
        logger.warning("metrics.record_click: failed to log click event for %s", target.short_code, exc_info=True)
    finally:
        db.close()


def update_stat(request: Request, background_tasks: BackgroundTasks, target: RedirectTarget):
    """Queue the counter update and click event; at most once per request."""
    if getattr(request.state, "metrics_scheduled", False):
        return
    metadata = collect_click_metadata(request)
    background_tasks.add_task(record_hit, target.link_id)
    background_tasks.add_task(record_click, target, metadata)
    request.state.metrics_scheduled = True
