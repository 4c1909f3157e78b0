import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.orm import Session

from shortlink.db import repository
from shortlink.services import RedisURLCache
from shortlink.utils.encoding import normalize_short_code

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RedirectTarget:
    link_id: int
    long_url: str
    short_code: str


def resolve(db: Session, raw_code: Optional[str]) -> Optional[RedirectTarget]:
    """Map an inbound code to its redirect target.

    Returns None when the code is unknown or the link is inactive; the two
    cases are deliberately indistinguishable to callers. New codes are stored
    lowercase, so the normalized form is tried first; legacy mixed-case codes
    are found by a second lookup with the code as typed. Store failures
    propagate as StoreError.
    """
    original_code = (raw_code or "").strip()
    code = normalize_short_code(original_code)
    if not code:
        logger.info("redirect:missing-code %r", raw_code)
        return None

    candidates = [code] if code == original_code else [code, original_code]
    for candidate in candidates:
        cached = RedisURLCache.get(candidate)
        if cached:
            return RedirectTarget(
                link_id=cached["id"],
                long_url=cached["long_url"],
                short_code=cached["short_code"],
            )

        link = repository.find_link_by_short_code(db, candidate)
        if link is None:
            continue

        if not link.is_active:
            logger.info("redirect:inactive-link id=%s code=%s", link.id, link.short_code)
            return None

        RedisURLCache.put(link)
        logger.info("redirect:success id=%s destination=%s", link.id, link.long_url[:50])
        return RedirectTarget(link_id=link.id, long_url=link.long_url, short_code=link.short_code)

    logger.info("redirect:not-found code=%s original=%s", code, original_code)
    return None
