import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from shortlink.core.config import settings
from shortlink.core.errors import (
    AliasTakenError,
    LinkForbidden,
    LinkNotFound,
    SafetyRejected,
    ShortCodeConflict,
)
from shortlink.db import repository
from shortlink.db.Models.models import Link
from shortlink.services import RedisURLCache, safety
from shortlink.utils.encoding import generate_short_code

logger = logging.getLogger(__name__)

MAX_ALLOCATION_ATTEMPTS = 10
# on the last few attempts the code grows by one character per attempt
LENGTHENING_ATTEMPTS = 3
MAX_CREATE_WRITES = 3


class URLService:

    @staticmethod
    def allocate_short_code(db: Session, length: Optional[int] = None) -> str:
        """Pick a random code not present in the store.

        Check-then-act: another writer may take the same code between this
        read and the insert. ``create_short_url`` retries on the unique-index
        conflict that race produces.
        """
        length = length or settings.SHORT_CODE_LENGTH
        for attempt in range(MAX_ALLOCATION_ATTEMPTS):
            code = generate_short_code(length)
            if not repository.short_code_exists(db, code):
                if attempt > 0:
                    logger.info(f"Generated unique short code after {attempt + 1} attempt(s): {code}")
                return code

            if attempt == 0:
                logger.info("Short code collision detected, generating new code")
            if attempt >= MAX_ALLOCATION_ATTEMPTS - LENGTHENING_ATTEMPTS:
                length += 1

        fallback = generate_short_code(length + 2)
        logger.warning(f"Used fallback code generation after {MAX_ALLOCATION_ATTEMPTS} attempts: {fallback}")
        return fallback

    @staticmethod
    def validate_alias(db: Session, alias: Optional[str]) -> Optional[str]:
        if not alias:
            return None
        if repository.short_code_exists(db, alias):
            logger.info(f"Alias collision: '{alias}'")
            raise AliasTakenError(f"Alias '{alias}' is already taken")
        return alias

    @staticmethod
    def create_short_url(db: Session, long_url: str, owner_id: str, alias: Optional[str] = None) -> Link:
        if not safety.is_url_safe(long_url):
            raise SafetyRejected("This URL has been flagged as malicious/unsafe and cannot be shortened.")

        if URLService.validate_alias(db, alias):
            try:
                link_id = repository.create_link(db, alias, long_url, owner_id, alias=alias)
            except ShortCodeConflict:
                raise AliasTakenError(f"Alias '{alias}' is already taken")
        else:
            for attempt in range(MAX_CREATE_WRITES):
                code = URLService.allocate_short_code(db)
                try:
                    link_id = repository.create_link(db, code, long_url, owner_id)
                    break
                except ShortCodeConflict:
                    if attempt == MAX_CREATE_WRITES - 1:
                        raise
                    logger.info(f"Short code {code} taken at write time, reallocating ({attempt + 1}/{MAX_CREATE_WRITES})")

        link = repository.find_link_by_id(db, link_id)
        logger.info("Created short URL %s -> %s", link.short_code, long_url[:50])
        return link

    @staticmethod
    def get_owned_link(db: Session, link_id: int, owner_id: str) -> Link:
        link = repository.find_link_by_id(db, link_id)
        if link is None:
            raise LinkNotFound(f"Link {link_id} not found")
        if link.owner_id != owner_id:
            raise LinkForbidden(f"Link {link_id} is not owned by {owner_id}")
        return link

    @staticmethod
    def list_links(db: Session, owner_id: str) -> List[Link]:
        return repository.list_links_by_owner(db, owner_id)

    @staticmethod
    def set_active(db: Session, link_id: int, owner_id: str, is_active: bool) -> Link:
        link = URLService.get_owned_link(db, link_id, owner_id)
        repository.update_link(db, link.id, is_active=is_active)
        RedisURLCache.invalidate(link.short_code)
        logger.info(f"Link {link.id} ({link.short_code}) is_active={is_active}")
        return link
