from contextlib import contextmanager
from typing import List, Optional
import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from shortlink.core.errors import ShortCodeConflict, StoreError
from shortlink.db.Models.models import ClickEvent, Link, utcnow

logger = logging.getLogger(__name__)


@contextmanager
def _store_errors(db: Session, action: str):
    try:
        yield
    except IntegrityError as e:
        db.rollback()
        logger.warning("IntegrityError during %s: %s", action, e.orig)
        raise ShortCodeConflict(f"{action} violated a unique constraint") from e
    except SQLAlchemyError as e:
        db.rollback()
        raise StoreError(f"{action} failed: {e}") from e


# --- links ---

def find_link_by_short_code(db: Session, short_code: str) -> Optional[Link]:
    """Exact, case-sensitive match on the stored code."""
    with _store_errors(db, "find_link_by_short_code"):
        return db.query(Link).filter(Link.short_code == short_code).first()


def find_link_by_id(db: Session, link_id: int) -> Optional[Link]:
    with _store_errors(db, "find_link_by_id"):
        return db.get(Link, link_id)


def short_code_exists(db: Session, short_code: str) -> bool:
    with _store_errors(db, "short_code_exists"):
        return db.query(Link.id).filter(Link.short_code == short_code).first() is not None


def list_links_by_owner(db: Session, owner_id: str) -> List[Link]:
    with _store_errors(db, "list_links_by_owner"):
        return (
            db.query(Link)
            .filter(Link.owner_id == owner_id)
            .order_by(Link.created_at.desc(), Link.id.desc())
            .all()
        )


def create_link(db: Session, short_code: str, long_url: str, owner_id: str,
                alias: Optional[str] = None) -> int:
    now = utcnow()
    db_link = Link(
        short_code=short_code,
        long_url=long_url,
        alias=alias,
        owner_id=owner_id,
        is_active=True,
        hit_count=0,
        created_at=now,
        updated_at=now,
    )
    with _store_errors(db, "create_link"):
        db.add(db_link)
        db.commit()
        db.refresh(db_link)
    return db_link.id


def increment_hit(db: Session, link_id: int) -> int:
    now = utcnow()
    with _store_errors(db, "increment_hit"):
        updated = db.query(Link).filter(Link.id == link_id).update({
            Link.hit_count: Link.hit_count + 1,
            Link.last_hit_at: now,
            Link.updated_at: now,
        }, synchronize_session=False)
        db.commit()
    return updated


def update_link(db: Session, link_id: int, **fields) -> int:
    values = {getattr(Link, name): value for name, value in fields.items()}
    values[Link.updated_at] = utcnow()
    with _store_errors(db, "update_link"):
        updated = db.query(Link).filter(Link.id == link_id).update(values, synchronize_session="fetch")
        db.commit()
    return updated


# --- click events ---

def append_click_event(db: Session, event: ClickEvent) -> ClickEvent:
    with _store_errors(db, "append_click_event"):
        db.add(event)
        db.commit()
        db.refresh(event)
    return event


def list_click_events(db: Session, link_id: int) -> List[ClickEvent]:
    with _store_errors(db, "list_click_events"):
        return (
            db.query(ClickEvent)
            .filter(ClickEvent.link_id == link_id)
            .order_by(ClickEvent.timestamp.asc().nulls_last(), ClickEvent.id.asc())
            .all()
        )
