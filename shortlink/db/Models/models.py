from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Integer, String
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Link(Base):
    __tablename__ = "links"

    id = Column(Integer, primary_key=True, autoincrement=True)

    # Unique index is the store-level guard against concurrent duplicate codes.
    # Legacy rows may hold mixed-case codes; new ones are always lowercase.
    short_code = Column(String(50), unique=True, index=True, nullable=False)
    long_url = Column(String(2048), nullable=False)
    alias = Column(String(50), nullable=True)
    owner_id = Column(String(128), index=True, nullable=False)

    is_active = Column(Boolean, default=True, nullable=False)
    hit_count = Column(Integer, default=0, nullable=False)

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow)
    last_hit_at = Column(DateTime(timezone=True), nullable=True)


class ClickEvent(Base):
    __tablename__ = "click_events"

    id = Column(Integer, primary_key=True, autoincrement=True)

    # Append-only log; no foreign key so links and events live independently
    link_id = Column(Integer, index=True, nullable=False)
    short_code = Column(String(50), nullable=False)
    long_url = Column(String(2048), nullable=False)

    device_type = Column(String(16), nullable=True)
    country = Column(String(16), nullable=True)
    source = Column(String(255), nullable=True)
    referrer = Column(String(2048), nullable=True)
    user_agent = Column(String(1024), nullable=True)
    ip = Column(String(64), nullable=True)

    timestamp = Column(DateTime(timezone=True), index=True, nullable=True, default=utcnow)
