from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from sqlalchemy.orm import Session
from typing import Optional
import logging

from shortlink.core.config import settings
from shortlink.core.errors import (
    AliasTakenError,
    LinkForbidden,
    LinkNotFound,
    SafetyRejected,
    StoreError,
)
from shortlink.db.Connection import database
from shortlink.db.Models.models import Link
from shortlink.schemas import (
    LinkCreatedResponse,
    LinkCreateRequest,
    LinkInfoResponse,
    LinkList,
    LinkToggleRequest,
)
from shortlink.services.shortener import URLService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["links"])

ANONYMOUS_OWNER = "anonymous"


def get_owner_id(x_user_id: Optional[str] = Header(None)) -> str:
    """Caller identity; authentication happens in front of this service."""
    if x_user_id and x_user_id.strip():
        return x_user_id.strip()
    return ANONYMOUS_OWNER


def resolve_base_url(request: Request) -> str:
    if settings.BASE_URL:
        return settings.BASE_URL.rstrip("/")
    return str(request.base_url).rstrip("/")


def to_link_info(link: Link, base_url: str) -> LinkInfoResponse:
    return LinkInfoResponse(
        id=link.id,
        long_url=link.long_url,
        short_url=f"{base_url}/{link.short_code}",
        is_active=bool(link.is_active),
        hit_count=link.hit_count or 0,
        last_hit_at=link.last_hit_at,
        created_at=link.created_at,
    )


def _owned_link_or_error(db: Session, link_id: int, owner_id: str) -> Link:
    try:
        return URLService.get_owned_link(db, link_id, owner_id)
    except LinkNotFound:
        raise HTTPException(status_code=404, detail="Not found")
    except LinkForbidden:
        logger.warning(f"Owner {owner_id} denied access to link {link_id}")
        raise HTTPException(status_code=403, detail="Not owner")


@router.post("/links", response_model=LinkCreatedResponse, status_code=status.HTTP_201_CREATED)
def create_link_endpoint(
    link_request: LinkCreateRequest,
    request: Request,
    owner_id: str = Depends(get_owner_id),
    db: Session = Depends(database.get_db),
):
    long_url = link_request.long_url
    try:
        link = URLService.create_short_url(db, long_url, owner_id, link_request.alias)
    except SafetyRejected as e:
        raise HTTPException(status_code=400, detail=str(e))
    except AliasTakenError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except StoreError:
        logger.exception(f"Failed to create short URL for {long_url[:50]}")
        raise HTTPException(status_code=500, detail="Failed to create link")

    logger.info(f"API success: Shortened {long_url[:50]}... to {link.short_code}")
    return LinkCreatedResponse(id=link.id, short_url=f"{resolve_base_url(request)}/{link.short_code}")


@router.get("/links/mine", response_model=LinkList)
def list_my_links_endpoint(
    request: Request,
    owner_id: str = Depends(get_owner_id),
    db: Session = Depends(database.get_db),
):
    try:
        links = URLService.list_links(db, owner_id)
    except StoreError:
        logger.exception(f"Failed to list links for {owner_id}")
        raise HTTPException(status_code=500, detail="Failed to fetch links")
    base_url = resolve_base_url(request)
    return LinkList(items=[to_link_info(link, base_url) for link in links])


@router.get("/links/{link_id}/meta", response_model=LinkInfoResponse)
def get_link_meta_endpoint(
    link_id: int,
    request: Request,
    owner_id: str = Depends(get_owner_id),
    db: Session = Depends(database.get_db),
):
    try:
        link = _owned_link_or_error(db, link_id, owner_id)
    except StoreError:
        logger.exception(f"Failed to fetch link metadata for {link_id}")
        raise HTTPException(status_code=500, detail="Failed to fetch link metadata")
    return to_link_info(link, resolve_base_url(request))


@router.patch("/links/{link_id}")
def toggle_link_endpoint(
    link_id: int,
    toggle: LinkToggleRequest,
    owner_id: str = Depends(get_owner_id),
    db: Session = Depends(database.get_db),
):
    try:
        URLService.set_active(db, link_id, owner_id, toggle.is_active)
    except LinkNotFound:
        raise HTTPException(status_code=404, detail="Not found")
    except LinkForbidden:
        logger.warning(f"Owner {owner_id} denied access to link {link_id}")
        raise HTTPException(status_code=403, detail="Not owner")
    except StoreError:
        logger.exception(f"Failed to toggle link {link_id}")
        raise HTTPException(status_code=500, detail="Failed to update link")
    return {"ok": True}
