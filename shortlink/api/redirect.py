from fastapi import APIRouter, BackgroundTasks, Depends, Request, status
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse
from sqlalchemy.orm import Session
import logging

from shortlink.core.config import settings
from shortlink.core.errors import StoreError
from shortlink.db.Connection import database
from shortlink.services import metrics, redirect

logger = logging.getLogger(__name__)

router = APIRouter(tags=["redirect"])


def not_found_response():
    """The static not-found page, or a JSON body when it cannot be read."""
    try:
        with open(settings.NOT_FOUND_PAGE, encoding="utf-8") as page:
            html = page.read()
    except OSError as e:
        logger.warning(f"Failed to serve not-found page, falling back to JSON: {e}")
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"error": "URL not found"})
    return HTMLResponse(content=html, status_code=status.HTTP_404_NOT_FOUND)


@router.get("/{short_code}")
def redirect_to_url_endpoint(
    short_code: str,
    request: Request,
    background_tasks: BackgroundTasks,
    db: Session = Depends(database.get_db),
):
    try:
        target = redirect.resolve(db, short_code)
    except StoreError:
        logger.exception(f"Redirect lookup failed for {short_code!r}")
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"error": "Failed to redirect"})

    if target is None:
        return not_found_response()

    # counters and click logging run after the response is sent
    metrics.update_stat(request, background_tasks, target)
    return RedirectResponse(url=target.long_url, status_code=status.HTTP_302_FOUND)
