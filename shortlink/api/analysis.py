from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import Optional
import logging

from shortlink.core.errors import LinkNotFound, StoreError
from shortlink.db.Connection import database
from shortlink.schemas import AnalysisRequest, AnalysisResponse
from shortlink.services.Analytics import LinkAnalytics

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/analysis", tags=["analysis"])


@router.post("/{short_id}/summary", response_model=AnalysisResponse)
def summarize_link_endpoint(
    short_id: str,
    analysis_request: Optional[AnalysisRequest] = None,
    db: Session = Depends(database.get_db),
):
    """Click statistics for one link, optionally limited to a time window."""
    window = analysis_request or AnalysisRequest()
    try:
        stats = LinkAnalytics.summarize(db, short_id, window.from_, window.to)
    except LinkNotFound as e:
        logger.info(f"Analysis 404: {e}")
        raise HTTPException(status_code=404, detail=str(e))
    except StoreError:
        logger.exception(f"Analysis failed for {short_id!r}")
        raise HTTPException(status_code=500, detail="Failed to generate analysis")

    return AnalysisResponse(short_id=short_id, summary=LinkAnalytics.build_summary(stats), stats=stats)
