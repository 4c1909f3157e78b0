from pydantic import BaseModel, Field

from shortlink.schemas.UrlAnalysisStats import UrlAnalysisStats


class AnalysisResponse(BaseModel):
    short_id: str = Field(..., alias="shortId")
    summary: str
    stats: UrlAnalysisStats

    model_config = {"populate_by_name": True}
