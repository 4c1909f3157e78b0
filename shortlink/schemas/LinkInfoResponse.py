from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


# Response DTOs
class LinkInfoResponse(BaseModel):
    id: int
    long_url: str = Field(..., alias="longUrl")
    short_url: str = Field(..., alias="shortUrl")
    is_active: bool = Field(..., alias="isActive")
    hit_count: int = Field(0, alias="hitCount")
    last_hit_at: Optional[datetime] = Field(None, alias="lastHitAt")
    created_at: Optional[datetime] = Field(None, alias="createdAt")

    model_config = {"from_attributes": True, "populate_by_name": True}
