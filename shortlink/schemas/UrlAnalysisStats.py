from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class CountryCount(BaseModel):
    country: str
    count: int


class DeviceCount(BaseModel):
    device_type: str = Field(..., alias="deviceType")
    count: int

    model_config = {"populate_by_name": True}


class SourceCount(BaseModel):
    source: str
    count: int


class UrlAnalysisStats(BaseModel):
    url_id: int = Field(..., alias="urlId")
    short_code: str = Field(..., alias="shortCode")
    long_url: str = Field(..., alias="longUrl")
    total_clicks: int = Field(..., alias="totalClicks")
    period: str
    first_click: Optional[datetime] = Field(None, alias="firstClick")
    last_click: Optional[datetime] = Field(None, alias="lastClick")
    countries: List[CountryCount] = []
    devices: List[DeviceCount] = []
    sources: List[SourceCount] = []

    model_config = {"populate_by_name": True}
