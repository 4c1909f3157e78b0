from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class AnalysisRequest(BaseModel):
    # inclusive bounds; either may be omitted
    from_: Optional[datetime] = Field(None, alias="from")
    to: Optional[datetime] = None

    model_config = {"populate_by_name": True}
