from pydantic import BaseModel, Field


class LinkCreatedResponse(BaseModel):
    id: int
    short_url: str = Field(..., alias="shortUrl")

    model_config = {"populate_by_name": True}
