from pydantic import BaseModel, Field, StrictBool


class LinkToggleRequest(BaseModel):
    is_active: StrictBool = Field(..., alias="isActive")

    model_config = {"populate_by_name": True}
