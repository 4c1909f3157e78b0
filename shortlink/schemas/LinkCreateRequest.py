import re
from typing import Optional

from pydantic import BaseModel, Field, HttpUrl, TypeAdapter, ValidationError, field_validator

ALIAS_PATTERN = re.compile(r"^[a-zA-Z0-9_-]+$")

_http_url = TypeAdapter(HttpUrl)


# Request DTOs
class LinkCreateRequest(BaseModel):
    # long_url is the Python field, 'longUrl' is the JSON key
    long_url: str = Field(..., alias="longUrl")
    alias: Optional[str] = None

    model_config = {"populate_by_name": True}

    @field_validator('alias')
    def validate_alias(cls, v):
        if v is None:
            return v
        v = v.strip()
        if len(v) < 3:
            raise ValueError('Alias must be at least 3 characters long')
        if len(v) > 50:
            raise ValueError('Alias must be at most 50 characters long')
        if not ALIAS_PATTERN.match(v):
            raise ValueError('Alias may only contain letters, numbers, underscores and hyphens')
        return v.lower()

    @field_validator('long_url')
    def validate_url(cls, v):
        if len(v) > 2048:
            raise ValueError('URL must be less than 2048 characters')

        if not (v.startswith('http://') or v.startswith('https://')):
            raise ValueError('Only HTTP and HTTPS URLs are allowed')

        try:
            _http_url.validate_python(v)
        except ValidationError:
            raise ValueError('Invalid URL')

        # stored exactly as submitted; the parsed form is only a check
        return v
