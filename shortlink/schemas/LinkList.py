from typing import List

from pydantic import BaseModel

from shortlink.schemas.LinkInfoResponse import LinkInfoResponse


class LinkList(BaseModel):
    items: List[LinkInfoResponse]
