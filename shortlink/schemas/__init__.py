# re-export common schemas for simpler imports
from .LinkCreateRequest import LinkCreateRequest
from .LinkCreatedResponse import LinkCreatedResponse
from .LinkInfoResponse import LinkInfoResponse
from .LinkList import LinkList
from .LinkToggleRequest import LinkToggleRequest
from .AnalysisRequest import AnalysisRequest
from .AnalysisResponse import AnalysisResponse
from .UrlAnalysisStats import CountryCount, DeviceCount, SourceCount, UrlAnalysisStats

__all__ = [
    "LinkCreateRequest",
    "LinkCreatedResponse",
    "LinkInfoResponse",
    "LinkList",
    "LinkToggleRequest",
    "AnalysisRequest",
    "AnalysisResponse",
    "CountryCount",
    "DeviceCount",
    "SourceCount",
    "UrlAnalysisStats",
]
