"""
Models 패키지
- 지도 상태 / 장소 링크 모델
- Pydantic schemas
- LLM 모델 초기화
"""

from .map_models import Coordinates, MapStyle, MapViewState, PlaceLink
from .schemas import (
    ChatRequest,
    ChatResponse,
    LinkSegment,
    ParsedMessage,
    TextSegment,
)


__all__ = [
    "Coordinates",
    "MapStyle",
    "MapViewState",
    "PlaceLink",
    "ChatRequest",
    "ChatResponse",
    "LinkSegment",
    "ParsedMessage",
    "TextSegment",
]
