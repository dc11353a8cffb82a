from pydantic import BaseModel, Field
from typing import Annotated, Optional, List, Literal, Union
from earthai.models.map_models import Coordinates, MapStyle, MapViewState, PlaceLink


# ---------------------------------------------------------------------------
# 렌더링 계획 (TextSegment)
# ---------------------------------------------------------------------------

class TextSegment(BaseModel):
    type: Literal["text"] = "text"
    content: str


class LinkSegment(BaseModel):
    type: Literal["link"] = "link"
    label: str
    target: PlaceLink

    @property
    def content(self) -> str:
        # 화면에는 링크 라벨만 보임
        return self.label


Segment = Annotated[Union[TextSegment, LinkSegment], Field(discriminator="type")]


class ParsedMessage(BaseModel):
    links: List[PlaceLink] = Field(default_factory=list, description="등장 순서대로 정렬된 장소 링크")
    segments: List[Segment] = Field(default_factory=list, description="텍스트/링크 세그먼트")


# ---------------------------------------------------------------------------
# Chat
# ---------------------------------------------------------------------------

class HistoryMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    message: str = Field(..., description="사용자 메시지")
    session_id: Optional[str] = Field(None, description="세션 ID (없으면 쿠키 또는 서버가 생성)")
    location: Optional[str] = Field(None, description="현재 보고 있는 장소 이름")
    coordinates: Optional[Coordinates] = Field(None, description="현재 지도 중심 좌표")
    zoom: Optional[float] = Field(None, description="현재 줌 레벨")
    conversation_history: List[HistoryMessage] = Field(default_factory=list, description="클라이언트가 보관한 대화 기록")


class ChatResponse(BaseModel):
    session_id: str = Field(..., description="세션 ID")
    role: str = Field(default="assistant", description="메시지 역할")
    message: str = Field(..., description="geo 링크로 정규화된 응답 텍스트")
    segments: List[Segment] = Field(default_factory=list, description="렌더링 계획")
    links: List[PlaceLink] = Field(default_factory=list, description="응답에 포함된 장소 링크")


# ---------------------------------------------------------------------------
# Map
# ---------------------------------------------------------------------------

class ViewportRequest(BaseModel):
    center: Coordinates
    zoom: float


class ViewportResponse(BaseModel):
    applied: bool = Field(..., description="유의미한 변경으로 판단되어 반영되었는지")
    state: MapViewState


class NavigateRequest(BaseModel):
    coordinates: Coordinates
    zoom: Optional[float] = Field(None, description="없으면 현재 줌 유지")


class MapStyleRequest(BaseModel):
    map_style: MapStyle


class ParseLinksRequest(BaseModel):
    text: str


class FormatLinkRequest(BaseModel):
    name: str
    coordinates: Coordinates
    zoom: Optional[int] = None


class FormatLinkResponse(BaseModel):
    markup: str
