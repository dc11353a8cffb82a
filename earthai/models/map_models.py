from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class MapStyle(str, Enum):
    """
    지도 타일 스타일
    """
    STANDARD = "standard"
    SATELLITE = "satellite"
    RELIEF = "relief"
    DARK = "dark"


class Coordinates(BaseModel):
    """
    위도/경도 (도 단위)
    범위(-90~90, -180~180)는 강제하지 않음: 기존 대화 기록의 링크를 그대로 다시 파싱해야 하기 때문
    """
    model_config = ConfigDict(frozen=True)

    lat: float
    lng: float


class PlaceLink(BaseModel):
    """
    메시지 본문에서 추출한 이동 가능한 장소 참조
    """
    model_config = ConfigDict(frozen=True)

    name: str
    coordinates: Coordinates
    zoom: Optional[int] = None


class MapViewState(BaseModel):
    """
    현재 지도 상태 (단일 진실 공급원)
    reconciler가 스냅샷 단위로 교체하므로 frozen
    """
    model_config = ConfigDict(frozen=True)

    center: Coordinates
    zoom: float
    map_style: MapStyle = MapStyle.STANDARD
    resolved_name: Optional[str] = Field(None, description="역지오코딩으로 얻은 장소 이름")
