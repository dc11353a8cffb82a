from fastapi import APIRouter, HTTPException
from typing import List
from earthai.models.map_models import MapStyle, MapViewState
from earthai.models.schemas import (
    FormatLinkRequest,
    FormatLinkResponse,
    MapStyleRequest,
    NavigateRequest,
    ParsedMessage,
    ParseLinksRequest,
    ViewportRequest,
    ViewportResponse,
)
from earthai.utils.message_parser import format_place_link, parse_message
from earthai.utils.viewport_reconciler import get_reconciler

router = APIRouter()


@router.get("/map/styles", response_model=List[str])
async def list_map_styles():
    """지원하는 지도 스타일 목록"""
    return [style.value for style in MapStyle]


@router.get("/map/{session_id}", response_model=MapViewState)
async def get_map_state(session_id: str):
    reconciler = get_reconciler(session_id)
    if reconciler.state.resolved_name is None and reconciler.pending_lookups == 0:
        # 시작 위치 이름이 아직 없으면 조회 시작
        reconciler.resolve_initial()
    return reconciler.state


@router.post("/map/{session_id}/viewport", response_model=ViewportResponse)
async def viewport_changed(session_id: str, request: ViewportRequest):
    """
    지도 화면의 moveend/zoomend 이벤트.
    미세한 변화면 applied=false로 현재 상태만 돌려줍니다.
    """
    reconciler = get_reconciler(session_id)
    before = reconciler.state
    reconciler.viewport_changed(request.center, request.zoom)
    after = reconciler.state
    return ViewportResponse(applied=after is not before, state=after)


@router.post("/map/{session_id}/navigate", response_model=MapViewState)
async def navigate(session_id: str, request: NavigateRequest):
    reconciler = get_reconciler(session_id)
    reconciler.navigate_to(request.coordinates, request.zoom)
    return reconciler.state


@router.post("/map/{session_id}/style", response_model=MapViewState)
async def change_map_style(session_id: str, request: MapStyleRequest):
    return get_reconciler(session_id).set_map_style(request.map_style)


@router.post("/links/parse", response_model=ParsedMessage)
async def parse_links(request: ParseLinksRequest):
    """임의 텍스트를 장소 링크 + 세그먼트로 변환"""
    return parse_message(request.text)


@router.post("/links/format", response_model=FormatLinkResponse)
async def format_link(request: FormatLinkRequest):
    try:
        markup = format_place_link(request.name, request.coordinates, request.zoom)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return FormatLinkResponse(markup=markup)
