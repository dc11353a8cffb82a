"""
메시지 본문의 장소 링크 파서

지원하는 두 가지 문법:
- geo: [장소 이름](geo:LAT,LNG) / [장소 이름](geo:LAT,LNG?zoom=Z)
  좌표는 소수점 이하 자릿수가 반드시 1개 이상 있어야 함
- nav: [장소 이름](nav:LAT,LNG,Z)
  좌표의 소수부는 선택, 줌은 필수

nav는 에이전트/도구가 직접 만들어내는 형식이고, 사용자에게 보여주거나 저장할 때는 geo 형식을 쓴다.
잘못된 링크는 에러가 아니라 그냥 일반 텍스트로 취급한다.
"""

import asyncio
import logging
import re
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional, Union

from earthai.config import settings
from earthai.models.map_models import Coordinates, PlaceLink
from earthai.models.schemas import LinkSegment, ParsedMessage, TextSegment

logger = logging.getLogger(__name__)

GEO_LINK_PATTERN = re.compile(
    r"\[([^\]]+)\]\(geo:(-?\d+\.\d+),(-?\d+\.\d+)(?:\?zoom=(\d+))?\)", re.ASCII
)
NAV_LINK_PATTERN = re.compile(
    r"\[([^\]]+)\]\(nav:(-?\d+\.?\d*),(-?\d+\.?\d*),(\d+)\)", re.ASCII
)

NavigateCallback = Callable[[Coordinates, Optional[int]], Union[None, Awaitable[None]]]


@dataclass(frozen=True)
class LinkMatch:
    """원문에서 찾은 링크 한 개의 위치 정보"""

    start: int
    end: int
    syntax: str  # "geo" | "nav"
    link: PlaceLink


def _geo_match_to_link(match: "re.Match[str]") -> PlaceLink:
    zoom = match.group(4)
    return PlaceLink(
        name=match.group(1),
        coordinates=Coordinates(lat=float(match.group(2)), lng=float(match.group(3))),
        zoom=int(zoom) if zoom is not None else None,
    )


def _nav_match_to_link(match: "re.Match[str]") -> PlaceLink:
    return PlaceLink(
        name=match.group(1),
        coordinates=Coordinates(lat=float(match.group(2)), lng=float(match.group(3))),
        zoom=int(match.group(4)),
    )


_SYNTAXES = (
    ("geo", GEO_LINK_PATTERN, _geo_match_to_link),
    ("nav", NAV_LINK_PATTERN, _nav_match_to_link),
)


def find_link_matches(message: str) -> List[LinkMatch]:
    """
    두 문법을 각각 한 번씩 스캔한 뒤 시작 위치 기준으로 합쳐서 정렬.
    (겹치는 매치는 앞에서 시작한 쪽만 남김)
    """
    matches: List[LinkMatch] = []
    for syntax, pattern, to_link in _SYNTAXES:
        for match in pattern.finditer(message):
            try:
                link = to_link(match)
            except ValueError as e:
                # 변환할 수 없는 숫자(예: 4300자리 초과 줌)는 일반 텍스트로 둔다
                logger.debug(f"링크 변환 실패, 텍스트로 처리: {syntax} @ {match.start()}: {e}")
                continue
            matches.append(LinkMatch(start=match.start(), end=match.end(), syntax=syntax, link=link))

    matches.sort(key=lambda m: m.start)

    merged: List[LinkMatch] = []
    last_end = 0
    for m in matches:
        if m.start < last_end:
            logger.debug(f"겹치는 링크 무시: {m.syntax} @ {m.start}")
            continue
        merged.append(m)
        last_end = m.end
    return merged


def extract_place_links(message: str) -> List[PlaceLink]:
    """메시지에 포함된 모든 장소 링크를 등장 순서대로 반환"""
    return [m.link for m in find_link_matches(message)]


def build_segments(message: str, matches: List[LinkMatch]) -> List[Union[TextSegment, LinkSegment]]:
    segments: List[Union[TextSegment, LinkSegment]] = []
    last_index = 0
    for m in matches:
        if m.start > last_index:
            segments.append(TextSegment(content=message[last_index:m.start]))
        segments.append(LinkSegment(label=m.link.name, target=m.link))
        last_index = m.end

    if last_index < len(message):
        segments.append(TextSegment(content=message[last_index:]))
    return segments


def parse_message(message: str) -> ParsedMessage:
    """
    메시지를 장소 링크 목록 + 렌더링 계획(세그먼트)으로 변환.
    링크가 하나도 없으면 원문 전체가 텍스트 세그먼트 한 개가 된다.
    """
    matches = find_link_matches(message)
    if not matches:
        return ParsedMessage(links=[], segments=[TextSegment(content=message)])
    return ParsedMessage(
        links=[m.link for m in matches],
        segments=build_segments(message, matches),
    )


def render_plain_text(parsed: ParsedMessage) -> str:
    """세그먼트를 이어붙여 링크 마크업이 라벨로 치환된 문자열을 만든다"""
    return "".join(segment.content for segment in parsed.segments)


def _format_coordinate(value: float) -> str:
    # geo 문법은 소수부가 필수이므로 지수 표기(1e-05)나 정수 표기를 피한다
    text = repr(float(value))
    if "e" in text or "E" in text:
        text = f"{value:.10f}".rstrip("0")
    if "." not in text:
        text += ".0"
    elif text.endswith("."):
        text += "0"
    return text


def _check_label(name: str) -> None:
    # 라벨 패턴은 [^\]]+ 이므로 빈 이름이나 ']'가 들어간 이름은 다시 파싱되지 않는다
    if not name or "]" in name:
        raise ValueError(f"링크 라벨로 쓸 수 없는 이름: {name!r}")


def format_place_link(name: str, coordinates: Coordinates, zoom: Optional[int] = None) -> str:
    """
    장소 링크를 geo 형식으로 직렬화.
    zoom이 없으면 ?zoom= 절을 생략한다.
    이름이 비어 있거나 ']'를 포함하면 다시 파싱할 수 없으므로 ValueError.
    """
    _check_label(name)
    lat = _format_coordinate(coordinates.lat)
    lng = _format_coordinate(coordinates.lng)
    zoom_clause = f"?zoom={int(zoom)}" if zoom is not None else ""
    return f"[{name}](geo:{lat},{lng}{zoom_clause})"


def format_nav_link(name: str, coordinates: Coordinates, zoom: int) -> str:
    """에이전트 도구가 내보내는 nav 형식 링크 (이름 제약은 format_place_link와 같음)"""
    _check_label(name)
    return f"[{name}](nav:{_format_coordinate(coordinates.lat)},{_format_coordinate(coordinates.lng)},{int(zoom)})"


def normalize_nav_links(message: str) -> str:
    """nav 링크를 모두 geo 형식으로 바꾼다 (저장/표시용)"""
    def _to_geo(match: "re.Match[str]") -> str:
        try:
            link = _nav_match_to_link(match)
        except ValueError:
            return match.group(0)
        return format_place_link(link.name, link.coordinates, link.zoom)

    return NAV_LINK_PATTERN.sub(_to_geo, message)


class LinkActivator:
    """
    링크 클릭을 navigate 콜백으로 전달.
    클릭 후 약간 지연시켜 호출하고, 대기 중인 이동이 있으면 연속 클릭은 무시한다.
    delay를 주지 않으면 settings.LINK_ACTIVATION_DELAY를 쓴다.
    """

    def __init__(self, on_navigate: NavigateCallback, delay: Optional[float] = None):
        self._on_navigate = on_navigate
        self._delay = settings.LINK_ACTIVATION_DELAY if delay is None else delay
        self._pending: Optional[asyncio.Task] = None

    @property
    def is_pending(self) -> bool:
        return self._pending is not None and not self._pending.done()

    def activate(self, segment: LinkSegment) -> Optional[asyncio.Task]:
        if self.is_pending:
            logger.debug(f"이동 대기 중, 중복 클릭 무시: {segment.label}")
            return None
        self._pending = asyncio.get_running_loop().create_task(self._fire(segment.target))
        return self._pending

    async def _fire(self, link: PlaceLink) -> None:
        await asyncio.sleep(self._delay)
        result = self._on_navigate(link.coordinates, link.zoom)
        if asyncio.iscoroutine(result):
            await result
