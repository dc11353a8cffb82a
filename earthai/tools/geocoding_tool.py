import asyncio
import requests
import logging
import time
from typing import Any, Dict, Optional
from earthai.config import settings
from earthai.models.map_models import Coordinates, PlaceLink
from earthai.utils.tool_timings import record_tool_timing

logger = logging.getLogger(__name__)

# 검색 결과 종류별 기본 줌 (Nominatim addresstype 기준)
ZOOM_BY_ADDRESS_TYPE = {
    "country": 5,
    "state": 7,
    "county": 9,
    "city": 12,
    "town": 13,
    "village": 14,
    "suburb": 14,
    "neighbourhood": 15,
    "road": 16,
}
DEFAULT_PLACE_ZOOM = 16


class GeocodingError(Exception):
    """Nominatim 호출/응답 오류."""


def fallback_location_name(coordinates: Coordinates) -> str:
    """역지오코딩 실패 시 사용할 좌표 기반 이름"""
    return f"Location ({coordinates.lat:.4f}, {coordinates.lng:.4f})"


def _nominatim_get(path: str, params: Dict[str, Any]) -> Any:
    url = f"{settings.NOMINATIM_URL.rstrip('/')}/{path}"
    headers = {
        "User-Agent": settings.GEOCODER_USER_AGENT,
        "Accept-Language": settings.GEOCODER_LANGUAGE,
    }
    try:
        response = requests.get(url, headers=headers, params=params, timeout=settings.GEOCODER_TIMEOUT)
    except requests.RequestException as exc:
        raise GeocodingError(f"Nominatim 호출 실패: {exc}") from exc

    if response.status_code != 200:
        raise GeocodingError(f"Nominatim 응답 오류: HTTP {response.status_code}")

    try:
        return response.json()
    except ValueError as exc:
        raise GeocodingError(f"Nominatim 응답 JSON 파싱 실패: {exc}") from exc


def _name_from_address(address: Dict[str, Any]) -> str:
    # display_name이 없을 때 도로 / 도시 / 주 / 국가 순으로 이름 조합
    parts = []
    road = address.get("road") or address.get("pedestrian")
    if road:
        parts.append(road)
    city = address.get("city") or address.get("town") or address.get("village")
    if city:
        parts.append(city)
    if address.get("state"):
        parts.append(address["state"])
    if address.get("country"):
        parts.append(address["country"])
    return ", ".join(parts)


def reverse_geocode(coordinates: Coordinates) -> str:
    """
    좌표 -> 사람이 읽을 수 있는 장소 이름 (Nominatim reverse)
    어떤 실패가 나도 예외를 던지지 않고 좌표 기반 이름을 반환합니다.
    """
    params = {
        "format": "json",
        "lat": coordinates.lat,
        "lon": coordinates.lng,
        "zoom": 18,
        "addressdetails": 1,
    }
    try:
        data = _nominatim_get("reverse", params)
    except GeocodingError as e:
        logger.warning(f"역지오코딩 실패: {e}")
        return fallback_location_name(coordinates)

    if not isinstance(data, dict):
        return fallback_location_name(coordinates)

    if data.get("display_name"):
        return data["display_name"]

    address = data.get("address")
    if isinstance(address, dict):
        name = _name_from_address(address)
        if name:
            return name

    return fallback_location_name(coordinates)


async def reverse_geocode_async(coordinates: Coordinates) -> str:
    """reverse_geocode를 백그라운드 스레드에서 실행 (이벤트 루프 블로킹 방지)"""
    start = time.time()
    try:
        return await asyncio.to_thread(reverse_geocode, coordinates)
    finally:
        record_tool_timing(tool="reverse_geocode", duration=time.time() - start)


def search_place_core(query: str) -> Optional[PlaceLink]:
    """
    장소 이름/주소로 좌표를 찾아 PlaceLink를 반환하는 '핵심 로직 함수'
    검색 실패 시, 단어를 뒤에서부터 하나씩 제거하며 재시도합니다. (예: 'Central Park Zoo entrance' -> 'Central Park Zoo')
    """
    current_query = query.strip()
    found: Optional[Dict[str, Any]] = None

    # 최대 3번까지만 단어를 줄여봄
    max_retries = 3
    retry_count = 0

    while current_query and retry_count <= max_retries:
        try:
            results = _nominatim_get("search", {"q": current_query, "format": "json", "limit": 1})
        except GeocodingError as e:
            logger.warning(f"검색 중 오류 발생: {e}")
            break

        if isinstance(results, list) and results:
            found = results[0]
            logger.info(f"✅ 검색 성공: '{current_query}' (원본: {query})")
            break

        words = current_query.split()
        if len(words) > 1:
            removed_word = words[-1]
            current_query = " ".join(words[:-1])
            retry_count += 1
            logger.info(f"검색 실패 ('{removed_word}' 제거), 재시도: '{current_query}'")
        else:
            break

    if not found:
        return None

    try:
        lat = float(found["lat"])
        lng = float(found["lon"])
    except (KeyError, TypeError, ValueError) as e:
        logger.warning(f"좌표 변환 실패: {e}")
        return None

    name = found.get("name") or (found.get("display_name") or query).split(",")[0]
    zoom = ZOOM_BY_ADDRESS_TYPE.get(found.get("addresstype", ""), DEFAULT_PLACE_ZOOM)
    return PlaceLink(name=name, coordinates=Coordinates(lat=lat, lng=lng), zoom=zoom)
