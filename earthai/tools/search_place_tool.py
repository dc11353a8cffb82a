from langchain.tools import StructuredTool
from pydantic import BaseModel, Field
from .geocoding_tool import search_place_core
from earthai.utils.message_parser import format_nav_link
import logging

logger = logging.getLogger(__name__)


# 1. 툴의 입력 스키마 정의 (LLM에게 노출되는 파라미터)
class SearchPlaceInput(BaseModel):
    query: str = Field(
        description="Place name or address to locate. e.g. 'Brooklyn Bridge', 'Louvre Museum, Paris'."
    )


# 2. 래퍼 함수 정의
def _search_place_wrapper(query: str) -> str:
    """
    지오코딩 결과를 LLM이 그대로 인용할 수 있는 nav 링크 문자열로 변환
    """
    link = search_place_core(query)
    if link is None:
        logger.info(f"장소 검색 결과 없음: '{query}'")
        return f"No location found for '{query}'."

    try:
        markup = format_nav_link(link.name, link.coordinates, link.zoom)
    except ValueError as e:
        logger.warning(f"링크로 만들 수 없는 장소 이름: {e}")
        return f"Found {link.name} at ({link.coordinates.lat}, {link.coordinates.lng})."
    return f"Found {link.name}: {markup}"


# 3. StructuredTool 생성 함수 (Factory)
def create_search_place_tool() -> StructuredTool:
    """
    StructuredTool을 생성하여 반환하는 Factory 함수
    """
    return StructuredTool.from_function(
        func=_search_place_wrapper,
        name="search_place",
        description="Find the coordinates of a named place or address and return a clickable map link for it. Use it for places that are not well-known landmarks.",
        args_schema=SearchPlaceInput,
    )
