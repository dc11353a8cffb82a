"""
Tools 패키지
- LangChain tools
- 역지오코딩 (Nominatim)
"""

from .landmark_tool import find_landmark, nearby_landmarks
from .search_place_tool import create_search_place_tool
from .geocoding_tool import reverse_geocode, reverse_geocode_async, search_place_core

__all__ = [
    "find_landmark",
    "nearby_landmarks",
    "create_search_place_tool",
    "reverse_geocode",
    "reverse_geocode_async",
    "search_place_core",
]
