from langchain.tools import tool
import logging
import math
from typing import Dict, List, Any
from earthai.models.map_models import Coordinates
from earthai.utils.message_parser import format_nav_link

logger = logging.getLogger(__name__)

# 랜드마크 정보 (간이 데이터베이스)
LANDMARKS: List[Dict[str, Any]] = [
    {
        "name": "Central Park",
        "keywords": ["park", "nature", "green", "walk", "central park"],
        "description": "A large urban park in Manhattan, New York City. It's a popular destination for tourists and locals.",
        "coordinates": Coordinates(lat=40.7812, lng=-73.9665),
        "zoom": 14,
    },
    {
        "name": "Empire State Building",
        "keywords": ["building", "tall", "skyscraper", "empire", "landmark"],
        "description": "A 102-story skyscraper in Midtown Manhattan. It was the world's tallest building for nearly 40 years.",
        "coordinates": Coordinates(lat=40.7484, lng=-73.9857),
        "zoom": 18,
    },
    {
        "name": "Statue of Liberty",
        "keywords": ["statue", "liberty", "island", "monument"],
        "description": "A colossal neoclassical sculpture on Liberty Island in New York Harbor.",
        "coordinates": Coordinates(lat=40.6892, lng=-74.0445),
        "zoom": 16,
    },
    {
        "name": "Times Square",
        "keywords": ["times", "square", "broadway", "theater", "shopping"],
        "description": "A major commercial intersection, tourist destination, entertainment center, and neighborhood in Midtown Manhattan.",
        "coordinates": Coordinates(lat=40.7580, lng=-73.9855),
        "zoom": 17,
    },
]


def _landmark_link(landmark: Dict[str, Any]) -> str:
    return format_nav_link(landmark["name"], landmark["coordinates"], landmark["zoom"])


def match_landmarks(query: str) -> List[Dict[str, Any]]:
    """키워드가 포함된 랜드마크 목록"""
    lowered = query.lower()
    return [
        landmark for landmark in LANDMARKS
        if any(keyword in lowered for keyword in landmark["keywords"])
    ]


def rank_by_distance(center: Coordinates, limit: int = 3) -> List[Dict[str, Any]]:
    """중심 좌표에서 가까운 순 (평면 거리 근사)"""
    ranked = sorted(
        LANDMARKS,
        key=lambda lm: math.hypot(lm["coordinates"].lat - center.lat, lm["coordinates"].lng - center.lng),
    )
    return ranked[:max(limit, 0)]


@tool
def find_landmark(query: str) -> str:
    """
    Look up well-known landmarks matching the user's words (e.g. "park", "skyscraper", "statue").
    Returns each landmark's description with a clickable [Name](nav:lat,lng,zoom) link.
    """
    matches = match_landmarks(query)
    if not matches:
        logger.info(f"랜드마크 없음: '{query}'")
        return f"No known landmark matches '{query}'."

    logger.info(f"✅ 랜드마크 {len(matches)}건: '{query}'")
    return "\n".join(
        f"{landmark['description']} You can view it here: {_landmark_link(landmark)}"
        for landmark in matches
    )


@tool
def nearby_landmarks(lat: float, lng: float, limit: int = 3) -> str:
    """
    List known landmarks closest to the given coordinates (usually the current map center).
    Each entry carries a clickable [Name](nav:lat,lng,zoom) link.
    """
    nearby = rank_by_distance(Coordinates(lat=lat, lng=lng), limit)
    if not nearby:
        return "I couldn't find any notable places nearby. Try zooming out or exploring a different area."

    return "\n\n".join(
        f"{i}. {_landmark_link(landmark)}: {landmark['description']}"
        for i, landmark in enumerate(nearby, 1)
    )
