from fastapi import APIRouter, Cookie, HTTPException, Response
from functools import lru_cache
from typing import Optional
from earthai.config import settings
from earthai.models.schemas import ChatRequest, ChatResponse
from earthai.models.chat_models import is_llm_configured
from earthai.agent import create_agent
from earthai.agent.callbacks import ToolTimingCallbackHandler
from earthai.agent.prompts import UNKNOWN_LOCATION
from earthai.utils.conversation_memory import (
    get_conversation_history,
    add_message,
    seed_history,
)
from earthai.utils.message_parser import normalize_nav_links, parse_message
from earthai.utils.viewport_reconciler import get_reconciler
import logging
import uuid

logger = logging.getLogger(__name__)

router = APIRouter()

NOT_CONFIGURED_REPLY = (
    "I'm sorry, I couldn't process your request about \"{message}\" at {location}. "
    "The AI service isn't currently configured. Please check with the administrator to set up the OpenAI API key."
)
UNAVAILABLE_REPLY = "I'm having trouble connecting to my knowledge services right now. Could you try again in a moment?"


@lru_cache(maxsize=1)
def get_agent_executor():
    """첫 요청 시 Agent 생성 (이후 재사용)"""
    return create_agent()


async def generate_reply(
    session_id: str,
    message: str,
    location: str,
    lat: float,
    lng: float,
    zoom: float,
    chat_history: list,
) -> str:
    """
    Agent 실행. LLM 설정이 없거나 호출이 실패하면 고정 안내 문구를 반환합니다.
    """
    if not is_llm_configured():
        logger.warning("LLM 설정 없음 -> 안내 문구로 응답")
        return NOT_CONFIGURED_REPLY.format(message=message, location=location)

    try:
        result = await get_agent_executor().ainvoke(
            {
                "input": message,
                "chat_history": chat_history,
                "location": location,
                "lat": lat,
                "lng": lng,
                "zoom": zoom,
                "min_zoom": int(settings.MIN_ZOOM),
                "max_zoom": int(settings.MAX_ZOOM),
            },
            config={"callbacks": [ToolTimingCallbackHandler(session_id)]},
        )
    except Exception as e:
        logger.error(f"AI 서비스 오류: {e}")
        return UNAVAILABLE_REPLY

    return str(result["output"])


@router.post("/chat", response_model=ChatResponse)
async def chat(
    request: ChatRequest,
    response: Response,
    session_cookie: Optional[str] = Cookie(None, alias="session_id"),
):
    """채팅 엔드포인트"""

    # 1. session_id 처리 (body -> 쿠키 -> 신규 생성)
    session_id = request.session_id or session_cookie
    if not session_id or session_id.strip() == "":
        session_id = str(uuid.uuid4())

    if not session_cookie:
        response.set_cookie(
            key="session_id",
            value=session_id,
            path="/",
            httponly=True,
            samesite="strict",
            max_age=settings.SESSION_COOKIE_MAX_AGE,
        )

    # 2. 현재 지도 정보 (요청에 없으면 세션의 지도 상태 사용)
    view = get_reconciler(session_id).state
    location = request.location or view.resolved_name or UNKNOWN_LOCATION
    coordinates = request.coordinates or view.center
    zoom = request.zoom if request.zoom is not None else view.zoom

    try:
        # 3. 대화 히스토리 로드 및 사용자 메시지 저장
        seed_history(session_id, [msg.model_dump() for msg in request.conversation_history])
        chat_history = list(get_conversation_history(session_id))
        add_message(session_id, "user", request.message)

        # 4. Agent 실행
        reply = await generate_reply(
            session_id,
            request.message,
            location,
            coordinates.lat,
            coordinates.lng,
            zoom,
            chat_history,
        )

        # 5. nav 링크 -> geo 링크로 정규화 후 파싱
        processed = normalize_nav_links(reply)
        parsed = parse_message(processed)
        logger.info(f"💬 응답 생성: 링크 {len(parsed.links)}개")

        add_message(session_id, "assistant", processed)

        return ChatResponse(
            session_id=session_id,
            message=processed,
            segments=parsed.segments,
            links=parsed.links,
        )

    except Exception as e:
        logger.exception(f"채팅 오류: {e}")
        raise HTTPException(status_code=500, detail="Failed to process chat request")
