from typing import Dict, List
from langchain_core.messages import HumanMessage, AIMessage, BaseMessage
import logging

logger = logging.getLogger(__name__)

# 메모리에 대화 히스토리 저장 (session_id -> messages)
conversation_history: Dict[str, List[BaseMessage]] = {}


def get_conversation_history(session_id: str) -> List[BaseMessage]:
    """대화 히스토리 가져오기"""
    if session_id not in conversation_history:
        conversation_history[session_id] = []
        logger.info(f"새로운 대화 시작: {session_id}")
    else:
        logger.info(f"기존 대화 로드: {session_id} ({len(conversation_history[session_id])}개 메시지)")

    return conversation_history[session_id]


def add_message(session_id: str, role: str, content: str):
    """메시지 추가 (role: user / assistant)"""
    if session_id not in conversation_history:
        conversation_history[session_id] = []

    if role == "user":
        conversation_history[session_id].append(HumanMessage(content=content))
    elif role in ("assistant", "ai"):
        conversation_history[session_id].append(AIMessage(content=content))
    else:
        logger.warning(f"알 수 없는 role 무시: {role}")
        return

    logger.info(f"메시지 추가: {session_id} - {role}: {content[:100]}...")


def seed_history(session_id: str, messages: List[Dict[str, str]]):
    """
    서버에 기록이 없는 세션이면 클라이언트가 보낸 대화 기록으로 채움
    (서버 재시작 후에도 브라우저에 남은 기록으로 대화 이어가기)
    """
    if conversation_history.get(session_id):
        return
    for msg in messages:
        add_message(session_id, msg["role"], msg["content"])


def clear_conversation(session_id: str):
    """대화 히스토리 삭제"""
    if session_id in conversation_history:
        del conversation_history[session_id]
    logger.info(f"대화 삭제: {session_id}")


def get_all_conversations() -> Dict[str, int]:
    """모든 대화 ID와 메시지 수"""
    return {
        session_id: len(messages)
        for session_id, messages in conversation_history.items()
    }
