from langchain_openai import ChatOpenAI
import requests
import logging
from earthai.config import settings

logger = logging.getLogger(__name__)


def is_llm_configured() -> bool:
    """LLM 호출이 가능한 설정인지 (OpenAI 키 또는 vLLM 엔드포인트)"""
    if settings.LLM_BACKEND in ("vllm", "auto") and settings.VLLM_ENDPOINT:
        return True
    return bool(settings.OPENAI_API_KEY)


def get_llm():
    if settings.LLM_BACKEND in ("auto", "vllm") and settings.VLLM_ENDPOINT:
        try:
            response = requests.get(f"{settings.VLLM_ENDPOINT}/models", timeout=2)
            if response.status_code == 200:
                logger.info(f"✅ vLLM 서버 감지됨: {settings.VLLM_ENDPOINT}")
                return ChatOpenAI(
                    model=settings.VLLM_MODEL_NAME,
                    openai_api_key="EMPTY",
                    base_url=settings.VLLM_ENDPOINT,
                    temperature=settings.LLM_TEMPERATURE,
                    max_tokens=settings.LLM_MAX_TOKENS,
                )
        except requests.RequestException as e:
            logger.warning(f"⚠️ vLLM 서버 연결 실패, OpenAI로 폴백: {e}")

    # OpenAI 사용 (auto 실패 시 또는 openai 모드)
    return ChatOpenAI(
        model=settings.LLM_MODEL,
        temperature=settings.LLM_TEMPERATURE,
        max_tokens=settings.LLM_MAX_TOKENS,
        openai_api_key=settings.OPENAI_API_KEY or "EMPTY",
    )
