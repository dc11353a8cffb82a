from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # LLM 설정
    OPENAI_API_KEY: str = ""
    LLM_MODEL: str = "gpt-4o-mini"
    LLM_TEMPERATURE: float = 0.7
    LLM_MAX_TOKENS: int = 500

    # LLM 백엔드 설정
    LLM_BACKEND: str = "openai"  # "auto" | "openai" | "vllm"
    VLLM_ENDPOINT: str = ""
    VLLM_MODEL_NAME: str = ""

    # Nominatim (역지오코딩 / 장소 검색)
    NOMINATIM_URL: str = "https://nominatim.openstreetmap.org"
    GEOCODER_USER_AGENT: str = "EarthAI/1.0"
    GEOCODER_LANGUAGE: str = "en"
    GEOCODER_TIMEOUT: float = 5.0

    # 지도 기본값 (뉴욕)
    MIN_ZOOM: float = 3
    MAX_ZOOM: float = 18
    DEFAULT_LAT: float = 40.7128
    DEFAULT_LNG: float = -74.0060
    DEFAULT_ZOOM: float = 13
    DEFAULT_MAP_STYLE: str = "standard"

    # 뷰포트 변경 판정 임계값
    CENTER_EPSILON: float = 0.001
    ZOOM_EPSILON: float = 0.1

    # 링크 클릭 후 이동까지 지연 (초)
    LINK_ACTIVATION_DELAY: float = 0.1

    # 타이밍 기록 버퍼 최대 개수 (오래된 기록부터 버림)
    TOOL_TIMING_MAX_RECORDS: int = 1000

    # Session
    SESSION_COOKIE_MAX_AGE: int = 60 * 60 * 24 * 30

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8080
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        extra = "ignore"

settings = Settings()
