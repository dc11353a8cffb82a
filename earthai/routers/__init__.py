from .chat import router as chat_router
from .map_router import router as map_router

__all__ = ["chat_router", "map_router"]
