from .events import router as events_router
from .sessions import router as sessions_router

__all__ = [
    "events_router",
    "sessions_router",
]
