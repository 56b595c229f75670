from __future__ import annotations

import os
from typing import List

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from apps.api.routes.events import router as events_router
from apps.api.routes.sessions import router as sessions_router
from packages.core.logging_config import configure_logging


configure_logging()


def _allowed_origins() -> List[str]:
    raw = os.getenv("CORS_ALLOW_ORIGINS", "*")
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


app = FastAPI(title="Bulk Calendar Editor API")
app.add_middleware(
    CORSMiddleware,
    allow_origins=_allowed_origins(),
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(sessions_router)
app.include_router(events_router)


@app.get("/health")
def health():
    return {"status": "ok"}
