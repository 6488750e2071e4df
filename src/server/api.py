from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.logging_config import configure_logging

from .documents import router as documents_router
from .settings import get_settings

settings = get_settings()
configure_logging(settings.log_level, settings.log_format)

app = FastAPI(title="Topic Corpus API", version="0.1.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["GET"],
    allow_headers=["*"],
)
app.include_router(documents_router)


@app.get("/api/healthz")
async def healthz() -> dict[str, str]:
    return {"status": "ok"}


__all__ = ["app"]
