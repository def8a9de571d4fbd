"""
FastAPI API Server.

REST API exposing the local transcript parser so a voice front end can
send a form schema and a transcript and get field updates back.

Start with:
    uvicorn voiceform.api_server:app --reload --port 8000
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from dotenv import load_dotenv
load_dotenv(".env.local")

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from voiceform.api.forms import router as forms_router
from voiceform.api.middleware import RequestIdMiddleware, RateLimitMiddleware
from voiceform.logging_config import setup_logging, get_logger

setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle hooks."""
    logger.info("api_server_starting")
    yield
    logger.info("api_server_stopping")


app = FastAPI(
    title="Voice Form Filler API",
    description="Fills dynamically defined forms from spoken transcripts",
    version="0.1.0",
    lifespan=lifespan,
)

# Middleware (the last one added runs outermost)
app.add_middleware(RateLimitMiddleware)
app.add_middleware(RequestIdMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Restrict in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(forms_router)


@app.get("/health", tags=["System"])
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "ok", "service": "voiceform"}


@app.get("/", tags=["System"])
async def root() -> dict[str, str]:
    """API root."""
    return {
        "service": "Voice Form Filler",
        "version": "0.1.0",
        "docs": "/docs",
    }
