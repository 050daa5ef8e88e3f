"""FastAPI application setup for the WBGT signal service."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api import router as api_router
from .config import settings

app = FastAPI(title="WBGT Signal Service")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_methods=["GET", "OPTIONS"],
    allow_headers=["*"],
)


@app.get("/health")
def health():
    """Liveness probe."""
    return {"status": "ok"}


# API routes
app.include_router(api_router, prefix="/v1")
