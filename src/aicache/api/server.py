"""FastAPI server for the cache admin HTTP API."""
from __future__ import annotations

from fastapi import FastAPI

from aicache.config import CacheSettings, get_settings

from .routes import cache

# Get settings
settings: CacheSettings = get_settings()

# Create FastAPI app
app = FastAPI(
    title="AI Cache API",
    description="Administrative HTTP API for the AI response cache",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url=f"{settings.api_prefix}/openapi.json",
)

# Include routers
app.include_router(cache.router, prefix=settings.api_prefix)


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "ok"}


# Main entry point for running with `python -m aicache.api.server`
if __name__ == "__main__":
    import uvicorn

    uvicorn.run("aicache.api.server:app", host="0.0.0.0", port=8000)
