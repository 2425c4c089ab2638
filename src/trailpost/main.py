# src/trailpost/main.py
"""Main entry point for the Trailpost application."""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from trailpost.api.v1 import accounts_router, comments_router, flags_router, posts_router
from trailpost.core.errors import ServiceError
from trailpost.core.log_config import configure_logging
from trailpost.core.settings import settings

configure_logging()

# Initialize FastAPI app
app = FastAPI(
    title="Trailpost API",
    description="Reactions, comment threads and content moderation",
    version=settings.app_version,
)

# Include API routers
app.include_router(posts_router, prefix="/api/v1")
app.include_router(comments_router, prefix="/api/v1")
app.include_router(accounts_router, prefix="/api/v1")
app.include_router(flags_router, prefix="/api/v1")


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    """Translate service errors into JSON responses with their status code."""
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("trailpost.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
