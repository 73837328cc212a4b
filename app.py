"""
Subtitle Delivery Backend - Unified Application Entry Point
Mounts the service routes under a single FastAPI application
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from services.subtitles import app as subtitles_module
from services.subtitles.errors import SubtitleDeliveryError
from shared.utils import config, setup_logging

logger = setup_logging("subtitle-backend")

subtitles_app = subtitles_module.app

app = FastAPI(
    title="Subtitle Delivery Backend API",
    description="""
    Subtitle streaming, HLS subtitle playlists and remote subtitle management.

    Subtitle routes keep their original paths (``/Videos``, ``/Items``, ``/Providers``).
    """,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_tags=[
        {
            "name": "Health",
            "description": "Service health and status endpoints",
        },
        {
            "name": "Subtitles",
            "description": "Subtitle delivery, HLS playlists and remote subtitles",
        },
    ],
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.get("allowed_origins", ["*"]),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(SubtitleDeliveryError, subtitles_module.subtitle_error_handler)

# Routes to exclude (internal FastAPI docs routes and per-service health)
EXCLUDED_PATHS = {"/openapi.json", "/docs", "/docs/oauth2-redirect", "/redoc", "/health"}

# Subtitle routes are registered without a prefix; clients address them by absolute path
for route in subtitles_app.routes:
    if hasattr(route, "path") and hasattr(route, "endpoint"):
        # Skip internal documentation routes
        if route.path in EXCLUDED_PATHS:
            continue
        route_kwargs = {
            "path": route.path,
            "endpoint": route.endpoint,
            "methods": route.methods,
            "tags": ["Subtitles"],
        }
        if hasattr(route, "name"):
            route_kwargs["name"] = f"subtitles_{route.name}"
        if hasattr(route, "response_model"):
            route_kwargs["response_model"] = route.response_model
        if getattr(route, "status_code", None):
            route_kwargs["status_code"] = route.status_code
        app.add_api_route(**route_kwargs)


@app.get("/", tags=["Health"])
async def root():
    """Root endpoint with service information and API navigation"""
    return {
        "service": "Subtitle Delivery Backend API",
        "version": "1.0.0",
        "routes": {
            "subtitle_stream": "/Videos/{id}/{mediaSourceId}/Subtitles/{index}/Stream.{format}",
            "subtitle_playlist": "/Videos/{id}/{mediaSourceId}/Subtitles/{index}/subtitles.m3u8",
            "remote_search": "/Items/{id}/RemoteSearch/Subtitles/{language}",
            "remote_subtitles": "/Providers/Subtitles/Subtitles/{id}",
        },
        "documentation": {
            "swagger_ui": "/docs",
            "redoc": "/redoc",
            "openapi_json": "/openapi.json",
        },
    }


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint for all services"""
    return {
        "status": "healthy",
        "services": {
            "api_gateway": "operational",
            "subtitles": "operational",
        },
    }


if __name__ == "__main__":
    import uvicorn

    logger.info("Starting Subtitle Delivery Backend on http://0.0.0.0:8000")
    uvicorn.run("app:app", host="0.0.0.0", port=8000, reload=True, log_level="info")
