"""
FastAPI Backend for chatsplit

This is the main entry point for the API server. It provides endpoints for:
- Splitting pasted transcripts into attributed turns
- Inspecting the per-stage trace behind each turn
- Listing the recognized provider markers

In production mode, also serves the paste-box frontend from backend/static/.

Architecture Decision:
- No storage - analysis is synchronous and stateless, every request is
  answered inline
"""

# Load .env BEFORE any application imports that read os.environ
from dotenv import load_dotenv
load_dotenv()

import os
from pathlib import Path

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles

from backend.api.routes import analyze, markers
from chatsplit import __version__

logger = structlog.get_logger(__name__)


# Frontend static files directory
STATIC_DIR = Path(__file__).parent / "static"


app = FastAPI(
    title="chatsplit API",
    description="Split copy-pasted AI chat transcripts into attributed, annotated turns",
    version=__version__,
)

# CORS - allow dev server and any origin when serving static files
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173", "http://localhost:3000", "*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# =============================================================================
# API routes - mounted under /api prefix
# =============================================================================

app.include_router(analyze.router, prefix="/api", tags=["Analysis"])
app.include_router(markers.router, prefix="/api", tags=["Markers"])


@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": __version__}


# =============================================================================
# Frontend static file serving
# =============================================================================

if STATIC_DIR.exists() and (STATIC_DIR / "index.html").exists():
    app.mount(
        "/assets",
        StaticFiles(directory=str(STATIC_DIR / "assets"), check_dir=False),
        name="frontend-assets",
    )

    @app.get("/", include_in_schema=False)
    async def serve_index():
        return FileResponse(str(STATIC_DIR / "index.html"))
else:
    @app.get("/")
    async def root():
        """Root endpoint - shown when no frontend build is available."""
        return {
            "name": "chatsplit API",
            "docs": "/docs",
            "endpoints": {
                "analyze": "POST /api/analyze",
                "trace": "POST /api/analyze/trace",
                "markers": "GET /api/markers",
                "health": "GET /api/health",
            },
        }


# =============================================================================
# Run with: python -m backend.main
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    port = int(os.environ.get("PORT", 8100))
    logger.info("server_starting", port=port)
    uvicorn.run(
        "backend.main:app",
        host="0.0.0.0",
        port=port,
        reload=False,
    )
