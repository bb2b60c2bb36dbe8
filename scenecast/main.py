"""
FastAPI entrypoint for the SceneCast API.

Each stage of the pipeline is exposed as its own endpoint; stages hand over
through the session id returned by POST /pipeline/text. The CLI
(run_full_pipeline.py) runs the same stages in one process.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from scenecast.api.routes_video import router as pipeline_router
from scenecast.core.config import settings
from scenecast.core.logging_config import get_logger, setup_logging

setup_logging(log_level=settings.log_level, log_file=settings.log_file)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    logger.info("=" * 60)
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Debug mode: {settings.debug}")
    logger.info(f"Output directory: {settings.output_dir}")
    logger.info("=" * 60)
    yield
    logger.info("Shutting down application")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="SceneCast - turn narration scripts into short vertical videos",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(pipeline_router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "status": "running",
        "endpoints": {
            "process_text": "/pipeline/text",
            "process_audio": "/pipeline/audio",
            "process_visuals": "/pipeline/visuals",
            "process_video": "/pipeline/video",
            "cleanup": "/pipeline/cleanup",
            "get_video": "/videos/{filename}",
            "docs": "/docs",
        },
    }


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "scenecast.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
