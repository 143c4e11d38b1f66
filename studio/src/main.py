import logging
import sys

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from studio.src.config import get_settings
from studio.src.db.database import async_session, init_db
from studio.src.routes import health_router, pipelines_router, editor_router, runs_router
from studio.src.services.persistence import load_pipeline_records
from studio.src.services.workspace import get_workspace

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)]
)

logger = logging.getLogger(__name__)

settings = get_settings()

async def restore_saved_pipelines():
    """Load pipelines saved in earlier sessions into the workspace."""
    try:
        await init_db()
        async with async_session() as session:
            saved = await load_pipeline_records(session)
    except Exception as e:
        logger.warning(f"Database unavailable, starting with in-memory pipelines only: {e}")
        return

    workspace = get_workspace()
    for pipeline in saved:
        workspace.pipelines[pipeline.id] = pipeline
    logger.info(f"Restored {len(saved)} saved pipelines")

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info("Starting Pipeline Studio API")
    await restore_saved_pipelines()
    yield
    # Shutdown
    logger.info("Shutting down Pipeline Studio API")

app = FastAPI(
    title="Pipeline Studio",
    description="Visual CI/CD pipeline editor",
    version="0.1.0",
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(health_router)
app.include_router(pipelines_router, prefix="/api")
app.include_router(runs_router, prefix="/api")
app.include_router(editor_router, prefix="/api")

@app.get("/")
async def root():
    return {
        "name": "Pipeline Studio",
        "version": "0.1.0",
        "docs": "/docs"
    }
