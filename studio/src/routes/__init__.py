from studio.src.routes.health import router as health_router
from studio.src.routes.pipelines import router as pipelines_router
from studio.src.routes.editor import router as editor_router
from studio.src.routes.runs import router as runs_router

__all__ = ["health_router", "pipelines_router", "editor_router", "runs_router"]
