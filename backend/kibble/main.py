"""Main FastAPI application for Kibble."""

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware

from .config import load_config
from .errors import KibbleError
from .models.database import init_db, close_db, run_in_transaction
from .utils.logging import setup_logging
from .routers import auth_router, boards_router, columns_router, tasks_router, archive_router
from .services.task import TaskService

logger = logging.getLogger(__name__)

# Background tasks
_auto_archive_task: asyncio.Task | None = None


async def run_auto_archive() -> int:
    """Archive tasks that have sat locked in a terminal column past the threshold."""
    config = load_config()
    older_than = timedelta(hours=config.board.auto_archive_after_hours)
    return await run_in_transaction(
        lambda tx: TaskService(tx).archive_stale_terminal_tasks(older_than)
    )


async def auto_archive_task():
    """Background task archiving completed work."""
    logger.info("Auto-archive task started")

    while True:
        try:
            config = load_config()
            archived = await run_auto_archive()
            if archived > 0:
                logger.info(f"Auto-archived {archived} completed tasks")

            await asyncio.sleep(config.board.auto_archive_interval_minutes * 60)

        except asyncio.CancelledError:
            break
        except Exception as e:
            logger.error(f"Auto-archive task error: {e}")
            await asyncio.sleep(60)  # Wait a bit before retrying


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    global _auto_archive_task

    # Startup
    config = load_config()
    setup_logging()
    logger.info("Starting Kibble...")

    # Initialize database
    await init_db()
    logger.info("Database initialized")

    # Log configuration info
    logger.info(f"Server: {config.server.host}:{config.server.port}")
    logger.info(f"Debug mode: {config.server.debug}")
    logger.info(f"Users configured: {len(config.users)}")

    if config.board.auto_archive_enabled:
        logger.info(
            f"Auto-archive enabled (after {config.board.auto_archive_after_hours}h, "
            f"every {config.board.auto_archive_interval_minutes}m)"
        )
        _auto_archive_task = asyncio.create_task(auto_archive_task())

    yield

    # Shutdown
    logger.info("Shutting down Kibble...")

    if _auto_archive_task:
        _auto_archive_task.cancel()
        try:
            await _auto_archive_task
        except asyncio.CancelledError:
            pass
        _auto_archive_task = None

    await close_db()


app = FastAPI(
    title="Kibble",
    description="Kanban boards with consistent task ordering and lifecycle",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS middleware (for development)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://localhost:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(KibbleError)
async def kibble_error_handler(request: Request, exc: KibbleError):
    """Render engine and service failures as JSON with their status code."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, **exc.detail()},
    )


# Register API routers
app.include_router(auth_router)
app.include_router(boards_router)
app.include_router(columns_router)
app.include_router(tasks_router)
app.include_router(archive_router)


# Health check endpoint
@app.get("/api/health")
async def health_check():
    """Health check endpoint for monitoring."""
    return {"status": "healthy", "service": "kibble"}


if __name__ == "__main__":
    import uvicorn

    config = load_config()
    uvicorn.run(
        "kibble.main:app",
        host=config.server.host,
        port=config.server.port,
        reload=config.server.debug,
    )
