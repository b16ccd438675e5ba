"""Main FastAPI application."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import settings
from .database import init_db, close_db, async_session
from .routers import endpoints_router
from .services.checker import checker_service
from .services.monitoring import MonitoringService
from .services.repository import Repository
from .services.scheduler import SchedulerService

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def build_services(session_factory=async_session, checker=checker_service):
    """Wire the repository, monitoring service and scheduler together."""
    repository = Repository(session_factory)
    monitoring = MonitoringService(repository, checker)
    scheduler = SchedulerService(repository, monitoring)
    return repository, scheduler


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - startup and shutdown."""
    logger.info("Connecting to database ...")
    await init_db()
    logger.info("Database initialized")

    repository, scheduler = build_services()
    app.state.repository = repository
    app.state.scheduler = scheduler

    scheduler.start()
    # A failure here aborts startup
    await scheduler.initialize_tasks()

    yield

    # Shutdown
    scheduler.stop()
    await scheduler.wait_for_pending_checks()
    await close_db()
    logger.info("Shutdown complete")


async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Malformed or missing request fields are a 400, like entity validation."""
    return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="urlmon",
        description="Monitor HTTP(S) endpoints and record every check",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.include_router(endpoints_router)

    @app.get("/health")
    async def health_check():
        scheduler = getattr(app.state, "scheduler", None)
        return {
            "status": "healthy",
            "active_tasks": len(scheduler.active_task_ids()) if scheduler else 0,
        }

    return app


# Create the application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=settings.web_port)
