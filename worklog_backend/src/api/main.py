import logging
import time
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.engine import Engine

from src.api import config
from src.api.auth import SessionManager
from src.api.database import engine as default_engine, init_db
from src.api.errors import register_error_handlers
from src.api.logging_config import setup_logging
from src.api.routers import auth, log_entries, projects, tasks
from src.api.schemas import MessageResponse

logger = logging.getLogger(__name__)


def _lifespan(db_engine: Engine):
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting worklog API on %s", db_engine.url.render_as_string(hide_password=True))
        init_db(db_engine)
        yield
        db_engine.dispose()
        logger.info("Worklog API stopped")

    return lifespan


# PUBLIC_INTERFACE
def create_app(
    db_engine: Optional[Engine] = None,
    session_secret: Optional[str] = None,
    session_lifetime: Optional[timedelta] = None,
) -> FastAPI:
    """
    Build the application.

    The session manager is created here and kept on app.state; routes reach it
    through the get_session_manager dependency.
    """
    setup_logging(config.LOG_LEVEL)

    secret = session_secret or config.SESSION_SECRET
    if secret == config.DEFAULT_SESSION_SECRET:
        logger.warning("Using the default session secret; set SESSION_SECRET in production")

    app = FastAPI(
        title="Worklog API",
        description="Personal work-log backend: projects, tasks and dated log entries behind session auth.",
        version="1.0.0",
        lifespan=_lifespan(db_engine or default_engine),
        openapi_tags=[
            {"name": "Health", "description": "Service health and status."},
            {"name": "Auth", "description": "Registration, login and sessions."},
            {"name": "Projects", "description": "CRUD operations for projects."},
            {"name": "Tasks", "description": "CRUD operations for tasks."},
            {"name": "Log entries", "description": "CRUD operations for log entries and the daily view."},
        ],
    )
    app.state.session_manager = SessionManager(
        secret_key=secret,
        lifetime=session_lifetime or timedelta(days=config.SESSION_LIFETIME_DAYS),
    )

    # CORS setup - allow frontend with cookies
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[config.FRONTEND_ORIGIN],
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Accept", "Content-Type"],
        max_age=300,
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info("%s %s -> %d (%.1f ms)", request.method, request.url.path, response.status_code, elapsed_ms)
        return response

    register_error_handlers(app)

    # PUBLIC_INTERFACE
    @app.get("/", response_model=MessageResponse, tags=["Health"], summary="Health Check")
    def health_check():
        """
        Health check endpoint.

        Returns:
            JSON object indicating service status.
        """
        return MessageResponse(message="Healthy")

    for module in (auth, projects, tasks, log_entries):
        app.include_router(module.router, prefix=config.API_PREFIX)

    return app


app = create_app()


def serve() -> None:
    """Run the API under uvicorn."""
    uvicorn.run(app, host="0.0.0.0", port=config.PORT)


if __name__ == "__main__":
    serve()
