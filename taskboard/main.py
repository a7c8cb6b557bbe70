import logging
from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from taskboard.auth.context import ContextBuilder
from taskboard.auth.credentials import CredentialVerifier
from taskboard.core.config import Settings, get_settings
from taskboard.core.logging_setup import setup_logging
from taskboard.database import Database
from taskboard.routers import rpc, views
from taskboard.rpc.errors import ProcedureError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    if settings.create_tables:
        await app.state.database.create_all()
    logger.info(f"Taskboard started ({settings.environment})")
    yield
    await app.state.database.dispose()
    logger.info("Taskboard stopped")


async def procedure_error_handler(request: Request, exc: ProcedureError):
    return JSONResponse(status_code=exc.http_status, content={"error": exc.to_dict()})


def create_app(settings: Settings | None = None, database: Database | None = None) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings.log_level)
    if not settings.jwt_secret:
        logger.warning("TASKBOARD_JWT_SECRET not set, using development secret")

    app = FastAPI(
        title="Taskboard API",
        description="Task tracking with typed procedures over HTTP",
        version="1.0.0",
        lifespan=lifespan,
    )

    verifier = CredentialVerifier(
        settings.signing_secret,
        expires_in=timedelta(days=settings.jwt_expires_days),
    )
    app.state.settings = settings
    app.state.database = database or Database(settings.database_url, echo=settings.db_echo)
    app.state.verifier = verifier
    app.state.context_builder = ContextBuilder(verifier)

    app.add_exception_handler(ProcedureError, procedure_error_handler)

    # Include routers
    app.include_router(rpc.router)
    app.include_router(views.router)

    @app.get("/")
    async def root():
        return {
            "message": "Welcome to Taskboard API",
            "docs": "/docs",
            "version": "1.0.0",
        }

    return app


app = create_app()
