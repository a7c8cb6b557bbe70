"""FastAPI dependencies. Long-lived collaborators live on app.state."""

from fastapi import Depends, Request
from sqlmodel.ext.asyncio.session import AsyncSession

from taskboard.auth.context import RequestContext
from taskboard.core.config import Settings
from taskboard.database import get_db
from taskboard.rpc.app_router import app_router
from taskboard.rpc.procedures import Caller


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_request_context(request: Request) -> RequestContext:
    return request.app.state.context_builder.build(request.headers, request=request)


def _make_caller(request: Request, context: RequestContext, db: AsyncSession) -> Caller:
    return app_router.create_caller(
        context,
        db,
        request.app.state.verifier,
        password_rounds=request.app.state.settings.bcrypt_rounds,
    )


def get_caller(
    request: Request,
    context: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
) -> Caller:
    return _make_caller(request, context, db)


def get_view_caller(
    request: Request,
    context: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
) -> Caller:
    """Caller for the view endpoints; anonymous requests use the fallback identity."""
    if context.identity is None:
        settings = get_app_settings(request)
        context = RequestContext.for_identity(settings.fallback_identity, request=request)
    return _make_caller(request, context, db)
