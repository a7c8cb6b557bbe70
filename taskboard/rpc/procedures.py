import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Literal

from pydantic import BaseModel, ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel.ext.asyncio.session import AsyncSession

from taskboard.auth.context import RequestContext
from taskboard.auth.credentials import CredentialVerifier
from taskboard.rpc.errors import ProcedureError

logger = logging.getLogger(__name__)

ProcedureKind = Literal["query", "mutation"]


@dataclass
class ProcedureContext:
    """What a procedure handler sees: the request context plus its collaborators."""

    request: RequestContext
    db: AsyncSession
    verifier: CredentialVerifier
    password_rounds: int = 10

    @property
    def identity(self) -> int | None:
        return self.request.identity


Handler = Callable[[ProcedureContext, Any], Awaitable[Any]]


@dataclass(frozen=True)
class Procedure:
    name: str
    kind: ProcedureKind
    handler: Handler
    input_model: type[BaseModel] | None = None
    optional_input: bool = False
    protected: bool = False

    def parse_input(self, raw_input: Any):
        if self.input_model is None:
            return None
        if raw_input is None and self.optional_input:
            return None
        if isinstance(raw_input, self.input_model):
            return raw_input
        try:
            return self.input_model.model_validate(raw_input)
        except ValidationError as e:
            raise ProcedureError.from_validation_error(e) from e


class ProcedureSet:
    """Named procedures grouped by dotted namespace, e.g. ``tasks.getAll``."""

    def __init__(self):
        self._procedures: dict[str, Procedure] = {}

    def _register(self, kind: ProcedureKind, name: str, **options):
        def decorator(handler: Handler) -> Handler:
            if name in self._procedures:
                raise ValueError(f"Procedure already registered: {name}")
            self._procedures[name] = Procedure(name, kind, handler, **options)
            return handler

        return decorator

    def query(
        self,
        name: str,
        input: type[BaseModel] | None = None,
        optional_input: bool = False,
        protected: bool = False,
    ):
        return self._register(
            "query",
            name,
            input_model=input,
            optional_input=optional_input,
            protected=protected,
        )

    def mutation(
        self,
        name: str,
        input: type[BaseModel] | None = None,
        protected: bool = False,
    ):
        return self._register("mutation", name, input_model=input, protected=protected)

    def get(self, name: str) -> Procedure:
        try:
            return self._procedures[name]
        except KeyError:
            raise ProcedureError("NOT_FOUND", f"No procedure named '{name}'") from None

    def create_caller(
        self,
        context: RequestContext,
        db: AsyncSession,
        verifier: CredentialVerifier,
        password_rounds: int = 10,
    ) -> "Caller":
        return Caller(
            self,
            ProcedureContext(
                request=context,
                db=db,
                verifier=verifier,
                password_rounds=password_rounds,
            ),
        )


class Caller:
    """Invokes procedures in-process with a fixed context."""

    def __init__(self, procedures: ProcedureSet, ctx: ProcedureContext):
        self.procedures = procedures
        self.ctx = ctx

    @property
    def context(self) -> RequestContext:
        return self.ctx.request

    async def call(self, name: str, raw_input: Any = None):
        procedure = self.procedures.get(name)
        data = procedure.parse_input(raw_input)

        if procedure.protected and self.ctx.identity is None:
            raise ProcedureError("UNAUTHORIZED", "Authentication required")

        try:
            return await procedure.handler(self.ctx, data)
        except ProcedureError as e:
            logger.info(f"Procedure {name} failed with {e.code}: {e.message}")
            raise
        except SQLAlchemyError as e:
            logger.exception(f"Database error in procedure {name}")
            await self.ctx.db.rollback()
            raise ProcedureError("SERVICE_UNAVAILABLE", "Service unavailable") from e
        except Exception as e:
            logger.exception(f"Unexpected error in procedure {name}")
            await self.ctx.db.rollback()
            raise ProcedureError("INTERNAL_SERVER_ERROR", "Internal server error") from e
