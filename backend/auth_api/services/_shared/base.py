# auth_api/services/_shared/base.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime

from auth_api.core import errors as api_errors
from auth_api.core.logger import OperationLogger, get_operation_logger
from auth_api.services._shared.errors import (
    AuthenticationError,
    AuthorizationError,
    BadRequestError,
    ConflictError,
    InternalServiceError,
    NotFoundError,
    ServiceError,
)
from auth_api.uow.sqlalchemy_uow import (
    SQLAlchemyReadOnlyUnitOfWork,
    SQLAlchemyUnitOfWork,
)


@dataclass(slots=True)
class ServiceContext:
    """
    Carry cross-cutting request-scoped data (actor, request id).

    :param actor_id: Authenticated user identifier.
    :param actor_roles: Role names carried by the actor's access token.
    :param request_id: Correlation id for logging/tracing.
    """

    actor_id: str | None = None
    actor_roles: frozenset[str] = field(default_factory=frozenset)
    request_id: str | None = None

    def logger(self, name: str) -> OperationLogger:
        """Return a logger bound to this context's request id."""
        return get_operation_logger(name, request_id=self.request_id)


class BaseService:
    """
    Base class for application services.

    Responsibilities
    ----------------
    * Provide helpers to run read-only and read-write units of work.
    * Own a per-operation logger bound to the request context.
    * Centralize error translation.

    Notes
    -----
    - Services must never touch the global session; always use a Unit of Work.
    - Services receive their ports through the constructor.
    """

    DEFAULT_READ_ISOLATION = "READ COMMITTED"

    def __init__(self, *, ctx: ServiceContext | None = None) -> None:
        """
        Initialize the base service.

        :param ctx: Optional request-scoped context (actor, tracing).
        :type ctx: ServiceContext | None
        """
        self.ctx = ctx or ServiceContext()
        self.log = self.ctx.logger(type(self).__module__)

    # -------------------------- UoW helpers ---------------------------------

    def rw_uow(self) -> SQLAlchemyUnitOfWork:
        """
        Create a read-write Unit of Work.

        :returns: Read-write UoW instance.
        :rtype: SQLAlchemyUnitOfWork
        """
        return SQLAlchemyUnitOfWork()

    def ro_uow(
        self, *, isolation: str | None = None, enforce_db_readonly: bool = True
    ) -> SQLAlchemyReadOnlyUnitOfWork:
        """
        Create a read-only Unit of Work.

        :param isolation: Transaction isolation level (e.g. "READ COMMITTED").
        :type isolation: str | None
        :param enforce_db_readonly: Apply `SET TRANSACTION READ ONLY` when supported.
        :type enforce_db_readonly: bool
        :returns: Read-only UoW instance.
        :rtype: SQLAlchemyReadOnlyUnitOfWork
        """
        return SQLAlchemyReadOnlyUnitOfWork(
            isolation_level=isolation or self.DEFAULT_READ_ISOLATION,
            enforce_db_readonly=enforce_db_readonly,
        )

    # -------------------------- Clock ---------------------------------------

    @staticmethod
    def now_utc() -> datetime:
        return datetime.now(UTC)

    # -------------------------- Error handling ------------------------------

    @staticmethod
    def translate_exceptions(exc: Exception) -> Exception:
        """
        Map domain/service-level errors to API-level (HTTP) errors.

        :param exc: Exception raised within the service.
        :type exc: Exception
        :returns: Translated exception ready to be re-raised.
        :rtype: Exception
        """
        if isinstance(exc, NotFoundError):
            return api_errors.NotFound(str(exc))

        if isinstance(exc, ConflictError):
            return api_errors.Conflict(str(exc))

        if isinstance(exc, AuthenticationError):
            return api_errors.Unauthorized(str(exc))

        if isinstance(exc, AuthorizationError):
            return api_errors.Forbidden(str(exc))

        if isinstance(exc, InternalServiceError):
            # Internal details stay in the logs
            return api_errors.InternalServerError(str(exc) or "Internal server error")

        if isinstance(exc, BadRequestError | ServiceError):
            return api_errors.BadRequest(str(exc))

        # Fallback: return untouched (will bubble up to Flask handler)
        return exc
