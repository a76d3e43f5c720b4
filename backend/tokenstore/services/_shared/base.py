# tokenstore/services/_shared/base.py
from __future__ import annotations

from dataclasses import dataclass

from tokenstore.services._shared.ports import TokenIdGenerator
from tokenstore.services.tokens.translator import TokenTranslator
from tokenstore.uow.sqlalchemy_uow import (
    SQLAlchemyReadOnlyUnitOfWork,
    SQLAlchemyUnitOfWork,
)


@dataclass(slots=True)
class ServiceContext:
    """
    Carry cross-cutting request-scoped data.

    :param request_id: Correlation id for logging/tracing.
    :param actor: Free-form caller label (API client, CLI user, job name).
    """

    request_id: str | None = None
    actor: str | None = None


class BaseService:
    """
    Base class for application services.

    Responsibilities
    ----------------
    * Provide helpers to run read-only and read-write units of work.
    * Hold collaborators injected by the caller (no service locator).

    Notes
    -----
    - Services never touch the global session; they always use a Unit of Work.
    - Store errors are not translated here; they reach the caller unmodified.
    """

    def __init__(
        self,
        *,
        id_generator: TokenIdGenerator | None = None,
        translator: TokenTranslator | None = None,
        ctx: ServiceContext | None = None,
    ) -> None:
        """
        Initialize the base service.

        :param id_generator: Token identifier generator passed to repositories.
        :param translator: Record/DTO translator passed to repositories.
        :param ctx: Optional request-scoped context.
        """
        self.id_generator = id_generator
        self.translator = translator or TokenTranslator()
        self.ctx = ctx or ServiceContext()

    # -------------------------- UoW helpers ---------------------------------

    def rw_uow(self) -> SQLAlchemyUnitOfWork:
        """
        Create a read-write Unit of Work.

        :returns: Read-write UoW instance.
        :rtype: SQLAlchemyUnitOfWork
        """
        return SQLAlchemyUnitOfWork(id_generator=self.id_generator, translator=self.translator)

    def ro_uow(self) -> SQLAlchemyReadOnlyUnitOfWork:
        """
        Create a read-only Unit of Work.

        :returns: Read-only UoW instance.
        :rtype: SQLAlchemyReadOnlyUnitOfWork
        """
        return SQLAlchemyReadOnlyUnitOfWork(translator=self.translator)
