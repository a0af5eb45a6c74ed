"""
BonusPoolBootstrapper -- default commission collaborator.

Responsibility:
    Creates the bonus pool for a client reaching final approval.  Runs in
    the detached phase in its own transaction.  Distribution of the pool is
    handled elsewhere.

Invariants enforced:
    - Idempotent: at most one pool per client.  A second bootstrap for the
      same client is a logged no-op; UNIQUE(client_id) backs this up.
"""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from intake_kernel.db.engine import session_scope
from intake_kernel.domain.clock import Clock, SystemClock
from intake_kernel.exceptions import ClientNotFoundError
from intake_kernel.logging_config import get_logger
from intake_kernel.models.bonus_pool import BonusPool
from intake_kernel.models.client import Client

logger = get_logger("services.commission")


class BonusPoolBootstrapper:
    def __init__(
        self,
        session_factory: sessionmaker[Session] | None = None,
        clock: Clock | None = None,
    ):
        self._session_factory = session_factory
        self._clock = clock or SystemClock()

    def bootstrap(self, client_id: UUID) -> None:
        with session_scope(self._session_factory) as session:
            existing = session.scalar(
                select(BonusPool).where(BonusPool.client_id == client_id)
            )
            if existing is not None:
                logger.info(
                    "bonus_pool_exists",
                    extra={"client_id": str(client_id), "bonus_pool_id": str(existing.id)},
                )
                return

            client = session.get(Client, client_id)
            if client is None:
                raise ClientNotFoundError(str(client_id))

            pool = BonusPool(
                client_id=client_id,
                closer_id=client.agent_id,
                status="pending",
                created_at=self._clock.now(),
            )
            session.add(pool)
            session.flush()

            logger.info(
                "bonus_pool_created",
                extra={"client_id": str(client_id), "bonus_pool_id": str(pool.id)},
            )

    def pool_for(self, client_id: UUID) -> BonusPool | None:
        with session_scope(self._session_factory) as session:
            return session.scalar(
                select(BonusPool).where(BonusPool.client_id == client_id)
            )
