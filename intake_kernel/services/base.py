"""
BaseService -- abstract base for all kernel services that write.

Responsibility:
    Provides the common constructor and session-handling contract for
    every transactional service in the kernel layer.  Concrete services
    receive a SQLAlchemy ``Session`` and use ``session.flush()`` -- never
    ``session.commit()``.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.

Invariants enforced:
    Services flush within the caller's transaction and never commit or
    roll back themselves.  The caller (ClientLifecycleService or a test
    harness) owns commit/rollback, so a status write, its event log entry
    and its task effects land together or not at all.
"""

from abc import ABC

from sqlalchemy.orm import Session


class BaseService(ABC):
    """
    Abstract base class for transactional kernel services.

    Non-goals:
        - Does NOT manage transaction lifecycle (commit/rollback).
    """

    def __init__(self, session: Session):
        self.session = session
