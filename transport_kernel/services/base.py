"""
BaseService -- abstract base for kernel services.

Responsibility:
    Common constructor for services that write.  A service receives the
    caller's ``Session`` and persists with ``session.flush()``, never
    ``session.commit()``.

Architecture position:
    Kernel > Services -- imperative shell.

Invariants enforced:
    - Transaction boundaries belong to the caller (``session_scope()`` or
      the test harness).  A workflow step that touches several rows either
      lands completely or not at all when the caller rolls back.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from transport_kernel.db.base import Base
from transport_kernel.domain.clock import Clock, SystemClock

ModelType = TypeVar("ModelType", bound=Base)


class BaseService(ABC, Generic[ModelType]):
    """
    Abstract base class for kernel services.

    Non-goals:
        - Does NOT commit or roll back.
        - Read-only listing queries live in ``transport_kernel/selectors/``.
    """

    def __init__(self, session: Session, clock: Clock | None = None):
        self.session = session
        self.clock = clock or SystemClock()
