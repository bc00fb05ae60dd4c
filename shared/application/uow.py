"""
Unit of Work

Scopes one booking operation: its database writes and the domain events
it produces. Events are handed to the message bus only once the
surrounding transaction has committed, and dropped if the operation
fails.
"""

from abc import ABC, abstractmethod
from typing import List
import logging

from django.db import transaction

from shared.domain.base import DomainEvent

logger = logging.getLogger(__name__)


class AbstractUnitOfWork(ABC):

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            self.commit()
        else:
            self.rollback()

    @abstractmethod
    def commit(self):
        """Make the work durable and release its events"""

    @abstractmethod
    def rollback(self):
        """Discard the work's events"""

    @abstractmethod
    def add_event(self, event: DomainEvent):
        """Queue an event for publication after commit"""


class DjangoUnitOfWork(AbstractUnitOfWork):
    """
    Unit of work over Django's transaction management.

    atomic=True wraps the block in transaction.atomic(). Handlers that
    move money at the payment gateway pass atomic=False: a refund that
    already happened must not be paired with a rolled-back booking, so
    each save commits on its own and only event publication is deferred.

    Usage:
        with DjangoUnitOfWork() as uow:
            ledger.void(booking)
            uow.add_event(BookingVoided(...))
        # BookingVoided is published after commit
    """

    def __init__(self, atomic: bool = True):
        self._atomic = atomic
        self._events: List[DomainEvent] = []
        self._transaction = None

    def __enter__(self):
        if self._atomic:
            self._transaction = transaction.atomic()
            self._transaction.__enter__()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        try:
            super().__exit__(exc_type, exc_val, exc_tb)
        finally:
            if self._transaction is not None:
                self._transaction.__exit__(exc_type, exc_val, exc_tb)
                self._transaction = None

    def add_event(self, event: DomainEvent):
        self._events.append(event)

    @property
    def pending_events(self) -> List[DomainEvent]:
        return list(self._events)

    def commit(self):
        events, self._events = self._events, []
        if events:
            # Runs immediately when no transaction is open (atomic=False)
            transaction.on_commit(lambda: _publish(events))

    def rollback(self):
        if self._events:
            logger.info(f"Discarding {len(self._events)} unpublished events")
        self._events = []


def _publish(events: List[DomainEvent]):
    from shared.application.message_bus import message_bus

    try:
        message_bus.publish_events(events)
    except Exception:
        # The change is committed; a publishing failure is only reported
        logger.exception(f"Publishing {len(events)} events failed")
