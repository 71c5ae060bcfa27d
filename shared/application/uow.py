"""
Unit of Work Pattern

Wraps a booking write in one database transaction and publishes the
collected domain events only after that transaction has committed.
"""

from abc import ABC, abstractmethod
from typing import List
import logging

from django.db import connection, transaction
from django.db.utils import NotSupportedError

from shared.domain.base import DomainEvent

logger = logging.getLogger(__name__)


class AbstractUnitOfWork(ABC):
    """Abstract Unit of Work pattern"""

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            self.commit()
        else:
            self.rollback()

    @abstractmethod
    def commit(self):
        pass

    @abstractmethod
    def rollback(self):
        pass

    @abstractmethod
    def collect_events(self, aggregate):
        pass


class DjangoUnitOfWork(AbstractUnitOfWork):
    """
    Django implementation of Unit of Work

    Usage:
        with DjangoUnitOfWork() as uow:
            uow.lock(RoomType.objects.filter(pk__in=unit_ids))
            plan = assembler.assemble(request)
            repo.save_plan(plan)
            uow.collect_events(plan)
        # events are published after commit

    Any exception inside the block rolls the whole transaction back, so a
    group of reservations is written completely or not at all.
    """

    def __init__(self):
        self._events: List[DomainEvent] = []
        self._transaction = None

    def __enter__(self):
        self._transaction = transaction.atomic()
        self._transaction.__enter__()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        try:
            if exc_type is None:
                self.commit()
            else:
                self.rollback()
        finally:
            if self._transaction:
                self._transaction.__exit__(exc_type, exc_val, exc_tb)

    def lock(self, queryset) -> list:
        """
        Lock the rows of a queryset until the transaction ends

        Used to serialise bookings per unit: two requests for the same room
        type queue on its row instead of both passing the availability check.
        Backends without SELECT ... FOR UPDATE (SQLite) run unlocked.
        """
        if connection.features.has_select_for_update:
            try:
                return list(queryset.select_for_update())
            except NotSupportedError:
                logger.warning("Row locking not supported, continuing unlocked")
        return list(queryset)

    def commit(self):
        logger.debug(f"Committing transaction with {len(self._events)} events")

        events = self._events.copy()
        self._events.clear()

        if events:
            transaction.on_commit(lambda: self._publish_events(events))

    def rollback(self):
        logger.warning(f"Rolling back transaction, discarding {len(self._events)} events")
        self._events.clear()

    def collect_events(self, aggregate):
        if hasattr(aggregate, 'events'):
            new_events = aggregate.events
            if new_events:
                self._events.extend(new_events)
                aggregate.clear_events()
                logger.debug(
                    f"Collected {len(new_events)} events from "
                    f"{aggregate.__class__.__name__} (ID: {aggregate.id})"
                )

    def _publish_events(self, events: List[DomainEvent]):
        from shared.application.message_bus import message_bus

        logger.info(f"Publishing {len(events)} domain events after commit")

        try:
            message_bus.publish_events(events)
        except Exception as e:
            # the booking is already committed; a failed side effect must not undo it
            logger.error(f"Error publishing events: {e}", exc_info=True)
