"""
Base Domain Classes

- Entity: identified by ``id``, whatever its state
- ValueObject: immutable, equal when every field is equal
- Aggregate: an entity that records domain events for the unit of work
- DomainEvent: a fact published once the booking transaction commits
"""

from abc import ABC
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional
from uuid import UUID, uuid4


@dataclass(eq=False)
class Entity(ABC):
    id: UUID = field(default_factory=uuid4)

    def __eq__(self, other):
        return isinstance(other, self.__class__) and self.id == other.id

    def __hash__(self):
        return hash(self.id)


@dataclass(frozen=True)
class ValueObject(ABC):
    pass


@dataclass(eq=False)
class Aggregate(Entity):
    """
    Aggregate root

    Events pile up in ``_events`` while the aggregate is being built; the
    unit of work drains them with ``collect_events`` and publishes them
    after commit, or drops them on rollback.
    """
    _events: List['DomainEvent'] = field(default_factory=list, repr=False, init=False)

    def add_event(self, event: 'DomainEvent'):
        self._events.append(event)

    def clear_events(self):
        self._events.clear()

    @property
    def events(self) -> List['DomainEvent']:
        return list(self._events)


@dataclass
class DomainEvent:
    event_id: UUID = field(default_factory=uuid4)
    occurred_at: datetime = field(default_factory=datetime.now)
    aggregate_id: Optional[UUID] = None
