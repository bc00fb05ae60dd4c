"""
Base Domain Classes

- ValueObject: immutable, compared by value (Money, DateRange)
- DomainEvent: a fact about a booking, published after commit
"""

from abc import ABC
from dataclasses import dataclass, field, fields
from datetime import datetime
from uuid import UUID, uuid4


@dataclass(frozen=True)
class ValueObject(ABC):
    """Frozen dataclass base; equality is field-by-field."""


@dataclass
class DomainEvent:
    """
    Base class for domain events

    Subclasses add their own fields with defaults. aggregate_id is the
    primary key of the booking the event is about.
    """
    event_id: UUID = field(default_factory=uuid4)
    occurred_at: datetime = field(default_factory=datetime.now)
    aggregate_id: int | None = None

    def to_dict(self) -> dict:
        """Flat, JSON-friendly view used by the audit log"""
        data = {
            'event_id': str(self.event_id),
            'event_type': self.__class__.__name__,
            'occurred_at': self.occurred_at.isoformat(),
            'aggregate_id': self.aggregate_id,
        }
        for f in fields(self):
            if f.name in data:
                continue
            value = getattr(self, f.name)
            if value is not None and not isinstance(value, (str, int, bool)):
                value = value.isoformat() if hasattr(value, 'isoformat') else str(value)
            data[f.name] = value
        return data
