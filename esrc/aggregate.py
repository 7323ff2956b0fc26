"""Aggregates materialized from event streams."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from typing import Any, ClassVar
from uuid import UUID

from esrc.envelope import Envelope
from esrc.errors import InvalidError
from esrc.event import Sequence, event_name


class Aggregate(ABC):
    """State built from an event stream and changed by processing commands.

    Subclasses set ``event_type`` to the event class they emit and must be
    constructible with no arguments, giving the state of an empty stream.
    """

    event_type: ClassVar[type]

    @abstractmethod
    def process(self, command: Any) -> Any:
        """Evaluate a command and return the single event it produces.

        Must not change the aggregate; raise an exception to reject the command.
        """

    @abstractmethod
    def apply(self, event: Any) -> Aggregate:
        """Return the aggregate state after a previously published event."""


@dataclass(frozen=True)
class Root:
    """An aggregate at a specific point in its event stream.

    Attribute lookups that the root does not answer itself are passed to the
    wrapped aggregate.
    """

    aggregate: Any
    id: UUID
    last_sequence: Sequence = Sequence.new()

    @classmethod
    def new(cls, aggregate_type: type, id: UUID) -> Root:
        """A root for an aggregate with no event history."""
        return cls(aggregate_type(), id, Sequence.new())

    def try_apply(self, envelope: Envelope) -> Root:
        """Apply an envelope's event, returning the advanced root.

        Raises InvalidError if the envelope belongs to another stream or is
        not newer than the last applied event.
        """
        event_type = type(self.aggregate).event_type
        if envelope.name != event_name(event_type) or envelope.id != self.id:
            raise InvalidError()

        next_sequence = envelope.sequence
        if self.last_sequence >= next_sequence:
            raise InvalidError()

        event = envelope.deserialize(event_type)
        return replace(
            self,
            aggregate=self.aggregate.apply(event),
            last_sequence=next_sequence,
        )

    def __getattr__(self, name: str) -> Any:
        if name.startswith("__") or name == "aggregate":
            raise AttributeError(name)
        return getattr(self.aggregate, name)