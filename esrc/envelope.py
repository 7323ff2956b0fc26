"""Stored event data that can be decoded into specific event types."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from datetime import datetime
from typing import Any
from uuid import UUID

from esrc.errors import InvalidError
from esrc.event import Sequence, event_group, event_name

_HOOK = "try_from_envelope"


class Envelope(ABC):
    """Data for one event in a stream, as loaded from an event store.

    Backends implement this to expose stream metadata and to decode the
    payload into a requested event type.
    """

    @property
    @abstractmethod
    def id(self) -> UUID:
        """The ID of the event stream (the aggregate) this envelope belongs to."""

    @property
    @abstractmethod
    def sequence(self) -> Sequence:
        """The position of this event in its event stream."""

    @property
    @abstractmethod
    def timestamp(self) -> datetime:
        """The approximate time the event was originally published."""

    @property
    @abstractmethod
    def name(self) -> str:
        """The name of the event stream, matching an event type's name."""

    @abstractmethod
    def deserialize(self, event_type: type) -> Any:
        """Decode the stored event as ``event_type``.

        Raises InvalidError when the envelope does not hold that type, and
        FormatError when the stored data cannot be decoded.
        """


def try_from_envelope(target: Any, envelope: Envelope) -> Any:
    """Decode an envelope into an event type or a member of an event group.

    A single event type is decoded directly. For a group, the member whose
    name matches the envelope's name is decoded; if none matches,
    InvalidError is raised. A target defining its own ``try_from_envelope``
    callable is handed the envelope instead.
    """
    custom = getattr(target, _HOOK, None)
    if callable(custom):
        return custom(envelope)

    if isinstance(target, type):
        event_name(target)
        return envelope.deserialize(target)

    if not isinstance(target, Iterable):
        raise TypeError(f"{target!r} is neither an event type nor an event group")

    for member in event_group(*target):
        if envelope.name == event_name(member):
            return envelope.deserialize(member)
    raise InvalidError()