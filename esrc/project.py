"""Projection of events onto read models and side effects."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any, ClassVar
from uuid import UUID

from esrc.envelope import Envelope, try_from_envelope
from esrc.event import Sequence


@dataclass(frozen=True)
class Context:
    """A decoded event together with the envelope it came from."""

    envelope: Envelope
    event: Any

    @classmethod
    def try_with_envelope(cls, envelope: Envelope, group: Any) -> Context:
        """Decode ``envelope`` as a member of ``group`` and wrap the result."""
        return cls(envelope, try_from_envelope(group, envelope))

    @property
    def id(self) -> UUID:
        """The aggregate ID of the underlying envelope."""
        return self.envelope.id

    @property
    def sequence(self) -> Sequence:
        """The stream sequence of the underlying envelope."""
        return self.envelope.sequence

    @property
    def timestamp(self) -> datetime:
        """The publication time of the underlying envelope."""
        return self.envelope.timestamp


class Project(ABC):
    """A model that receives events of ``event_group`` from every aggregate.

    ``event_group`` is an event type or a group made with ``event_group()``.
    An exception raised from ``project`` stops further processing.
    """

    event_group: ClassVar[Any]

    @abstractmethod
    async def project(self, context: Context) -> None:
        """Handle one received event."""