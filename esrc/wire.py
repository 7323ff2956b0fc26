"""Event envelopes carried as subject-addressed messages with JSON payloads."""

from __future__ import annotations

import json
import math
import re
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from esrc.envelope import Envelope
from esrc.errors import FormatError, InternalError, InvalidError
from esrc.event import Sequence, event_name
from esrc.version import deserialize_version

VERSION_KEY = "Esrc-Version"
_VERSION_PATTERN = re.compile(r"\+?[0-9]+")


@dataclass(frozen=True)
class Subject:
    """A stream address: every stream, all streams of an event, or one aggregate.

    With neither field set it is the wildcard for every stream under a prefix;
    with ``name`` alone it covers every aggregate of that event; with both it
    names one aggregate's stream.
    """

    name: str | None = None
    id: UUID | None = None

    def __post_init__(self) -> None:
        if self.id is not None and self.name is None:
            raise ValueError("an aggregate subject needs an event name")

    @classmethod
    def parse(cls, expected_prefix: str, subject: str) -> Subject:
        """Parse ``<prefix>[.<name>[.<uuid>]]``; parts beyond the ID are ignored.

        Raises InvalidError for another prefix and FormatError for a bad UUID.
        """
        prefix, *rest = subject.split(".")
        if prefix != expected_prefix:
            raise InvalidError()
        if len(rest) >= 2:
            name, raw_id = rest[0], rest[1]
            try:
                parsed = UUID(raw_id)
            except ValueError as exc:
                raise FormatError(exc) from exc
            return cls(name, parsed)
        if rest:
            return cls(rest[0])
        return cls()

    def to_string(self, prefix: str) -> str:
        """Render the subject under ``prefix``, using wildcards where fields are unset."""
        if self.name is None:
            return f"{prefix}.>"
        if self.id is None:
            return f"{prefix}.{self.name}.*"
        return f"{prefix}.{self.name}.{self.id}"


@dataclass(frozen=True)
class Message:
    """A stored message: its subject, JSON payload, headers and stream position."""

    subject: str
    payload: bytes | str = b""
    headers: Mapping[str, str] | None = None
    sequence: int | None = None
    published: datetime | None = None


def _header(message: Message, key: str) -> str | None:
    if message.headers is None:
        return None
    return message.headers.get(key)


class MessageEnvelope(Envelope):
    """An envelope read from a message on an aggregate subject."""

    def __init__(
        self,
        id: UUID,
        sequence: Sequence,
        timestamp: datetime,
        name: str,
        version: int,
        payload: bytes | str,
    ) -> None:
        self._id = id
        self._sequence = sequence
        self._timestamp = timestamp
        self._name = name
        self._version = version
        self._payload = payload

    @classmethod
    def from_message(cls, expected_prefix: str, message: Message) -> MessageEnvelope:
        """Build an envelope from a message on ``<prefix>.<name>.<uuid>``.

        The message needs an ``Esrc-Version`` header and stream information;
        the timestamp is kept to whole seconds.
        """
        subject = Subject.parse(expected_prefix, message.subject)
        if subject.id is None or subject.name is None:
            raise InvalidError()

        raw_version = _header(message, VERSION_KEY)
        if raw_version is None:
            raise InvalidError()
        if not _VERSION_PATTERN.fullmatch(raw_version):
            raise FormatError(f"invalid version number {raw_version!r}")
        version = int(raw_version)

        if message.sequence is None or message.published is None:
            raise InternalError("message carries no stream information")
        seconds = math.floor(message.published.timestamp())

        return cls(
            subject.id,
            Sequence(message.sequence),
            datetime.fromtimestamp(seconds, tz=timezone.utc),
            subject.name,
            version,
            message.payload,
        )

    @property
    def id(self) -> UUID:
        return self._id

    @property
    def sequence(self) -> Sequence:
        return self._sequence

    @property
    def timestamp(self) -> datetime:
        return self._timestamp

    @property
    def name(self) -> str:
        return self._name

    @property
    def version(self) -> int:
        """The serialization version recorded with the event."""
        return self._version

    def deserialize(self, event_type: type) -> Any:
        """Decode the JSON payload as ``event_type`` at the recorded version."""
        if self._name != event_name(event_type):
            raise InvalidError()
        try:
            data = json.loads(self._payload)
        except ValueError as exc:
            raise FormatError(exc) from exc
        return deserialize_version(event_type, data, self._version)