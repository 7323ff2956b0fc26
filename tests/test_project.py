from dataclasses import dataclass
from datetime import datetime, timezone
from uuid import UUID

import pytest

from esrc.envelope import Envelope
from esrc.errors import InvalidError
from esrc.event import Sequence, event, event_group, event_name
from esrc.project import Context, Project
from esrc.version import deserialize_version, versioned

STREAM_ID = UUID(int=11)
WHEN = datetime(2024, 5, 6, tzinfo=timezone.utc)


@event
@versioned
@dataclass(frozen=True)
class AddedEvent:
    amount: int


@event
@versioned
@dataclass(frozen=True)
class ResetEvent:
    pass


class StubEnvelope(Envelope):
    def __init__(self, name, data, sequence=Sequence(1)):
        self._name = name
        self._data = data
        self._sequence = sequence

    @property
    def id(self):
        return STREAM_ID

    @property
    def sequence(self):
        return self._sequence

    @property
    def timestamp(self):
        return WHEN

    @property
    def name(self):
        return self._name

    def deserialize(self, event_type):
        if self._name != event_name(event_type):
            raise InvalidError()
        return deserialize_version(event_type, self._data, 1)


class Counter(Project):
    event_group = event_group(AddedEvent, ResetEvent)

    def __init__(self):
        self.total = 0
        self.seen = []

    async def project(self, context):
        if isinstance(context.event, AddedEvent):
            self.total += context.event.amount
        else:
            self.total = 0
        self.seen.append(context.sequence)


class Failing(Project):
    event_group = AddedEvent

    async def project(self, context):
        raise RuntimeError(f"projection failed for {context.event.amount}")


def added(amount, sequence=1):
    return StubEnvelope(event_name(AddedEvent), {"amount": amount}, Sequence(sequence))


def test_context_exposes_envelope_metadata():
    envelope = added(5, sequence=9)
    context = Context.try_with_envelope(envelope, AddedEvent)
    assert context.event == AddedEvent(amount=5)
    assert context.id == STREAM_ID
    assert context.sequence == Sequence(9)
    assert context.timestamp == WHEN


def test_context_picks_group_member():
    envelope = StubEnvelope(event_name(ResetEvent), None)
    context = Context.try_with_envelope(envelope, Counter.event_group)
    assert context.event == ResetEvent()


def test_context_rejects_unknown_event():
    envelope = StubEnvelope("Unknown", None)
    with pytest.raises(InvalidError):
        Context.try_with_envelope(envelope, Counter.event_group)


@pytest.mark.asyncio
async def test_projector_accumulates_events():
    counter = Counter()
    for envelope in (added(2, 1), added(3, 2)):
        await counter.project(Context.try_with_envelope(envelope, counter.event_group))
    assert counter.total == 5
    assert counter.seen == [Sequence(1), Sequence(2)]

    reset = StubEnvelope(event_name(ResetEvent), None, Sequence(3))
    await counter.project(Context.try_with_envelope(reset, counter.event_group))
    assert counter.total == 0


@pytest.mark.asyncio
async def test_projector_error_propagates():
    context = Context.try_with_envelope(added(7), AddedEvent)
    assert context.event == AddedEvent(amount=7)
    with pytest.raises(RuntimeError, match="projection failed for 7"):
        await Failing().project(context)


def test_project_is_abstract():
    with pytest.raises(TypeError):
        Project()