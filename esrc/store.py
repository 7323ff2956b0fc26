"""Event store interfaces and the operations built on top of them."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from typing import Any
from uuid import UUID

from esrc.aggregate import Root
from esrc.envelope import Envelope
from esrc.errors import ExternalError
from esrc.event import Sequence
from esrc.project import Context, Project


class Publish(ABC):
    """A store that events can be published to."""

    @abstractmethod
    async def publish(self, id: UUID, last_sequence: Sequence, event: Any) -> Sequence:
        """Publish ``event`` to the stream of its event name and ``id``.

        ``last_sequence`` must match the sequence of the last event in that
        stream, otherwise ConflictError is raised. Returns the sequence of the
        published event.
        """


class Replay(ABC):
    """A store whose existing events can be replayed across several streams."""

    @abstractmethod
    def replay(self, group: Any, first_sequence: Sequence) -> AsyncIterator[Envelope]:
        """Yield, in relative order, the stored events of every stream in ``group``.

        Only events after ``first_sequence`` are included; events published
        after the call are not, so the iteration is finite.
        """


class ReplayOne(ABC):
    """A store whose existing events can be replayed for a single stream."""

    @abstractmethod
    def replay_one(
        self, event_type: type, id: UUID, first_sequence: Sequence
    ) -> AsyncIterator[Envelope]:
        """Yield the stored events of the stream named by ``event_type`` and ``id``.

        Only events after ``first_sequence`` are included; the iteration is finite.
        """


class Subscribe(ABC):
    """A store that delivers newly published events."""

    @abstractmethod
    def subscribe(self, group: Any) -> AsyncIterator[Envelope]:
        """Yield events published to any stream of ``group`` after this call.

        The iteration waits for new events and does not end by itself.
        """


class Truncate(ABC):
    """A store that can drop old events from a stream."""

    @abstractmethod
    async def truncate(self, event_type: type, id: UUID, last_sequence: Sequence) -> None:
        """Drop events older than ``last_sequence`` from the given stream."""


async def _close(stream: AsyncIterator[Envelope]) -> None:
    close = getattr(stream, "aclose", None)
    if close is not None:
        await close()


async def _project_all(stream: AsyncIterator[Envelope], projector: Project) -> None:
    group = projector.event_group
    try:
        async for envelope in stream:
            context = Context.try_with_envelope(envelope, group)
            try:
                await projector.project(context)
            except Exception as exc:
                raise ExternalError(exc) from exc
    finally:
        await _close(stream)


async def write(store: Publish, root: Root, event: Any) -> Root:
    """Publish ``event`` to the root's stream and return the root with it applied.

    The returned root keeps the ID and last sequence of the given root.
    """
    aggregate = root.aggregate.apply(event)
    await store.publish(root.id, root.last_sequence, event)
    return Root(aggregate, root.id, root.last_sequence)


async def try_write(store: Publish, root: Root, command: Any) -> Root:
    """Process ``command`` on the root's aggregate, then publish and apply the event.

    An exception raised while processing the command is wrapped in ExternalError.
    """
    try:
        event = root.aggregate.process(command)
    except Exception as exc:
        raise ExternalError(exc) from exc
    return await write(store, root, event)


async def rebuild(store: Replay, projector: Project) -> None:
    """Replay every stored event of the projector's group onto the projector."""
    await rebuild_after(store, projector, Sequence.new())


async def rebuild_after(store: Replay, projector: Project, first_sequence: Sequence) -> None:
    """Replay the projector's events after ``first_sequence`` onto the projector.

    A failure in the projector stops the replay and is raised as ExternalError.
    """
    await _project_all(store.replay(projector.event_group, first_sequence), projector)


async def read(store: ReplayOne, aggregate_type: type, id: UUID) -> Root:
    """Materialize an aggregate from every event in its stream."""
    return await read_after(store, Root.new(aggregate_type, id))


async def read_after(store: ReplayOne, root: Root) -> Root:
    """Apply to ``root`` the events of its stream after its last sequence."""
    event_type = type(root.aggregate).event_type
    stream = store.replay_one(event_type, root.id, root.last_sequence)
    try:
        async for envelope in stream:
            root = root.try_apply(envelope)
    finally:
        await _close(stream)
    return root


async def observe(store: Subscribe, projector: Project) -> None:
    """Project newly published events of the projector's group as they arrive.

    A failure in the projector stops the subscription and is raised as
    ExternalError.
    """
    await _project_all(store.subscribe(projector.event_group), projector)