import json
import uuid
from datetime import datetime, timezone

import pytest

from esrc.cafe.tab import Item, TabClosed, TabOpened, TabOrdered
from esrc.cafe.table import ActiveTables
from esrc.errors import InvalidError
from esrc.project import Context
from esrc.store import Replay, rebuild, rebuild_after
from esrc.event import Sequence
from esrc.wire import Message, MessageEnvelope

TABLE = 42
WAITER = "Derek"
PUBLISHED = datetime(2024, 1, 1, tzinfo=timezone.utc)


def envelope_for(event, aggregate_id, sequence=1, name="Tab"):
    message = Message(
        subject=f"cafe.{name}.{aggregate_id}",
        payload=json.dumps(event.to_data()),
        headers={"Esrc-Version": "1"},
        sequence=sequence,
        published=PUBLISHED,
    )
    return MessageEnvelope.from_message("cafe", message)


def context_for(event, aggregate_id, sequence=1):
    return Context.try_with_envelope(
        envelope_for(event, aggregate_id, sequence), ActiveTables.event_group
    )


class ListStore(Replay):
    def __init__(self, envelopes):
        self._envelopes = envelopes

    async def replay(self, group, first_sequence):
        for envelope in self._envelopes:
            if envelope.sequence > first_sequence:
                yield envelope


@pytest.mark.asyncio
async def test_opened_tab_marks_table_active():
    tables = ActiveTables()
    await tables.project(context_for(TabOpened(TABLE, WAITER), uuid.uuid4()))
    assert await tables.is_active(TABLE) is True
    assert await tables.is_active(TABLE + 1) is False


@pytest.mark.asyncio
async def test_closed_tab_marks_table_inactive():
    tables = ActiveTables()
    tab_id = uuid.uuid4()
    await tables.project(context_for(TabOpened(TABLE, WAITER), tab_id, 1))
    await tables.project(context_for(TabClosed(6.0, 5.5, 0.5), tab_id, 2))
    assert await tables.is_active(TABLE) is False


@pytest.mark.asyncio
async def test_closing_one_tab_keeps_others():
    tables = ActiveTables()
    first, second = uuid.uuid4(), uuid.uuid4()
    await tables.project(context_for(TabOpened(TABLE, WAITER), first))
    await tables.project(context_for(TabOpened(TABLE + 1, WAITER), second))
    await tables.project(context_for(TabClosed(6.0, 5.5, 0.5), first, 2))
    assert await tables.is_active(TABLE) is False
    assert await tables.is_active(TABLE + 1) is True


@pytest.mark.asyncio
async def test_other_events_leave_tables_unchanged():
    tables = ActiveTables()
    tab_id = uuid.uuid4()
    await tables.project(context_for(TabOrdered([Item(1, "drink", 5.5)]), tab_id))
    assert await tables.is_active(1) is False
    await tables.project(context_for(TabClosed(6.0, 5.5, 0.5), tab_id, 2))
    assert await tables.is_active(TABLE) is False


@pytest.mark.asyncio
async def test_rebuild_from_store():
    first, second = uuid.uuid4(), uuid.uuid4()
    store = ListStore(
        [
            envelope_for(TabOpened(TABLE, WAITER), first, 1),
            envelope_for(TabOpened(TABLE + 1, WAITER), second, 2),
            envelope_for(TabClosed(6.0, 5.5, 0.5), first, 3),
        ]
    )
    tables = ActiveTables()
    await rebuild(store, tables)
    assert await tables.is_active(TABLE) is False
    assert await tables.is_active(TABLE + 1) is True


@pytest.mark.asyncio
async def test_rebuild_after_skips_earlier_events():
    tab_id = uuid.uuid4()
    store = ListStore(
        [
            envelope_for(TabOpened(TABLE, WAITER), tab_id, 1),
            envelope_for(TabClosed(6.0, 5.5, 0.5), tab_id, 2),
        ]
    )
    tables = ActiveTables()
    await tables.project(context_for(TabOpened(TABLE, WAITER), tab_id))
    await rebuild_after(store, tables, Sequence(1))
    assert await tables.is_active(TABLE) is False


def test_envelope_from_another_stream_is_invalid():
    envelope = envelope_for(TabOpened(TABLE, WAITER), uuid.uuid4(), name="Other")
    with pytest.raises(InvalidError):
        Context.try_with_envelope(envelope, ActiveTables.event_group)