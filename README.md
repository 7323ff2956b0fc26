# esrc

Event sourcing primitives for Python, with no third-party dependencies.

## What is in the package

- `esrc.event`
  - `event` is a class decorator that gives an event type its stream name. By default
    the name is the class name with an `Event` suffix removed (a class named exactly
    `Event` keeps its name). `event(name="...")` sets the name, and the suffix is
    removed from that too unless `keep_suffix=True`. Subclasses share the name.
  - `event_name` returns the name of an event class or instance.
  - `event_group(*types)` bundles event types into a group. `group_names(group)`
    yields the names in a group; a single event type counts as a group of one.
  - `Sequence` is an event's position in its stream. It is an ordered, frozen value
    between 0 and 2**64 − 1. `Sequence.new()` is 0.
- `esrc.version`
  - `versioned(version=1, previous=None)` is a class decorator that records the
    version an event type is serialized with.
  - `version_of` returns that version.
  - `deserialize_version(event_type, data, version)` builds an event from decoded
    data. When `version` matches, the class is built from the data. It uses the
    class's `from_data` classmethod if it has one. Otherwise a mapping is passed as
    keyword arguments, `None` means no arguments, and any other value is passed as a
    single argument. When `version` does not match, the `previous` type is read and
    converted with the class's `from_previous` classmethod. An unknown version raises
    `FormatError`.
- `esrc.envelope`
  - `Envelope` is the abstract interface for a stored event. It has the properties
    `id`, `sequence`, `timestamp` and `name`, and the method `deserialize(event_type)`.
  - `try_from_envelope(target, envelope)` decodes an envelope into a single event
    type, or into the member of a group whose name matches the envelope's name. It
    raises `InvalidError` when no member matches. A target with its own
    `try_from_envelope` callable is handed the envelope instead.
- `esrc.aggregate`
  - `Aggregate` is the abstract base for aggregates. A subclass sets `event_type`,
    can be built with no arguments, and implements `process(command)` and
    `apply(event)`.
  - `Root` wraps an aggregate with its stream `id` and `last_sequence`.
    `Root.new(aggregate_type, id)` starts from an empty stream.
    `root.try_apply(envelope)` returns the advanced root. It raises `InvalidError`
    for an envelope from another stream or one that is not newer than the last
    applied event. Attributes the root does not have are looked up on the aggregate.
- `esrc.project`
  - `Context` holds a decoded `event` together with its `envelope`, and exposes `id`,
    `sequence` and `timestamp`. `Context.try_with_envelope(envelope, group)` builds
    one.
  - `Project` is the abstract base for projections. A subclass sets `event_group` and
    implements `async project(context)`.
- `esrc.store`
  - The abstract store interfaces are `Publish`, `Replay`, `ReplayOne`, `Subscribe`
    and `Truncate`.
  - The async helpers built on them are `write`, `try_write`, `read`, `read_after`,
    `rebuild`, `rebuild_after` and `observe`.
  - An exception raised while processing a command, or by a projector, is re-raised
    as `ExternalError`.
  - The root returned by `write`/`try_write` keeps the ID and last sequence of the
    root it was given. Use `read_after` to advance the sequence from the store.
- `esrc.wire`
  - `Subject` is a stream address, rendered by `to_string(prefix)`:
    - `<prefix>.>` for every stream;
    - `<prefix>.<name>.*` for every stream of one event;
    - `<prefix>.<name>.<uuid>` for a single aggregate.

    `Subject.parse(expected_prefix, subject)` reads one back.
  - `Message` holds a subject, a JSON payload, headers, a stream sequence and a
    publication time.
  - `MessageEnvelope.from_message(prefix, message)` turns a message into an
    `Envelope`. The message needs an aggregate subject and an `Esrc-Version` header
    (`VERSION_KEY`). The timestamp is truncated to whole seconds, in UTC.
- `esrc.errors`
  - Every error is an `EsrcError`. The subclasses are `InternalError`,
    `ExternalError`, `FormatError`, `InvalidError` and `ConflictError`.
    `ConflictError` means an optimistic concurrency failure.

## Example: the café tab

`esrc.cafe.tab` defines the `Tab` aggregate.

- Commands: `OpenTab`, `PlaceOrder`, `MarkServed` and `CloseTab`.
- Events: `TabOpened`, `TabOrdered`, `TabServed` and `TabClosed`. They share the
  stream name `Tab` and are stored as `{"Opened": {...}}` by `to_data()`.
- A rejected command raises `TabError`, whose `reason` is one of `NOT_OPEN`,
  `ALREADY_SERVED`, `NOT_FINISHED` or `UNPAID`.

`esrc.cafe.table.ActiveTables` is a projection. It records opened tabs and forgets
closed ones, and `await is_active(table_number)` answers whether a table has an open
tab.

```python
from esrc.cafe.tab import CloseTab, Item, MarkServed, OpenTab, PlaceOrder, Tab

tab = Tab()
for command in (
    OpenTab(table_number=42, waiter="Derek"),
    PlaceOrder(items=[Item(1, "drink", 5.50)]),
    MarkServed(menu_numbers=[1]),
):
    tab = tab.apply(tab.process(command))

closed = tab.process(CloseTab(amount_paid=6.00))
# TabClosed(amount_paid=6.0, order_value=5.5, tip_value=0.5)
```

Reading a stored message into an aggregate root:

```python
import json
import uuid
from datetime import datetime, timezone

from esrc.aggregate import Root
from esrc.cafe.tab import Tab, TabOpened
from esrc.wire import Message, MessageEnvelope

tab_id = uuid.uuid4()
message = Message(
    subject=f"cafe.Tab.{tab_id}",
    payload=json.dumps(TabOpened(42, "Derek").to_data()),
    headers={"Esrc-Version": "1"},
    sequence=1,
    published=datetime.now(timezone.utc),
)
envelope = MessageEnvelope.from_message("cafe", message)
root = Root.new(Tab, tab_id).try_apply(envelope)
assert root.open and int(root.last_sequence) == 1
```

Writing through a store that implements `Publish`:

```python
from esrc.errors import ConflictError
from esrc.event import Sequence, event_name
from esrc.store import Publish, try_write


class MemoryStore(Publish):
    def __init__(self):
        self.streams = {}

    async def publish(self, id, last_sequence, event):
        stream = self.streams.setdefault((event_name(event), id), [])
        if int(last_sequence) != len(stream):
            raise ConflictError()
        stream.append(event)
        return Sequence(len(stream))


async def open_tab(store, tab_id):
    root = Root.new(Tab, tab_id)
    return await try_write(store, root, OpenTab(table_number=42, waiter="Derek"))
```

## What the package does not do

The package ships no working event store. `esrc.store` only defines the interfaces
and the helpers that run on top of them, and `esrc.wire` only parses and renders
subjects and messages. Connecting to a message broker, persisting events and
delivering subscriptions are left to an implementation of `Publish`, `Replay`,
`ReplayOne`, `Subscribe` and `Truncate` that you supply. There is no command-line
program.

## Tests

```
pip install -e .[test]
pytest
```