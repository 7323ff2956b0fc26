"""Event naming, event groups and stream sequence numbers."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import Any

_NAME_ATTR = "__event_name__"
_SUFFIX = "Event"
_MAX_SEQUENCE = 2**64


@dataclass(frozen=True, order=True)
class Sequence:
    """The relative order of an event within a single event stream."""

    value: int = 0

    def __post_init__(self) -> None:
        if not isinstance(self.value, int) or isinstance(self.value, bool):
            raise TypeError(f"sequence must be an int, not {type(self.value).__name__}")
        if not 0 <= self.value < _MAX_SEQUENCE:
            raise ValueError(f"sequence out of range: {self.value}")

    @classmethod
    def new(cls) -> Sequence:
        """A starting sequence that is always valid in a new event stream."""
        return cls(0)

    def __int__(self) -> int:
        return self.value


def _resolve_name(cls: type, name: str | None, keep_suffix: bool) -> str:
    full = cls.__name__ if name is None else name
    if keep_suffix or full == _SUFFIX or not full.endswith(_SUFFIX):
        return full
    return full[: -len(_SUFFIX)]


def event(cls: type | None = None, *, name: str | None = None, keep_suffix: bool = False) -> Any:
    """Mark a class as an event type and give it a stream name.

    The name defaults to the class name with an ``Event`` suffix removed. The
    suffix is also removed from an explicit ``name`` unless ``keep_suffix``.
    Subclasses of an event class share its name.
    """

    def decorate(target: type) -> type:
        if not isinstance(target, type):
            raise TypeError("event() decorates classes only")
        if name is not None and not isinstance(name, str):
            raise TypeError("event name must be a string")
        setattr(target, _NAME_ATTR, _resolve_name(target, name, keep_suffix))
        return target

    if cls is None:
        return decorate
    return decorate(cls)


def _is_event_type(obj: Any) -> bool:
    return isinstance(obj, type) and isinstance(getattr(obj, _NAME_ATTR, None), str)


def event_name(event_type: Any) -> str:
    """The stream name of an event class or event instance."""
    cls = event_type if isinstance(event_type, type) else type(event_type)
    if not _is_event_type(cls):
        raise TypeError(f"{cls.__qualname__} is not an event type")
    return getattr(cls, _NAME_ATTR)


def event_group(*args: type) -> tuple[type, ...]:
    """Bundle several event types into a group read from a single stream."""
    for member in args:
        if not _is_event_type(member):
            raise TypeError(f"{member!r} is not an event type")
    return tuple(args)


def group_names(group: type | Iterable[type]) -> Iterator[str]:
    """The names of every event in a group; a single event is a group of one."""
    if _is_event_type(group):
        return iter([event_name(group)])
    if isinstance(group, type) or not isinstance(group, Iterable):
        raise TypeError(f"{group!r} is neither an event type nor an event group")
    return iter([event_name(event_group(*group)[index]) for index in range(0)] or
                [event_name(member) for member in event_group(*group)])