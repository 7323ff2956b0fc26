"""A café tab aggregate: opening, ordering, serving and closing a tab."""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, replace
from typing import Any, ClassVar

from esrc.aggregate import Aggregate
from esrc.event import event
from esrc.version import versioned


class TabError(Exception):
    """A command was rejected by a tab; ``reason`` says why."""

    NOT_OPEN = "the tab is not open"
    ALREADY_SERVED = "requested items already served"
    NOT_FINISHED = "still waiting on ordered items"
    UNPAID = "the tab has not been fully paid"

    def __init__(self, reason: str) -> None:
        if reason not in _REASONS:
            raise ValueError(f"unknown tab error reason {reason!r}")
        self.reason = reason
        super().__init__(reason)


_REASONS = frozenset(
    {TabError.NOT_OPEN, TabError.ALREADY_SERVED, TabError.NOT_FINISHED, TabError.UNPAID}
)


def _uint(value: Any) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"expected an unsigned integer, not {value!r}")
    if value < 0:
        raise ValueError(f"expected an unsigned integer, not {value!r}")
    return value


def _float(value: Any) -> float:
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        raise TypeError(f"expected a number, not {value!r}")
    return float(value)


def _str(value: Any) -> str:
    if not isinstance(value, str):
        raise TypeError(f"expected a string, not {value!r}")
    return value


def _fields(data: Any) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise TypeError(f"expected an object, not {data!r}")
    return data


def _list(data: Any) -> list[Any]:
    if not isinstance(data, list):
        raise TypeError(f"expected a list, not {data!r}")
    return data


@dataclass(frozen=True)
class Item:
    """A menu item on a tab."""

    menu_number: int
    description: str
    price: float

    @classmethod
    def _from_data(cls, data: Any) -> Item:
        fields = _fields(data)
        return cls(
            _uint(fields["menu_number"]),
            _str(fields["description"]),
            _float(fields["price"]),
        )

    def _to_data(self) -> dict[str, Any]:
        return {
            "menu_number": self.menu_number,
            "description": self.description,
            "price": self.price,
        }


@dataclass(frozen=True)
class OpenTab:
    """Open a tab for a table, served by a waiter."""

    table_number: int
    waiter: str


@dataclass(frozen=True)
class PlaceOrder:
    """Order items on an open tab."""

    items: tuple[Item, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "items", tuple(self.items))


@dataclass(frozen=True)
class MarkServed:
    """Mark ordered items, by menu number, as served."""

    menu_numbers: tuple[int, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "menu_numbers", tuple(self.menu_numbers))


@dataclass(frozen=True)
class CloseTab:
    """Close a tab, paying the given amount."""

    amount_paid: float


@versioned
@event(name="TabEvent")
class _TabEvent:
    """Common base of every event a tab emits; stored as ``{tag: fields}``."""

    _tag: ClassVar[str] = ""

    @classmethod
    def from_data(cls, data: Any) -> _TabEvent:
        """Build an event from its decoded, externally tagged form."""
        tagged = _fields(data)
        if len(tagged) != 1:
            raise ValueError("expected exactly one tab event tag")
        ((tag, fields),) = tagged.items()
        variant = _VARIANTS.get(tag)
        if variant is None or not issubclass(variant, cls):
            raise ValueError(f"unknown tab event {tag!r}")
        return variant._from_fields(_fields(fields))

    @classmethod
    def _from_fields(cls, fields: Mapping[str, Any]) -> _TabEvent:
        raise NotImplementedError

    def _field_data(self) -> dict[str, Any]:
        raise NotImplementedError

    def to_data(self) -> dict[str, Any]:
        """The externally tagged form of this event, ready for JSON."""
        return {self._tag: self._field_data()}


@dataclass(frozen=True)
class TabOpened(_TabEvent):
    """A tab was opened for a table."""

    _tag: ClassVar[str] = "Opened"

    table_number: int
    waiter: str

    @classmethod
    def _from_fields(cls, fields: Mapping[str, Any]) -> TabOpened:
        return cls(_uint(fields["table_number"]), _str(fields["waiter"]))

    def _field_data(self) -> dict[str, Any]:
        return {"table_number": self.table_number, "waiter": self.waiter}


@dataclass(frozen=True)
class TabOrdered(_TabEvent):
    """Items were ordered on a tab."""

    _tag: ClassVar[str] = "Ordered"

    items: tuple[Item, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "items", tuple(self.items))

    @classmethod
    def _from_fields(cls, fields: Mapping[str, Any]) -> TabOrdered:
        return cls(tuple(Item._from_data(item) for item in _list(fields["items"])))

    def _field_data(self) -> dict[str, Any]:
        return {"items": [item._to_data() for item in self.items]}


@dataclass(frozen=True)
class TabServed(_TabEvent):
    """Ordered items were served."""

    _tag: ClassVar[str] = "Served"

    menu_numbers: tuple[int, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "menu_numbers", tuple(self.menu_numbers))

    @classmethod
    def _from_fields(cls, fields: Mapping[str, Any]) -> TabServed:
        return cls(tuple(_uint(number) for number in _list(fields["menu_numbers"])))

    def _field_data(self) -> dict[str, Any]:
        return {"menu_numbers": list(self.menu_numbers)}


@dataclass(frozen=True)
class TabClosed(_TabEvent):
    """A tab was paid and closed."""

    _tag: ClassVar[str] = "Closed"

    amount_paid: float
    order_value: float
    tip_value: float

    @classmethod
    def _from_fields(cls, fields: Mapping[str, Any]) -> TabClosed:
        return cls(
            _float(fields["amount_paid"]),
            _float(fields["order_value"]),
            _float(fields["tip_value"]),
        )

    def _field_data(self) -> dict[str, Any]:
        return {
            "amount_paid": self.amount_paid,
            "order_value": self.order_value,
            "tip_value": self.tip_value,
        }


_VARIANTS: dict[str, type[_TabEvent]] = {
    variant._tag: variant for variant in (TabOpened, TabOrdered, TabServed, TabClosed)
}


@dataclass(frozen=True)
class Tab(Aggregate):
    """The state of one tab, built from its events."""

    event_type: ClassVar[type] = _TabEvent

    open: bool = False
    outstanding_items: tuple[Item, ...] = ()
    served_value: float = 0.0

    def _are_outstanding(self, menu_numbers: Iterable[int]) -> bool:
        available = Counter(item.menu_number for item in self.outstanding_items)
        wanted = Counter(menu_numbers)
        return all(available[number] >= count for number, count in wanted.items())

    def _remove_outstanding(self, menu_numbers: Iterable[int]) -> Tab:
        remaining = list(self.outstanding_items)
        served = self.served_value
        for number in menu_numbers:
            index = next(
                (pos for pos, item in enumerate(remaining) if item.menu_number == number),
                None,
            )
            if index is None:
                raise ValueError(f"menu number {number} is not outstanding")
            served += remaining.pop(index).price
        return replace(self, outstanding_items=tuple(remaining), served_value=served)

    def process(self, command: Any) -> _TabEvent:
        """Turn a command into the event it produces, or raise TabError."""
        match command:
            case OpenTab(table_number=table_number, waiter=waiter):
                return TabOpened(table_number, waiter)
            case PlaceOrder(items=items):
                if not self.open:
                    raise TabError(TabError.NOT_OPEN)
                return TabOrdered(items)
            case MarkServed(menu_numbers=menu_numbers):
                if not self._are_outstanding(menu_numbers):
                    raise TabError(TabError.ALREADY_SERVED)
                return TabServed(menu_numbers)
            case CloseTab(amount_paid=amount_paid):
                if not self.open:
                    raise TabError(TabError.NOT_OPEN)
                if self.outstanding_items:
                    raise TabError(TabError.NOT_FINISHED)
                if amount_paid < self.served_value:
                    raise TabError(TabError.UNPAID)
                return TabClosed(
                    amount_paid,
                    self.served_value,
                    amount_paid - self.served_value,
                )
            case _:
                raise TypeError(f"unknown tab command {command!r}")

    def apply(self, event: Any) -> Tab:
        """Return the tab after the given event."""
        match event:
            case TabOpened():
                return replace(self, open=True)
            case TabOrdered(items=items):
                return replace(self, outstanding_items=self.outstanding_items + items)
            case TabServed(menu_numbers=menu_numbers):
                return self._remove_outstanding(menu_numbers)
            case TabClosed():
                return replace(self, open=False)
            case _:
                raise TypeError(f"unknown tab event {event!r}")