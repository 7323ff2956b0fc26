"""Version information stored with serialized events, for upcasting."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from esrc.errors import EsrcError, FormatError

_VERSION_ATTR = "__event_version__"
_PREVIOUS_ATTR = "__event_previous__"
_UPCAST = "from_previous"
_FROM_DATA = "from_data"


def versioned(cls: type | None = None, *, version: int = 1, previous: type | None = None) -> Any:
    """Give a class a serialization version, optionally upcasting an older type.

    When ``previous`` is given, data stored under another version is read as
    that type and converted with the class's ``from_previous`` classmethod.
    """

    def decorate(target: type) -> type:
        if not isinstance(target, type):
            raise TypeError("versioned() decorates classes only")
        if not isinstance(version, int) or isinstance(version, bool) or version < 1:
            raise ValueError(f"version must be a positive integer, not {version!r}")
        if previous is not None:
            version_of(previous)
            if not callable(getattr(target, _UPCAST, None)):
                raise TypeError(f"{target.__qualname__} needs a {_UPCAST} classmethod")
        setattr(target, _VERSION_ATTR, version)
        setattr(target, _PREVIOUS_ATTR, previous)
        return target

    if cls is None:
        return decorate
    return decorate(cls)


def version_of(event_type: Any) -> int:
    """The version a class (or instance) is serialized with."""
    cls = event_type if isinstance(event_type, type) else type(event_type)
    version = getattr(cls, _VERSION_ATTR, None)
    if not isinstance(version, int):
        raise TypeError(f"{cls.__qualname__} has no serialization version")
    return version


def _construct(event_type: type, data: Any) -> Any:
    hook = getattr(event_type, _FROM_DATA, None)
    try:
        if hook is not None:
            return hook(data)
        if data is None:
            return event_type()
        if isinstance(data, Mapping):
            return event_type(**data)
        return event_type(data)
    except EsrcError:
        raise
    except (TypeError, ValueError, KeyError) as exc:
        raise FormatError(exc) from exc


def deserialize_version(event_type: type, data: Any, version: int) -> Any:
    """Build ``event_type`` from decoded data stored under ``version``.

    Matching versions are read directly; otherwise the previous version is
    tried and upcast. Unknown versions raise FormatError.
    """
    if version == version_of(event_type):
        return _construct(event_type, data)
    previous = getattr(event_type, _PREVIOUS_ATTR, None)
    if previous is None:
        raise FormatError(f"unknown version {version}")
    older = deserialize_version(previous, data, version)
    return getattr(event_type, _UPCAST)(older)