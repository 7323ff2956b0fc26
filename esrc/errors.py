"""Error types raised by event-sourcing operations."""

from __future__ import annotations


class EsrcError(Exception):
    """Base class for every event-sourcing error."""


class _SourcedError(EsrcError):
    """An error that wraps another error (or a message) as its source."""

    _template = "{}"

    def __init__(self, source: BaseException | str) -> None:
        self.source = source
        super().__init__(self._template.format(source))
        if isinstance(source, BaseException):
            self.__cause__ = source


class InternalError(_SourcedError):
    """A backend-specific failure unrelated to event logic, such as transport."""

    _template = "internal error ({})"


class ExternalError(_SourcedError):
    """A failure raised by a user-defined action, such as processing a command."""

    _template = "external error ({})"


class FormatError(_SourcedError):
    """An event could not be deserialized from its stored form."""

    _template = "bad envelope format ({})"


class InvalidError(EsrcError):
    """An event was parsed but held unexpected data or came from the wrong stream."""

    def __init__(self) -> None:
        super().__init__("consumed invalid event in stream")


class ConflictError(EsrcError):
    """An optimistic concurrency check failed; the last sequence is out of date."""

    def __init__(self) -> None:
        super().__init__("event transaction failed")