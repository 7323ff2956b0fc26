from dataclasses import dataclass

import pytest

from esrc.errors import FormatError
from esrc.version import deserialize_version, version_of, versioned


def test_deserialize_version():
    @versioned(version=1)
    @dataclass
    class TestEvent:
        @classmethod
        def from_data(cls, data):
            return cls()

    assert deserialize_version(TestEvent, None, 1) == TestEvent()
    with pytest.raises(FormatError):
        deserialize_version(TestEvent, None, 2)


def test_deserialize_version_two():
    @versioned(version=2)
    @dataclass
    class TestEvent:
        @classmethod
        def from_data(cls, data):
            return cls()

    assert deserialize_version(TestEvent, None, 2) == TestEvent()


def test_deserialize_version_previous():
    @versioned(version=1)
    @dataclass
    class TestEvent1:
        value: int

        @classmethod
        def from_data(cls, data):
            return cls(11)

    @versioned(version=2, previous=TestEvent1)
    @dataclass
    class TestEvent2:
        value: int

        @classmethod
        def from_data(cls, data):
            return cls(22)

        @classmethod
        def from_previous(cls, old):
            return cls(44)

    assert deserialize_version(TestEvent2, None, 1) == TestEvent2(44)
    assert deserialize_version(TestEvent2, None, 2) == TestEvent2(22)


def test_previous_chain_still_rejects_unknown_version():
    @versioned
    @dataclass
    class Old:
        value: int

    @versioned(version=2, previous=Old)
    @dataclass
    class New:
        value: int

        @classmethod
        def from_previous(cls, old):
            return cls(old.value)

    with pytest.raises(FormatError):
        deserialize_version(New, {"value": 1}, 3)


def test_serialize_version():
    @versioned(version=2)
    class TestEvent:
        pass

    assert version_of(TestEvent) == 2
    assert version_of(TestEvent()) == 2


def test_serialize_version_default():
    @versioned
    class TestEvent:
        pass

    assert version_of(TestEvent) == 1


def test_default_construction_from_mapping():
    @versioned
    @dataclass
    class Opened:
        table_number: int
        waiter: str

    result = deserialize_version(Opened, {"table_number": 42, "waiter": "Derek"}, 1)
    assert result == Opened(42, "Derek")


def test_bad_data_raises_format_error():
    @versioned
    @dataclass
    class Opened:
        table_number: int

    with pytest.raises(FormatError):
        deserialize_version(Opened, {"unknown": 1}, 1)


def test_hook_value_error_becomes_format_error():
    @versioned
    class Strict:
        @classmethod
        def from_data(cls, data):
            raise ValueError("nope")

    with pytest.raises(FormatError) as info:
        deserialize_version(Strict, None, 1)
    assert isinstance(info.value.__cause__, ValueError)


def test_previous_requires_upcast():
    @versioned
    class Old:
        pass

    with pytest.raises(TypeError):

        @versioned(version=2, previous=Old)
        class New:
            pass


def test_previous_must_be_versioned():
    class Plain:
        pass

    with pytest.raises(TypeError):

        @versioned(version=2, previous=Plain)
        class New:
            @classmethod
            def from_previous(cls, old):
                return cls()


@pytest.mark.parametrize("bad", [0, -1])
def test_version_must_be_positive(bad):
    with pytest.raises(ValueError):

        @versioned(version=bad)
        class TestEvent:
            pass


def test_version_of_unversioned():
    class Plain:
        pass

    with pytest.raises(TypeError):
        version_of(Plain)