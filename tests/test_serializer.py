"""Tests for encode/decode of cached values."""

import json
from datetime import datetime, timedelta, timezone

import pytest
from structlog.testing import capture_logs

from fieldcache.models.field import FieldSpec
from fieldcache.services.serializer import Serializer, parse_stored_time, store_time, time_hooks


def make_spec(**kwargs):
    return FieldSpec(name=kwargs.pop("name", "value"), producer=lambda e: None, **kwargs)


@pytest.fixture
def serializer():
    return Serializer()


@pytest.mark.parametrize("value", [
    "Apollo",
    42,
    3.5,
    True,
    None,
    ["a", 1, None],
    {"crew": 3, "names": ["Neil", "Buzz"]},
])
def test_default_round_trip(serializer, value):
    spec = make_spec()
    assert serializer.decode(serializer.encode(value, spec), spec) == value


def test_datetime_round_trips_through_timestamp_heuristic(serializer):
    spec = make_spec()
    launched = datetime(1969, 7, 16, 13, 32, tzinfo=timezone.utc)

    encoded = serializer.encode(launched, spec)

    assert json.loads(encoded) == "1969-07-16T13:32:00+00:00"
    assert serializer.decode(encoded, spec) == launched


@pytest.mark.parametrize("raw,expected", [
    ('"2024-05-01T10:30:00Z"', datetime(2024, 5, 1, 10, 30, tzinfo=timezone.utc)),
    ('"2024-05-01 10:30:00"', datetime(2024, 5, 1, 10, 30)),
    ('"2024-05-01T10:30:00.250000+02:00"',
     datetime(2024, 5, 1, 10, 30, 0, 250000, tzinfo=timezone(timedelta(hours=2)))),
])
def test_timestamp_shaped_strings_become_datetimes(serializer, raw, expected):
    assert serializer.decode(raw, make_spec()) == expected


@pytest.mark.parametrize("raw", ['"2024-05-01"', '"launch at 2024-05-01T10:30"', '"2024-13-45T99:99"'])
def test_non_timestamps_stay_strings(serializer, raw):
    assert serializer.decode(raw, make_spec()) == json.loads(raw)


def test_decode_none_is_absent(serializer):
    assert serializer.decode(None, make_spec()) is None


def test_decode_non_json_returns_raw(serializer):
    assert serializer.decode("plain text", make_spec()) == "plain text"


def test_store_hook_string_is_json_encoded(serializer):
    spec = make_spec(store=lambda v: v.upper(), parse=lambda raw: json.loads(raw).lower())
    assert serializer.encode("apollo", spec) == '"APOLLO"'
    assert serializer.decode('"APOLLO"', spec) == "apollo"


@pytest.mark.parametrize("stored", ["123", "true", "null", "[1]"])
def test_store_only_field_keeps_string_type(serializer, stored):
    spec = make_spec(store=lambda v: v.strip())

    encoded = serializer.encode(" %s " % stored, spec)

    assert serializer.decode(encoded, spec) == stored
    assert serializer.fallbacks == 0


def test_store_hook_non_string_is_json_encoded(serializer):
    spec = make_spec(store=lambda v: {"wrapped": v})
    assert json.loads(serializer.encode(5, spec)) == {"wrapped": 5}


def test_failing_store_hook_falls_back_and_logs(serializer):
    def broken(value):
        raise RuntimeError("boom")

    spec = make_spec(name="title", store=broken)

    with capture_logs() as logs:
        encoded = serializer.encode("Apollo", spec)

    assert encoded == '"Apollo"'
    assert serializer.fallbacks == 1
    assert logs[0]["event"] == "cache_store_hook_failed"
    assert logs[0]["field"] == "title"
    assert logs[0]["log_level"] == "warning"


def test_failing_parse_hook_falls_back_to_default_decode(serializer):
    spec = make_spec(parse=int)

    with capture_logs() as logs:
        value = serializer.decode('"not a number"', spec)

    assert value == "not a number"
    assert serializer.fallbacks == 1
    assert logs[0]["event"] == "cache_parse_hook_failed"


def test_time_hooks_round_trip():
    parse, store = time_hooks()
    launched = datetime(1969, 7, 16, 13, 32, 0, tzinfo=timezone.utc)

    stored = store(launched)

    assert stored == "1969-07-16 13:32:00 GMT+0000"
    assert parse(stored) == launched


def test_unset_time_round_trips_as_null(serializer):
    parse, store = time_hooks()
    spec = make_spec(name="launched_at", parse=parse, store=store)

    with capture_logs() as logs:
        encoded = serializer.encode(None, spec)
        decoded = serializer.decode(encoded, spec)

    assert encoded == "null"
    assert decoded is None
    assert serializer.fallbacks == 0
    assert logs == []


def test_time_hook_reads_json_quoted_values(serializer):
    parse, store = time_hooks()
    spec = make_spec(parse=parse, store=store)
    launched = datetime(1969, 7, 16, 13, 32, tzinfo=timezone.utc)

    encoded = serializer.encode(launched, spec)

    assert encoded == '"1969-07-16 13:32:00 GMT+0000"'
    assert serializer.decode(encoded, spec) == launched
    assert serializer.fallbacks == 0


def test_time_hook_parses_naive_values():
    stored = store_time(datetime(1969, 7, 16, 13, 32))
    assert stored == "1969-07-16 13:32:00 GMT"
    assert parse_stored_time(stored) == datetime(1969, 7, 16, 13, 32)
