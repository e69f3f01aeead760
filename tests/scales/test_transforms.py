"""Unit tests for the date, time and hms transforms and the registries."""

import datetime as dt

import numpy as np
import pandas as pd
import pytest

from nicescales.scales.transforms import (
    ScaleRegistry,
    default_registry,
    default_transform_registry,
    identity_transform,
    transform_date,
    transform_hms,
    transform_time,
)
from nicescales.scales.values import ValueKind, zone_key


# -----------------------------------------------------------------------------
# date
# -----------------------------------------------------------------------------


def test_date_forward_counts_days_since_epoch():
    t = transform_date()
    days = np.array(["1970-01-01", "1969-12-31", "2020-01-01"], dtype="datetime64[D]")
    assert list(t.forward(days)) == [0.0, -1.0, 18262.0]


def test_date_round_trip_is_exact():
    t = transform_date()
    days = np.array(["1900-03-01", "2000-02-29", "2024-07-04", "NaT"], dtype="datetime64[D]")
    back = t.inverse(t.forward(days))
    assert np.array_equal(back[:3], days[:3])
    assert np.isnat(back[3])


def test_date_inverse_floors_fractional_days():
    back = transform_date().inverse([0.7, -0.2])
    assert list(back) == [np.datetime64("1970-01-01"), np.datetime64("1969-12-31")]


def test_date_format_and_breaks():
    t = transform_date()
    assert t.format([0.0, 31.0]) == ["1970-01-01", "1970-02-01"]
    assert t.domain is ValueKind.DATE
    breaks = t.breaks(0.0, 100.0)
    assert np.all(breaks == np.floor(breaks))


# -----------------------------------------------------------------------------
# time
# -----------------------------------------------------------------------------


def test_time_forward_is_seconds_since_epoch():
    t = transform_time()
    assert list(t.forward(pd.DatetimeIndex(["1970-01-01 00:01:00"]).tz_localize("UTC"))) == [60.0]


def test_time_naive_values_read_in_transform_zone():
    """09:00 in Tokyo on 1970-01-01 is the epoch."""
    t = transform_time("Asia/Tokyo")
    assert list(t.forward([dt.datetime(1970, 1, 1, 9)])) == [0.0]


def test_time_round_trip_to_the_microsecond():
    t = transform_time("America/New_York")
    idx = pd.DatetimeIndex(
        ["2021-03-13 01:59:59.123456", "1999-12-31 23:00:00", "1950-07-01 12:00:00.000001"]
    ).tz_localize("America/New_York")
    back = t.inverse(t.forward(idx))
    assert (back == idx).all()
    assert zone_key(back.tz) == "America/New_York"


def test_time_inverse_keeps_missing_values():
    back = transform_time().inverse([0.0, np.nan])
    assert back[0] == pd.Timestamp(0, tz="UTC")
    assert pd.isna(back[1])


def test_time_format_drops_unneeded_parts():
    t = transform_time()
    assert t.format([0.0, 86400.0]) == ["1970-01-01", "1970-01-02"]
    assert t.format([0.0, 60.0]) == ["1970-01-01 00:00", "1970-01-01 00:01"]
    assert t.format([0.0, 90.0]) == ["1970-01-01 00:00:00", "1970-01-01 00:01:30"]


def test_time_format_uses_transform_zone():
    t = transform_time("America/New_York")
    assert t.format([0.0]) == ["1969-12-31 19:00"]
    assert t.timezone == "America/New_York"


# -----------------------------------------------------------------------------
# hms
# -----------------------------------------------------------------------------


def test_hms_forward_accepts_times_and_timedeltas():
    t = transform_hms()
    assert list(t.forward([dt.time(1, 2, 3)])) == [3723.0]
    assert list(t.forward(pd.to_timedelta(["00:00:30"]))) == [30.0]
    assert list(t.forward(np.array([90], dtype="timedelta64[s]"))) == [90.0]


def test_hms_round_trip_modulo_one_day():
    t = transform_hms()
    td = pd.to_timedelta(["00:00:00", "12:34:56.789", "23:59:59"])
    assert (t.inverse(t.forward(td)) == td).all()
    assert t.inverse([86400.0 + 60.0])[0] == pd.Timedelta(seconds=60)
    assert t.inverse([-60.0])[0] == pd.Timedelta(hours=23, minutes=59)


def test_hms_format():
    assert transform_hms().format([3723.0]) == ["01:02:03"]


# -----------------------------------------------------------------------------
# Registries
# -----------------------------------------------------------------------------


def test_transform_registry_builds_named_transforms():
    reg = default_transform_registry()
    assert reg.names() == ["date", "hms", "identity", "time"]
    assert reg.get("time", "Europe/Paris").timezone == "Europe/Paris"
    assert reg.get("date").name == "date"


def test_transform_registry_rejects_unknown_name():
    with pytest.raises(ValueError):
        default_transform_registry().get("log10")


def test_scale_registry_position_aesthetics():
    reg = default_registry()
    assert isinstance(reg, ScaleRegistry)
    assert reg.is_position(("x", "xmin", "xend")) is True
    assert reg.is_position(("y", "ymax")) is True
    assert reg.is_position(("colour",)) is False
    assert reg.is_position(()) is False


def test_custom_scale_registry_aesthetics():
    reg = ScaleRegistry(transforms=default_transform_registry(), x_aesthetics=("h",), y_aesthetics=("v",))
    assert reg.is_position(("h", "v")) is True
    assert reg.is_position(("x",)) is False


def test_identity_transform():
    t = identity_transform()
    assert list(t.forward([1, 2])) == [1.0, 2.0]
    assert t.format([1.0, 2.5]) == ["1", "2.5"]
