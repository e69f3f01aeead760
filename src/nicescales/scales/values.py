"""Value-domain helpers: classify inputs and coerce them to date, datetime or time-of-day vectors.

Scales accept plain Python sequences, numpy arrays, pandas Index/Series and
scalars. Everything is normalised here so the transforms only ever see:

    - dates:        numpy ``datetime64[D]`` arrays
    - datetimes:    tz-aware ``pd.DatetimeIndex``
    - time of day:  ``pd.TimedeltaIndex``
"""

from __future__ import annotations

import datetime as dt
from enum import Enum
from typing import Any, Optional, Union

import numpy as np
import pandas as pd

ZoneLike = Union[str, dt.tzinfo]

_COARSE_UNITS = ("D", "W", "M", "Y")


class ValueKind(Enum):
    """Domain of a vector of values."""
    NUMERIC = "numeric"
    DATE = "date"
    DATETIME = "datetime"
    TIME = "time"
    OTHER = "other"


def _list_like(values: Any) -> Any:
    """Wrap scalars in a list; leave arrays, Index and Series alone."""
    if isinstance(values, (pd.Index, pd.Series, np.ndarray, list, tuple)):
        return values
    if np.ndim(values) == 0:
        return [values]
    return values


def _first_valid(values: Any) -> Any:
    for v in np.asarray(_list_like(values), dtype=object).ravel():
        if v is None:
            continue
        try:
            if pd.isna(v):
                continue
        except (TypeError, ValueError):
            pass
        return v
    return None


def classify(values: Any) -> ValueKind:
    """Return the ValueKind of values (judged by dtype, else by the first non-missing element)."""
    if isinstance(values, pd.DatetimeIndex):
        return ValueKind.DATETIME
    if isinstance(values, pd.TimedeltaIndex):
        return ValueKind.TIME

    values = _list_like(values)
    if isinstance(values, (pd.Series, pd.Index, np.ndarray)):
        dtype = values.dtype
    else:
        dtype = np.asarray(values).dtype

    if isinstance(dtype, pd.DatetimeTZDtype):
        return ValueKind.DATETIME
    kind = getattr(dtype, "kind", "O")
    if kind == "M":
        unit, _ = np.datetime_data(dtype)
        return ValueKind.DATE if unit in _COARSE_UNITS else ValueKind.DATETIME
    if kind == "m":
        return ValueKind.TIME
    if kind in ("i", "u", "f"):
        return ValueKind.NUMERIC
    if kind != "O":
        return ValueKind.OTHER

    first = _first_valid(values)
    # datetime must be tested before date: datetime is a date subclass
    if isinstance(first, (dt.datetime, np.datetime64)):
        return ValueKind.DATETIME
    if isinstance(first, dt.date):
        return ValueKind.DATE
    if isinstance(first, (dt.timedelta, dt.time, np.timedelta64)):
        return ValueKind.TIME
    if isinstance(first, (int, float, np.number)) and not isinstance(first, (bool, np.bool_)):
        return ValueKind.NUMERIC
    return ValueKind.OTHER


def is_bare_numeric(values: Any) -> bool:
    """True for plain numbers that carry no date/time meaning."""
    return classify(values) is ValueKind.NUMERIC


def timezone_of(values: Any) -> Optional[dt.tzinfo]:
    """Timezone attached to datetime values, or None for naive / non-datetime input."""
    if isinstance(values, pd.DatetimeIndex):
        return values.tz
    if isinstance(values, pd.Series) and isinstance(values.dtype, pd.DatetimeTZDtype):
        return values.dt.tz
    if classify(values) is not ValueKind.DATETIME:
        return None
    first = _first_valid(values)
    if isinstance(first, dt.datetime):
        return first.tzinfo
    return None


def zone_key(zone: Optional[ZoneLike]) -> Optional[ZoneLike]:
    """Canonical form of a zone: its IANA name when it has one, else the tzinfo itself."""
    if zone is None or isinstance(zone, str):
        return zone
    for attr in ("key", "zone"):
        name = getattr(zone, attr, None)
        if isinstance(name, str):
            return name
    if zone == dt.timezone.utc:
        return "UTC"
    return zone


def _datetime_index(values: Any) -> pd.DatetimeIndex:
    converted = pd.to_datetime(_list_like(values))
    if isinstance(converted, pd.Series):
        return pd.DatetimeIndex(converted)
    if isinstance(converted, pd.Timestamp):
        return pd.DatetimeIndex([converted])
    return pd.DatetimeIndex(converted)


def as_date_array(values: Any) -> np.ndarray:
    """Coerce dates or datetimes to ``datetime64[D]`` (datetimes keep the wall-clock date of their own zone)."""
    idx = _datetime_index(values)
    if idx.tz is not None:
        idx = idx.tz_localize(None)
    return idx.normalize().to_numpy().astype("datetime64[D]")


def as_datetime_index(values: Any, timezone: Optional[ZoneLike] = None) -> pd.DatetimeIndex:
    """Coerce dates or datetimes to a tz-aware DatetimeIndex in timezone (UTC when None).

    Naive datetimes and dates are read as wall-clock times in that zone;
    aware datetimes are converted to it.
    """
    target = timezone if timezone is not None else "UTC"
    if classify(values) is ValueKind.DATE:
        idx = pd.DatetimeIndex(as_date_array(values).astype("datetime64[ns]"))
    else:
        idx = _datetime_index(values)
    if idx.tz is None:
        return idx.tz_localize(target, ambiguous="NaT", nonexistent="shift_forward")
    return idx.tz_convert(target)


def _time_to_timedelta(value: Any) -> Any:
    if isinstance(value, dt.time):
        return pd.Timedelta(
            hours=value.hour,
            minutes=value.minute,
            seconds=value.second,
            microseconds=value.microsecond,
        )
    return value


def as_timedelta_index(values: Any) -> pd.TimedeltaIndex:
    """Coerce time-of-day values (time, timedelta, timedelta64) to a TimedeltaIndex."""
    if isinstance(values, pd.TimedeltaIndex):
        return values
    values = _list_like(values)
    if isinstance(_first_valid(values), dt.time):
        values = [_time_to_timedelta(v) for v in np.asarray(values, dtype=object).ravel()]
    converted = pd.to_timedelta(values)
    if isinstance(converted, pd.Series):
        return pd.TimedeltaIndex(converted)
    return pd.TimedeltaIndex(converted)


def as_float_array(values: Any) -> np.ndarray:
    """Plain float64 copy of numeric values (None becomes NaN)."""
    return np.asarray(_list_like(values), dtype=float).ravel().copy()
