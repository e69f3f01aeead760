"""Date, datetime and time-of-day transforms plus the explicit registries scales are built from.

A Transform maps a domain's native values to plain floats (forward) and back
(inverse), and knows how to propose breaks and labels in that numeric space:

    - "date":  days since 1970-01-01
    - "time":  seconds since 1970-01-01T00:00Z, displayed in a timezone
    - "hms":   seconds since midnight

Transforms are immutable and may be shared by many scales. Registries are
plain objects built by default_registry() and passed to scale constructors.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Sequence

import numpy as np
import pandas as pd

from nicescales.scales.breaks import (
    SECONDS_PER_DAY,
    extended_breaks,
    hms_breaks,
    label_date,
    label_time,
    pretty_date_breaks,
    pretty_datetime_breaks,
    regular_minor_breaks,
)
from nicescales.scales.conventions import X_AESTHETICS, Y_AESTHETICS
from nicescales.scales.values import (
    ValueKind,
    ZoneLike,
    as_date_array,
    as_datetime_index,
    as_float_array,
    as_timedelta_index,
    classify,
    zone_key,
)

_EPOCH_UTC = pd.Timestamp(0).tz_localize("UTC")


@dataclass(frozen=True)
class Transform:
    """Bidirectional mapping between domain values and floats, with break/label generators."""
    name: str
    forward: Callable[[Any], np.ndarray]
    inverse: Callable[[Any], Any]
    breaks: Callable[[float, float], np.ndarray]
    format: Callable[[Any], list[str]]
    minor_breaks: Callable[..., Optional[np.ndarray]] = regular_minor_breaks
    domain: ValueKind = ValueKind.NUMERIC
    timezone: Optional[ZoneLike] = None

    def __repr__(self) -> str:
        if self.timezone is not None:
            return f"Transform({self.name!r}, timezone={self.timezone!r})"
        return f"Transform({self.name!r})"


def identity_transform() -> Transform:
    """Plain numbers; used by secondary axes and non-calendar position scales."""
    def _format(x: Any) -> list[str]:
        return [f"{v:g}" if np.isfinite(v) else "" for v in as_float_array(x)]

    return Transform(
        name="identity",
        forward=as_float_array,
        inverse=as_float_array,
        breaks=extended_breaks,
        format=_format,
    )


# -----------------------------------------------------------------------------
# date: days since epoch
# -----------------------------------------------------------------------------


def _date_forward(x: Any) -> np.ndarray:
    days = as_date_array(x)
    out = days.astype("int64").astype(float)
    out[np.isnat(days)] = np.nan
    return out


def _date_inverse(x: Any) -> np.ndarray:
    num = as_float_array(x)
    finite = np.isfinite(num)
    out = np.full(num.shape, np.datetime64("NaT"), dtype="datetime64[D]")
    out[finite] = np.floor(num[finite]).astype("int64").astype("datetime64[D]")
    return out


def transform_date() -> Transform:
    """Calendar dates as whole days since 1970-01-01."""
    fmt = label_date("%Y-%m-%d")
    return Transform(
        name="date",
        forward=_date_forward,
        inverse=_date_inverse,
        breaks=pretty_date_breaks,
        format=lambda x: fmt(_date_inverse(x)),
        domain=ValueKind.DATE,
    )


# -----------------------------------------------------------------------------
# time: seconds since epoch in a timezone
# -----------------------------------------------------------------------------


def format_datetime_labels(idx: pd.DatetimeIndex) -> list[str]:
    """Shortest of "%Y-%m-%d", "%Y-%m-%d %H:%M" and "%Y-%m-%d %H:%M:%S" that loses nothing."""
    valid = idx[~idx.isna()]
    if len(valid) > 0 and (valid == valid.normalize()).all():
        fmt = "%Y-%m-%d"
    elif len(valid) > 0 and ((valid.second == 0) & (valid.microsecond == 0)).all():
        fmt = "%Y-%m-%d %H:%M"
    else:
        fmt = "%Y-%m-%d %H:%M:%S"
    return label_date(fmt)(idx)


def transform_time(timezone: Optional[ZoneLike] = None) -> Transform:
    """Instants as seconds since the epoch; inverse values are shown in timezone (UTC when None).

    Naive input is read as wall-clock time in timezone. Inverse values are
    rounded to whole microseconds, the precision of Python datetimes.
    """
    zone = zone_key(timezone)
    display_zone = zone if zone is not None else "UTC"

    def _forward(x: Any) -> np.ndarray:
        idx = as_datetime_index(x, display_zone)
        return ((idx.tz_convert("UTC") - _EPOCH_UTC) / pd.Timedelta(seconds=1)).to_numpy(dtype=float)

    def _inverse(x: Any) -> pd.DatetimeIndex:
        num = as_float_array(x)
        finite = np.isfinite(num)
        micros = np.zeros(num.shape, dtype="int64")
        micros[finite] = np.round(num[finite] * 1e6).astype("int64")
        idx = pd.to_datetime(micros, unit="us", utc=True).tz_convert(display_zone)
        return idx.where(finite)

    def _breaks(lo: float, hi: float) -> np.ndarray:
        return pretty_datetime_breaks(lo, hi, timezone=display_zone)

    return Transform(
        name="time",
        forward=_forward,
        inverse=_inverse,
        breaks=_breaks,
        format=lambda x: format_datetime_labels(_inverse(x)),
        domain=ValueKind.DATETIME,
        timezone=zone,
    )


# -----------------------------------------------------------------------------
# hms: seconds since midnight
# -----------------------------------------------------------------------------


def _hms_forward(x: Any) -> np.ndarray:
    if classify(x) is ValueKind.NUMERIC:
        return as_float_array(x)
    return as_timedelta_index(x).total_seconds().to_numpy(dtype=float)


def _hms_inverse(x: Any) -> pd.TimedeltaIndex:
    num = np.mod(as_float_array(x), SECONDS_PER_DAY)
    finite = np.isfinite(num)
    micros = np.zeros(num.shape, dtype="int64")
    micros[finite] = np.round(num[finite] * 1e6).astype("int64")
    # rounding can land exactly on midnight of the next day
    micros[micros >= int(SECONDS_PER_DAY * 1e6)] = 0
    idx = pd.to_timedelta(micros, unit="us")
    return idx.where(finite)


def transform_hms() -> Transform:
    """Time of day as seconds since midnight; inverse wraps into [0, 86400)."""
    fmt = label_time("%H:%M:%S")
    return Transform(
        name="hms",
        forward=_hms_forward,
        inverse=_hms_inverse,
        breaks=hms_breaks,
        format=lambda x: fmt(_hms_inverse(x)),
        domain=ValueKind.TIME,
    )


# -----------------------------------------------------------------------------
# Registries
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class TransformRegistry:
    """Named transform factories. Factories take an optional timezone."""
    factories: dict[str, Callable[[Optional[ZoneLike]], Transform]] = field(default_factory=dict)

    def names(self) -> list[str]:
        return sorted(self.factories)

    def get(self, name: str, timezone: Optional[ZoneLike] = None) -> Transform:
        """Build the transform registered under name.

        Raises:
            ValueError: If no transform is registered under name.
        """
        if name not in self.factories:
            raise ValueError(f"Unknown transform {name!r}; expected one of {', '.join(self.names())}")
        return self.factories[name](timezone)


@dataclass(frozen=True)
class ScaleRegistry:
    """Everything a scale constructor needs from its surroundings."""
    transforms: TransformRegistry
    x_aesthetics: tuple[str, ...] = X_AESTHETICS
    y_aesthetics: tuple[str, ...] = Y_AESTHETICS

    def is_position(self, aesthetics: Sequence[str]) -> bool:
        """True if every aesthetic is an x or y position aesthetic."""
        position = set(self.x_aesthetics) | set(self.y_aesthetics)
        return len(aesthetics) > 0 and all(a in position for a in aesthetics)


def default_transform_registry() -> TransformRegistry:
    return TransformRegistry(
        factories={
            "date": lambda tz: transform_date(),
            "time": transform_time,
            "hms": lambda tz: transform_hms(),
            "identity": lambda tz: identity_transform(),
        }
    )


def default_registry() -> ScaleRegistry:
    """Fresh registry with the built-in transforms and position aesthetics."""
    return ScaleRegistry(transforms=default_transform_registry())
