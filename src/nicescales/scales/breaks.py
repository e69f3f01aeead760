"""Break and label generators for date, datetime and time-of-day axes.

Two ways to get breaks:

1. A textual width such as "2 weeks" or "10 years" parsed by
   parse_break_width(); the resulting BreakWidth is called with the axis
   limits (domain values) and returns domain break values.
2. The "pretty" generators used by the transforms, which work on plain
   numbers (days or seconds since the epoch, seconds since midnight) and pick
   a calendar step automatically.

All calendar sequences are aligned to natural boundaries: months start on the
1st, years on 1 January, hours on the hour. Week widths keep the weekday of
the lower limit.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence, Union

import numpy as np
import pandas as pd

from nicescales.scales.values import (
    ValueKind,
    ZoneLike,
    as_date_array,
    as_datetime_index,
    as_timedelta_index,
    classify,
)

BREAK_UNITS = ("sec", "min", "hour", "day", "week", "month", "year")

_BREAK_WIDTH_RE = re.compile(r"^\s*(\d+)?\s*(sec|min|hour|day|week|month|year)s?\s*$")

# Fixed-length units in seconds; month and year use mean lengths for estimates only.
_UNIT_SECONDS = {
    "sec": 1.0,
    "min": 60.0,
    "hour": 3600.0,
    "day": 86400.0,
    "week": 7 * 86400.0,
    "month": 30.436875 * 86400.0,
    "year": 365.2425 * 86400.0,
}
_PANDAS_FREQ = {"sec": "s", "min": "min", "hour": "h"}
_SUB_DAY_UNITS = ("sec", "min", "hour")

# Guard against runaway sequences (e.g. "1 sec" over a century).
MAX_BREAKS = 10_000

SECONDS_PER_DAY = 86400.0


@dataclass(frozen=True)
class BreakWidth:
    """A calendar cadence like "2 weeks"; call it with axis limits to get breaks."""
    mult: int
    unit: str

    def __post_init__(self) -> None:
        if self.unit not in BREAK_UNITS:
            raise ValueError(f"Unknown break unit {self.unit!r}; expected one of {', '.join(BREAK_UNITS)}")
        if int(self.mult) != self.mult or self.mult < 1:
            raise ValueError(f"Break width multiplier must be a positive integer, not {self.mult!r}")

    def __str__(self) -> str:
        return f"{self.mult} {self.unit}{'s' if self.mult != 1 else ''}"

    @property
    def approx_seconds(self) -> float:
        return self.mult * _UNIT_SECONDS[self.unit]

    def offset(self) -> Union[pd.Timedelta, pd.DateOffset]:
        """Step between consecutive breaks (absolute for sub-day units, calendar otherwise)."""
        if self.unit in _SUB_DAY_UNITS:
            return pd.Timedelta(seconds=self.mult * _UNIT_SECONDS[self.unit])
        if self.unit == "day":
            return pd.DateOffset(days=self.mult)
        if self.unit == "week":
            return pd.DateOffset(days=7 * self.mult)
        if self.unit == "month":
            return pd.DateOffset(months=self.mult)
        return pd.DateOffset(years=self.mult)

    def floor(self, ts: pd.Timestamp) -> pd.Timestamp:
        """First aligned break at or before ts."""
        if self.unit in _SUB_DAY_UNITS:
            freq = f"{self.mult}{_PANDAS_FREQ[self.unit]}"
            if ts.tz is None:
                return ts.floor(freq)
            return ts.floor(freq, ambiguous=True, nonexistent="shift_forward")
        day = ts.normalize()
        if self.unit in ("day", "week"):
            return day
        if self.unit == "month":
            months = day.year * 12 + (day.month - 1)
            months -= months % self.mult
            return day.replace(year=months // 12, month=months % 12 + 1, day=1)
        year = day.year - day.year % self.mult
        return day.replace(year=max(year, 1), month=1, day=1)

    def sequence(self, lo: pd.Timestamp, hi: pd.Timestamp) -> pd.DatetimeIndex:
        """Aligned breaks from floor(lo) through the first break at or after hi."""
        if hi < lo:
            lo, hi = hi, lo
        start = self.floor(lo)
        step = self.offset()
        zone = start.tz if self.unit in _SUB_DAY_UNITS else None
        # sub-day steps run on the wall clock so breaks stay on the grid across DST changes
        wall = start.tz_localize(None) if zone is not None else None
        out = [start]
        k = 0
        while out[-1] < hi:
            k += 1
            if k > MAX_BREAKS:
                raise ValueError(
                    f"Break width {str(self)!r} produces more than {MAX_BREAKS} breaks; use a wider width."
                )
            if zone is None:
                out.append(start + step * k)
            else:
                out.append((wall + step * k).tz_localize(zone, ambiguous=True, nonexistent="shift_forward"))
        # a skipped wall-clock hour can map two steps onto one instant
        return pd.DatetimeIndex(out).unique()

    def __call__(self, limits: Any) -> Any:
        """Breaks covering limits, returned in the limits' own domain."""
        kind = classify(limits)
        if kind is ValueKind.DATE:
            if self.unit in _SUB_DAY_UNITS:
                raise ValueError(f"Break width {str(self)!r} is finer than a day and cannot be used on dates")
            days = as_date_array(limits)
            days = days[~np.isnat(days)]
            if days.size == 0:
                return np.array([], dtype="datetime64[D]")
            seq = self.sequence(pd.Timestamp(days.min()), pd.Timestamp(days.max()))
            return seq.to_numpy().astype("datetime64[D]")
        if kind is ValueKind.DATETIME:
            idx = limits if isinstance(limits, pd.DatetimeIndex) and limits.tz is not None else as_datetime_index(limits)
            idx = idx[~idx.isna()]
            if len(idx) == 0:
                return idx
            return self.sequence(idx.min(), idx.max())
        if kind is ValueKind.TIME:
            if self.unit in ("month", "year"):
                raise ValueError(f"Break width {str(self)!r} cannot be used on time-of-day values")
            secs = as_timedelta_index(limits).total_seconds().to_numpy()
            secs = secs[np.isfinite(secs)]
            if secs.size == 0:
                return pd.TimedeltaIndex([])
            step = self.approx_seconds
            start = math.floor(secs.min() / step) * step
            n = math.ceil((secs.max() - start) / step)
            if n > MAX_BREAKS:
                raise ValueError(
                    f"Break width {str(self)!r} produces more than {MAX_BREAKS} breaks; use a wider width."
                )
            return pd.to_timedelta(start + step * np.arange(n + 1), unit="s")
        raise TypeError(
            f"Break width {str(self)!r} needs date, datetime or time-of-day limits, not {kind.value} values"
        )


def parse_break_width(spec: Any) -> BreakWidth:
    """Parse "2 weeks", "month", "10 years", "15 mins" into a BreakWidth.

    Raises:
        TypeError: spec is not a string.
        ValueError: spec does not match ``<positive integer>? <unit>[s]?``.
    """
    if not isinstance(spec, str):
        raise TypeError(f"Break width must be a string like '2 weeks', not {type(spec).__name__}")
    m = _BREAK_WIDTH_RE.match(spec)
    if m is None:
        raise ValueError(
            f"Invalid break width {spec!r}: expected '<n> <unit>' with unit one of {', '.join(BREAK_UNITS)}"
        )
    mult = int(m.group(1)) if m.group(1) is not None else 1
    return BreakWidth(mult=mult, unit=m.group(2))


def breaks_width(spec: Union[str, BreakWidth]) -> BreakWidth:
    """Break function for a width spec; BreakWidth instances pass through."""
    if isinstance(spec, BreakWidth):
        return spec
    return parse_break_width(spec)


# -----------------------------------------------------------------------------
# Pretty calendar breaks (numeric in, numeric out)
# -----------------------------------------------------------------------------

_PRETTY_STEPS: tuple[BreakWidth, ...] = tuple(
    BreakWidth(mult, unit)
    for unit, mults in (
        ("sec", (1, 2, 5, 10, 15, 30)),
        ("min", (1, 2, 5, 10, 15, 30)),
        ("hour", (1, 3, 6, 12)),
        ("day", (1, 2)),
        ("week", (1,)),
        ("month", (1, 3, 6)),
        ("year", (1, 2, 5, 10, 20, 50, 100, 200, 500, 1000)),
    )
    for mult in mults
)


def choose_calendar_step(span_seconds: float, n: int = 5, *, min_unit: str = "sec") -> BreakWidth:
    """Step from the pretty ladder whose interval count is closest to n (first best wins)."""
    floor_seconds = _UNIT_SECONDS[min_unit]
    candidates = [s for s in _PRETTY_STEPS if _UNIT_SECONDS[s.unit] >= floor_seconds]
    return min(candidates, key=lambda s: abs(span_seconds / s.approx_seconds - n))


def pretty_date_breaks(lo: float, hi: float, n: int = 5) -> np.ndarray:
    """Pretty breaks for day counts since 1970-01-01; steps are one day or coarser."""
    if not (np.isfinite(lo) and np.isfinite(hi)):
        return np.array([], dtype=float)
    if lo == hi:
        return np.array([math.floor(lo)], dtype=float)
    lo, hi = min(lo, hi), max(lo, hi)
    step = choose_calendar_step((hi - lo) * SECONDS_PER_DAY, n, min_unit="day")
    seq = step.sequence(pd.Timestamp(lo, unit="D"), pd.Timestamp(hi, unit="D"))
    return ((seq - pd.Timestamp(0)) / pd.Timedelta(days=1)).to_numpy(dtype=float)


def pretty_datetime_breaks(lo: float, hi: float, n: int = 5, timezone: Optional[ZoneLike] = None) -> np.ndarray:
    """Pretty breaks for seconds since the epoch, aligned in timezone (UTC when None)."""
    if not (np.isfinite(lo) and np.isfinite(hi)):
        return np.array([], dtype=float)
    if lo == hi:
        return np.array([lo], dtype=float)
    lo, hi = min(lo, hi), max(lo, hi)
    zone = timezone if timezone is not None else "UTC"
    step = choose_calendar_step(hi - lo, n)
    lo_ts = pd.Timestamp(lo, unit="s").tz_localize("UTC").tz_convert(zone)
    hi_ts = pd.Timestamp(hi, unit="s").tz_localize("UTC").tz_convert(zone)
    seq = step.sequence(lo_ts, hi_ts)
    return ((seq - pd.Timestamp(0, tz="UTC")) / pd.Timedelta(seconds=1)).to_numpy(dtype=float)


def extended_breaks(lo: float, hi: float, n: int = 5, q: Sequence[float] = (1, 2, 5, 10)) -> np.ndarray:
    """Evenly spaced "nice" breaks (q x 10^k) covering [lo, hi] in about n intervals."""
    if not (np.isfinite(lo) and np.isfinite(hi)):
        return np.array([], dtype=float)
    lo, hi = min(lo, hi), max(lo, hi)
    if lo == hi:
        return np.array([lo], dtype=float)
    raw = (hi - lo) / max(n, 1)
    mag = 10.0 ** math.floor(math.log10(raw))
    step = next((m * mag for m in sorted(q) if m * mag >= raw), 10 * mag)
    start = math.floor(lo / step + 1e-10) * step
    stop = math.ceil(hi / step - 1e-10) * step
    breaks = np.arange(start, stop + 0.5 * step, step, dtype=float)
    # Normalize floating-point drift so values like -4.44e-16 become 0.
    breaks = np.round(breaks / step) * step
    breaks[np.isclose(breaks, 0.0, rtol=0.0, atol=step * 1e-9)] = 0.0
    return breaks


def hms_breaks(lo: float, hi: float, n: int = 5) -> np.ndarray:
    """Breaks for seconds since midnight, on whole seconds, minutes, hours or days."""
    if not (np.isfinite(lo) and np.isfinite(hi)):
        return np.array([], dtype=float)
    span = abs(hi - lo)
    if span <= 2 * 60:
        scale = 1.0
    elif span <= 2 * 3600:
        scale = 60.0
    elif span <= 2 * SECONDS_PER_DAY:
        scale = 3600.0
    else:
        scale = SECONDS_PER_DAY
    return extended_breaks(lo / scale, hi / scale, n, q=(1, 1.5, 2, 3, 4, 5, 10)) * scale


def regular_minor_breaks(major: Optional[np.ndarray], limits: Sequence[float], n: int = 2) -> Optional[np.ndarray]:
    """n - 1 evenly spaced minor breaks between consecutive majors, extended one major step towards the limits."""
    if major is None:
        return None
    b = np.asarray(major, dtype=float)
    b = b[~np.isnan(b)]
    if b.size < 2:
        return np.array([], dtype=float)
    bd = b[1] - b[0]
    if min(limits) < b.min():
        b = np.concatenate([[b[0] - bd], b])
    if max(limits) > b.max():
        b = np.concatenate([b, [b[-1] + bd]])
    parts = [np.linspace(a, z, n + 1)[:-1] for a, z in zip(b[:-1], b[1:])]
    parts.append(b[-1:])
    return np.concatenate(parts)


# -----------------------------------------------------------------------------
# Labels
# -----------------------------------------------------------------------------


def _check_format(fmt: Any, arg: str) -> str:
    if not isinstance(fmt, str):
        raise TypeError(f"`{arg}` must be a single string, not {type(fmt).__name__}")
    return fmt


def _strings(formatted: pd.Index) -> list[str]:
    return [s if isinstance(s, str) else "" for s in formatted]


def label_date(fmt: str = "%Y-%m-%d") -> Callable[[Any], list[str]]:
    """Label function formatting dates or datetimes with strftime codes.

    Datetimes are formatted in their own zone; missing values become "".
    """
    fmt = _check_format(fmt, "date_labels")

    def _label(values: Any) -> list[str]:
        kind = classify(values)
        if kind is ValueKind.DATE:
            idx = pd.DatetimeIndex(as_date_array(values).astype("datetime64[ns]"))
        elif isinstance(values, pd.DatetimeIndex):
            idx = values
        else:
            idx = as_datetime_index(values)
        return _strings(idx.strftime(fmt))

    return _label


def label_time(fmt: str = "%H:%M:%S") -> Callable[[Any], list[str]]:
    """Label function formatting time-of-day values with strftime codes."""
    fmt = _check_format(fmt, "date_labels")

    def _label(values: Any) -> list[str]:
        td = as_timedelta_index(values)
        return _strings((pd.Timestamp(0) + td).strftime(fmt))

    return _label
