"""Date and datetime position scales, and the datetime_scale() constructor that configures them.

Flow:

    DatetimeScaleParams --resolve()--> ScaleConfig --datetime_scale()--> scale

resolve() is the only place where string break widths, date_breaks /
date_minor_breaks / date_labels and DEFAULT placeholders are turned into
concrete break and label functions; scales only ever see the resolved values.
"""

from __future__ import annotations

import warnings
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Callable, Optional, Sequence

import numpy as np

from nicescales.scales.breaks import breaks_width, label_date, label_time
from nicescales.scales.continuous import ContinuousPositionScale, ContinuousScale, censor
from nicescales.scales.conventions import DEFAULT, Sentinel, format_spec_display
from nicescales.scales.secondary_axis import SecondaryAxis
from nicescales.scales.transforms import ScaleRegistry, Transform, default_registry
from nicescales.scales.values import (
    ValueKind,
    ZoneLike,
    as_date_array,
    as_datetime_index,
    classify,
    timezone_of,
    zone_key,
)
from nicescales.utils.logging import get_logger

logger = get_logger(__name__)

CALENDAR_TRANSFORMS = ("date", "time", "hms")


# -----------------------------------------------------------------------------
# Timezone lifecycle
# -----------------------------------------------------------------------------


class BindingState(Enum):
    UNBOUND = "unbound"
    BOUND = "bound"


@dataclass
class TimezoneBinding:
    """Unbound until bind() is called once; later binds are ignored."""
    state: BindingState = BindingState.UNBOUND
    zone: Optional[ZoneLike] = None

    @property
    def is_bound(self) -> bool:
        return self.state is BindingState.BOUND

    def bind(self, zone: ZoneLike) -> bool:
        """Bind to zone. Returns True if this call changed the state."""
        if self.is_bound:
            return False
        self.state = BindingState.BOUND
        self.zone = zone_key(zone)
        return True


# -----------------------------------------------------------------------------
# Scales
# -----------------------------------------------------------------------------


class ScaleContinuousDate(ContinuousPositionScale):
    """Position scale for calendar dates (days since 1970-01-01)."""

    def transform(self, x: Any) -> np.ndarray:
        kind = classify(x)
        if kind is ValueKind.NUMERIC:
            logger.warning(
                "A numeric value was passed to a date scale; interpreting it as days since 1970-01-01. "
                "Convert the values to dates first."
            )
            x = self.trans.inverse(x)
        elif kind is ValueKind.DATETIME:
            x = as_date_array(x)
        return super().transform(x)

    def get_breaks(self, limits: Optional[Sequence[float]] = None) -> Optional[np.ndarray]:
        """Breaks floored to whole days."""
        breaks = super().get_breaks(limits)
        if breaks is None:
            return None
        return np.floor(breaks)


class ScaleContinuousDatetime(ContinuousPositionScale):
    """Position scale for instants (seconds since the epoch) displayed in one timezone.

    Without an explicit timezone the scale adopts the zone of the first
    tz-aware values it transforms, once, and only before break_info() has
    been called.
    """

    def __init__(
        self,
        aesthetics: Sequence[str],
        transform: Transform,
        *,
        registry: Optional[ScaleRegistry] = None,
        timezone: Optional[ZoneLike] = None,
        **kwargs: Any,
    ) -> None:
        self.registry = registry if registry is not None else default_registry()
        self.binding = TimezoneBinding()
        self._breaks_computed = False
        if timezone is not None:
            self.binding.bind(timezone)
            transform = self.registry.transforms.get("time", self.binding.zone)
        super().__init__(aesthetics, transform, **kwargs)

    @property
    def timezone(self) -> Optional[ZoneLike]:
        return self.binding.zone

    def _adopt_timezone(self, x: Any) -> None:
        if self.binding.is_bound or self._breaks_computed:
            return
        zone = timezone_of(x)
        if zone is None:
            return
        if self.binding.bind(zone):
            logger.debug("datetime scale %s adopted timezone %s", self.aesthetics[0], self.binding.zone)
            self.trans = self.registry.transforms.get("time", self.binding.zone)

    def transform(self, x: Any) -> np.ndarray:
        kind = classify(x)
        if kind is ValueKind.DATETIME:
            self._adopt_timezone(x)
        elif kind is ValueKind.NUMERIC:
            logger.warning(
                "A numeric value was passed to a datetime scale; interpreting it as seconds since "
                "1970-01-01 UTC. Convert the values to datetimes first."
            )
            x = self.trans.inverse(x)
        elif kind is ValueKind.DATE:
            x = as_datetime_index(x, self.binding.zone)
        return super().transform(x)

    def break_info(self, range: Optional[Sequence[float]] = None) -> dict[str, Any]:
        self._breaks_computed = True
        return super().break_info(range)

    def clone(self) -> "ScaleContinuousDatetime":
        new = super().clone()
        new.binding = replace(self.binding)
        return new


# -----------------------------------------------------------------------------
# Parameters and their one-time resolution
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class ScaleConfig:
    """Fully resolved scale settings. Nothing here is a string break width or a date_* alias."""
    transform: str
    name: Any
    breaks: Any
    minor_breaks: Any
    labels: Any
    timezone: Optional[ZoneLike]
    limits: Any
    position: str
    sec_axis: Optional[SecondaryAxis]


def _check_string(value: Any, arg: str) -> str:
    if not isinstance(value, str):
        raise TypeError(f"`{arg}` must be a single string, not {type(value).__name__}")
    return value


@dataclass
class DatetimeScaleParams:
    """User-level parameters for a date / datetime / time-of-day scale.

    breaks and minor_breaks accept DEFAULT, None, a callable, a sequence of
    domain values or a width string such as "2 weeks". date_breaks,
    date_minor_breaks and date_labels must be strings and take precedence over
    breaks, minor_breaks and labels.
    """
    name: Any = DEFAULT
    breaks: Any = DEFAULT
    date_breaks: Any = DEFAULT
    labels: Any = DEFAULT
    date_labels: Any = DEFAULT
    minor_breaks: Any = DEFAULT
    date_minor_breaks: Any = DEFAULT
    timezone: Optional[ZoneLike] = None
    limits: Any = None
    position: str = "bottom"
    sec_axis: Optional[SecondaryAxis] = None

    _SERIALIZABLE = (
        "name", "breaks", "date_breaks", "labels", "date_labels",
        "minor_breaks", "date_minor_breaks", "timezone", "position",
    )

    def resolve(self, transform: str) -> ScaleConfig:
        """Turn break widths and date_* aliases into break / label functions.

        Raises:
            TypeError: If a date_* argument is not a string.
            ValueError: If a break width string is malformed.
        """
        breaks = self.breaks
        minor_breaks = self.minor_breaks
        labels = self.labels

        # Step 1: plain string break specs are widths
        if isinstance(breaks, str):
            breaks = breaks_width(breaks)
        if isinstance(minor_breaks, str):
            minor_breaks = breaks_width(minor_breaks)

        # Step 2: date_* aliases win
        if self.date_breaks is not DEFAULT:
            breaks = breaks_width(_check_string(self.date_breaks, "date_breaks"))
        if self.date_minor_breaks is not DEFAULT:
            minor_breaks = breaks_width(_check_string(self.date_minor_breaks, "date_minor_breaks"))
        if self.date_labels is not DEFAULT:
            fmt = _check_string(self.date_labels, "date_labels")
            labels = label_time(fmt) if transform == "hms" else label_date(fmt)

        return ScaleConfig(
            transform=transform,
            name=self.name,
            breaks=breaks,
            minor_breaks=minor_breaks,
            labels=labels,
            timezone=self.timezone,
            limits=self.limits,
            position=self.position,
            sec_axis=self.sec_axis,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize the JSON-friendly settings. DEFAULT values and callables are left out."""
        out: dict[str, Any] = {}
        for key in self._SERIALIZABLE:
            value = getattr(self, key)
            if isinstance(value, Sentinel) or callable(value):
                continue
            if key == "timezone" and value is not None:
                value = str(zone_key(value))
            out[key] = value
        return out

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DatetimeScaleParams":
        """Build params from to_dict() output. Missing keys are DEFAULT; unknown keys are ignored."""
        unknown = sorted(set(data) - set(cls._SERIALIZABLE))
        if unknown:
            logger.warning("DatetimeScaleParams.from_dict: ignoring unknown keys %s", unknown)
        kwargs = {key: data[key] for key in cls._SERIALIZABLE if key in data}
        if "position" in kwargs:
            kwargs["position"] = str(kwargs["position"])
        return cls(**kwargs)


def set_sec_axis(sec_axis: Any, scale: ContinuousScale) -> ContinuousScale:
    """Attach a copy of sec_axis to scale (None or DEFAULT leaves it alone).

    Raises:
        TypeError: If sec_axis is not a SecondaryAxis.
        ValueError: If scale is not a position scale.
    """
    if sec_axis is None or sec_axis is DEFAULT:
        return scale
    if not isinstance(sec_axis, SecondaryAxis):
        raise TypeError(f"Secondary axes must be specified with sec_axis(), not {type(sec_axis).__name__}")
    if not isinstance(scale, ContinuousPositionScale):
        raise ValueError("Secondary axes are only available on position scales")
    scale.secondary_axis = sec_axis.copy()
    return scale


def datetime_scale(
    aesthetics: Sequence[str],
    transform: str = "time",
    *,
    registry: Optional[ScaleRegistry] = None,
    trans: Optional[str] = None,
    params: Optional[DatetimeScaleParams] = None,
    oob: Callable[..., np.ndarray] = censor,
    palette: Optional[Callable[[np.ndarray], Any]] = None,
    **settings: Any,
) -> ContinuousScale:
    """Build a date ("date"), datetime ("time") or time-of-day ("hms") scale.

    Args:
        aesthetics: Aesthetics served by the scale. All-position aesthetics get
            a position scale (with secondary-axis support), others a plain one.
        transform: "date", "time" or "hms".
        registry: Transform and aesthetic registry; default_registry() when None.
        trans: Deprecated alias of transform.
        params: Scale parameters; keyword settings are applied on top of them.
        oob: Out-of-bounds handler.
        palette: Palette for non-position scales.
        **settings: Any DatetimeScaleParams field (name, breaks, date_breaks, ...).

    Returns:
        ScaleContinuousDate, ScaleContinuousDatetime, ContinuousPositionScale
        or ContinuousScale.

    Raises:
        ValueError: Unknown transform name.
        TypeError: Bad date_* argument or secondary axis.
    """
    if trans is not None:
        warnings.warn(
            "`trans` is deprecated; use `transform` instead.",
            DeprecationWarning,
            stacklevel=2,
        )
        transform = trans
    if transform not in CALENDAR_TRANSFORMS:
        raise ValueError(f"Unknown transform {transform!r}; expected one of {', '.join(CALENDAR_TRANSFORMS)}")
    registry = registry if registry is not None else default_registry()
    params = replace(params if params is not None else DatetimeScaleParams(), **settings)
    config = params.resolve(transform)

    common: dict[str, Any] = dict(
        name=config.name,
        breaks=config.breaks,
        minor_breaks=config.minor_breaks,
        labels=config.labels,
        limits=config.limits,
        oob=oob,
    )
    aesthetics = tuple(aesthetics)

    if not registry.is_position(aesthetics):
        trans_obj = registry.transforms.get(transform, config.timezone)
        scale: ContinuousScale = ContinuousScale(aesthetics, trans_obj, palette=palette, position=config.position, **common)
    elif transform == "time":
        scale = ScaleContinuousDatetime(
            aesthetics,
            registry.transforms.get("time"),
            registry=registry,
            timezone=config.timezone,
            position=config.position,
            **common,
        )
    elif transform == "date":
        scale = ScaleContinuousDate(aesthetics, registry.transforms.get("date"), position=config.position, **common)
    else:
        scale = ContinuousPositionScale(aesthetics, registry.transforms.get("hms"), position=config.position, **common)

    logger.debug(
        "built %s for %s (breaks=%s, labels=%s)",
        type(scale).__name__, aesthetics, format_spec_display(config.breaks), format_spec_display(config.labels),
    )
    return set_sec_axis(config.sec_axis, scale)
