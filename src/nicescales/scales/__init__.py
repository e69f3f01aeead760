"""Date, datetime and time-of-day position scales with secondary-axis support."""

from nicescales.scales.breaks import BreakWidth, breaks_width, label_date, label_time, parse_break_width
from nicescales.scales.continuous import ContinuousPositionScale, ContinuousScale, censor, rescale, squish
from nicescales.scales.conventions import DEFAULT, DERIVE
from nicescales.scales.datetime_scale import (
    DatetimeScaleParams,
    ScaleConfig,
    ScaleContinuousDate,
    ScaleContinuousDatetime,
    TimezoneBinding,
    datetime_scale,
)
from nicescales.scales.secondary_axis import SecondaryAxis, dup_axis, sec_axis
from nicescales.scales.transforms import (
    ScaleRegistry,
    Transform,
    TransformRegistry,
    default_registry,
    transform_date,
    transform_hms,
    transform_time,
)

__all__ = [
    "BreakWidth",
    "ContinuousPositionScale",
    "ContinuousScale",
    "DEFAULT",
    "DERIVE",
    "DatetimeScaleParams",
    "ScaleConfig",
    "ScaleContinuousDate",
    "ScaleContinuousDatetime",
    "ScaleRegistry",
    "SecondaryAxis",
    "TimezoneBinding",
    "Transform",
    "TransformRegistry",
    "breaks_width",
    "censor",
    "datetime_scale",
    "default_registry",
    "dup_axis",
    "label_date",
    "label_time",
    "parse_break_width",
    "rescale",
    "sec_axis",
    "squish",
    "transform_date",
    "transform_hms",
    "transform_time",
]
