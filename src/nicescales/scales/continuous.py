"""Generic continuous scale: the parts date/time scales build on.

A scale holds a transform plus break, minor-break and label specs. All
internal positions are transformed numbers; user-facing specs (limits, break
vectors) are given in the domain and transformed on the way in.

Break spec values:
    - DEFAULT: ask the transform
    - None: no breaks
    - callable: called with the limits in the domain, returns domain values
    - sequence: fixed domain values

Breaks outside the limits are kept as NaN by get_breaks() so that they stay
aligned with a fixed label vector; break_info() drops them.
"""

from __future__ import annotations

import copy
from typing import TYPE_CHECKING, Any, Callable, Optional, Sequence

import numpy as np

from nicescales.scales.conventions import DEFAULT, format_spec_display
from nicescales.scales.transforms import Transform
from nicescales.scales.values import as_float_array, is_bare_numeric

if TYPE_CHECKING:
    from nicescales.scales.secondary_axis import SecondaryAxis


def zero_range(r: Sequence[float], tol: float = 1000 * np.finfo(float).eps) -> bool:
    """True if both ends of r are (numerically) the same."""
    lo, hi = float(r[0]), float(r[1])
    if lo == hi:
        return True
    m = min(abs(lo), abs(hi))
    if m == 0:
        return False
    return abs((lo - hi) / m) < tol


def censor(x: Any, range: Sequence[float] = (0.0, 1.0), only_finite: bool = True) -> np.ndarray:
    """Replace values outside range with NaN (infinite values pass when only_finite)."""
    out = as_float_array(x)
    lo, hi = min(range), max(range)
    finite = np.isfinite(out) if only_finite else np.ones(out.shape, dtype=bool)
    out[finite & ((out < lo) | (out > hi))] = np.nan
    return out


def squish(x: Any, range: Sequence[float] = (0.0, 1.0), only_finite: bool = True) -> np.ndarray:
    """Clamp values outside range onto the nearest limit."""
    out = as_float_array(x)
    lo, hi = min(range), max(range)
    finite = np.isfinite(out) if only_finite else ~np.isnan(out)
    out[finite] = np.clip(out[finite], lo, hi)
    return out


def rescale(x: Any, to: Sequence[float] = (0.0, 1.0), from_range: Optional[Sequence[float]] = None) -> np.ndarray:
    """Linearly map x from from_range (default: its own range) onto to."""
    out = as_float_array(x)
    if from_range is None:
        if out.size == 0 or not np.isfinite(out).any():
            return out
        from_range = (np.nanmin(out), np.nanmax(out))
    if zero_range(from_range) or zero_range(to):
        return np.where(np.isnan(out), np.nan, float(np.mean(to)))
    return (out - from_range[0]) / (from_range[1] - from_range[0]) * (to[1] - to[0]) + to[0]


class ContinuousScale:
    """Continuous scale over a transform.

    Attributes:
        aesthetics: Aesthetic names this scale serves (e.g. ("x", "xmin", ...)).
        trans: The Transform in use.
        name: Axis title; DEFAULT takes the layer's label.
        breaks, minor_breaks, labels: Specs as described in the module docstring.
        limits: Transformed limits (NaN entries fall back to the trained range), or None.
        range: Trained (min, max) of transformed data, or None before training.
    """

    def __init__(
        self,
        aesthetics: Sequence[str],
        transform: Transform,
        *,
        name: Any = DEFAULT,
        breaks: Any = DEFAULT,
        minor_breaks: Any = DEFAULT,
        labels: Any = DEFAULT,
        limits: Any = None,
        oob: Callable[..., np.ndarray] = censor,
        palette: Optional[Callable[[np.ndarray], Any]] = None,
        position: str = "left",
    ) -> None:
        self.aesthetics = tuple(aesthetics)
        self.trans = transform
        self.name = name
        self.breaks = breaks
        self.minor_breaks = minor_breaks
        self.labels = labels
        self.oob = oob
        self.palette = palette
        self.position = position
        self.range: Optional[tuple[float, float]] = None
        self.limits: Optional[np.ndarray] = None if limits is None else self._forward_values(limits)
        if self.limits is not None and self.limits.size != 2:
            raise ValueError(f"`limits` must have exactly two values, not {self.limits.size}")

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(aesthetics={self.aesthetics!r}, transform={self.trans!r}, "
            f"breaks={format_spec_display(self.breaks)}, labels={format_spec_display(self.labels)})"
        )

    # ------------------------------------------------------------------
    # Data in
    # ------------------------------------------------------------------

    def _forward_values(self, values: Any) -> np.ndarray:
        """Transform domain values; plain numbers are taken as already transformed."""
        if is_bare_numeric(values):
            return as_float_array(values)
        return np.asarray(self.trans.forward(values), dtype=float)

    def transform(self, x: Any) -> np.ndarray:
        """Domain values -> transformed numbers."""
        return np.asarray(self.trans.forward(x), dtype=float)

    def train(self, x: Any) -> None:
        """Extend the trained range with transformed values x."""
        values = as_float_array(x)
        values = values[np.isfinite(values)]
        if values.size == 0:
            return
        lo, hi = float(values.min()), float(values.max())
        if self.range is not None:
            lo, hi = min(lo, self.range[0]), max(hi, self.range[1])
        self.range = (lo, hi)

    def is_empty(self) -> bool:
        return self.range is None and self.limits is None

    def get_limits(self) -> np.ndarray:
        """Explicit limits with NaN entries filled from the trained range; (0, 1) when untrained."""
        if self.is_empty():
            return np.array([0.0, 1.0])
        if self.limits is None:
            return np.array(self.range, dtype=float)
        limits = self.limits.copy()
        if self.range is not None:
            fill = np.isnan(limits)
            limits[fill] = np.asarray(self.range, dtype=float)[fill]
        return limits

    def dimension(self) -> np.ndarray:
        return self.get_limits()

    def map(self, x: Any, limits: Optional[Sequence[float]] = None) -> Any:
        """Apply out-of-bounds handling, rescale into [0, 1] and apply the palette."""
        if limits is None:
            limits = self.get_limits()
        values = rescale(self.oob(x, limits), from_range=limits)
        if self.palette is None:
            return values
        return self.palette(values)

    # ------------------------------------------------------------------
    # Breaks and labels
    # ------------------------------------------------------------------

    def get_breaks(self, limits: Optional[Sequence[float]] = None) -> Optional[np.ndarray]:
        """Major breaks (transformed), NaN where outside limits; None when breaks are disabled."""
        if limits is None:
            limits = self.get_limits()
        limits = as_float_array(limits)
        if self.breaks is None:
            return None
        if zero_range(limits):
            breaks = limits[:1].copy()
        elif self.breaks is DEFAULT:
            breaks = self.trans.breaks(float(limits.min()), float(limits.max()))
        elif callable(self.breaks):
            breaks = self._forward_values(self.breaks(self.trans.inverse(limits)))
        else:
            breaks = self._forward_values(self.breaks)
        return censor(breaks, limits, only_finite=False)

    def get_breaks_minor(self, major: Any = DEFAULT, limits: Optional[Sequence[float]] = None) -> Optional[np.ndarray]:
        """Minor breaks (transformed); None when disabled or when there are no major breaks."""
        if limits is None:
            limits = self.get_limits()
        limits = as_float_array(limits)
        if major is DEFAULT:
            major = self.get_breaks(limits)
        if self.minor_breaks is None or zero_range(limits):
            return None
        if self.minor_breaks is DEFAULT:
            if major is None:
                return None
            return self.trans.minor_breaks(major, limits, 2)
        if callable(self.minor_breaks):
            return self._forward_values(self.minor_breaks(self.trans.inverse(limits)))
        return self._forward_values(self.minor_breaks)

    def get_labels(self, breaks: Any = DEFAULT) -> Optional[list[str]]:
        """Labels for transformed breaks.

        Raises:
            ValueError: If a fixed label vector does not match the number of breaks.
        """
        if breaks is DEFAULT:
            breaks = self.get_breaks()
        if breaks is None or self.labels is None:
            return None
        breaks = as_float_array(breaks)
        if self.labels is DEFAULT:
            return list(self.trans.format(breaks))
        if callable(self.labels):
            return [str(label) for label in self.labels(self.trans.inverse(breaks))]
        labels = [str(label) for label in self.labels]
        if len(labels) != len(breaks):
            raise ValueError(f"`breaks` and `labels` must have the same length ({len(breaks)} != {len(labels)})")
        return labels

    def break_info(self, range: Optional[Sequence[float]] = None) -> dict[str, Any]:
        """Breaks and labels ready for a guide.

        Returns:
            Dict with keys range, labels, major, minor (rescaled into [0, 1]
            over range), major_source and minor_source (transformed values).
        """
        rng = self.dimension() if range is None else as_float_array(range)

        major = self.get_breaks(rng)
        labels = self.get_labels(major) if major is not None else None
        if major is not None:
            keep = ~np.isnan(major)
            if labels is not None:
                labels = [label for label, k in zip(labels, keep) if k]
            major = major[keep]

        minor = self.get_breaks_minor(major, rng)
        if minor is not None:
            minor = censor(minor, rng, only_finite=False)
            minor = minor[~np.isnan(minor)]

        return {
            "range": rng,
            "labels": labels,
            "major": None if major is None else rescale(major, from_range=rng),
            "minor": None if minor is None else rescale(minor, from_range=rng),
            "major_source": major,
            "minor_source": minor,
        }

    # ------------------------------------------------------------------
    # Titles
    # ------------------------------------------------------------------

    def make_title(self, label_title: Optional[str] = None) -> Optional[str]:
        """Scale name when set, else the layer's label title."""
        if self.name is DEFAULT:
            return label_title
        return self.name

    def make_sec_title(self, label_title: Optional[str] = None) -> Optional[str]:
        return self.make_title(label_title)

    def sec_name(self) -> Any:
        """Name of the secondary axis; DEFAULT for scales without one."""
        return DEFAULT

    def clone(self) -> "ContinuousScale":
        """Untrained shallow copy sharing the (immutable) transform."""
        new = copy.copy(self)
        new.range = None
        return new


class ContinuousPositionScale(ContinuousScale):
    """Continuous x/y scale: no palette, optional secondary axis."""

    def __init__(
        self,
        aesthetics: Sequence[str],
        transform: Transform,
        *,
        secondary_axis: Optional["SecondaryAxis"] = None,
        position: str = "bottom",
        **kwargs: Any,
    ) -> None:
        super().__init__(aesthetics, transform, position=position, **kwargs)
        self.secondary_axis = secondary_axis

    def map(self, x: Any, limits: Optional[Sequence[float]] = None) -> np.ndarray:
        """Positions stay in transformed units; only out-of-bounds handling applies."""
        if limits is None:
            limits = self.get_limits()
        return self.oob(x, limits)

    def has_secondary_axis(self) -> bool:
        return self.secondary_axis is not None and not self.secondary_axis.empty()

    def break_info(self, range: Optional[Sequence[float]] = None) -> dict[str, Any]:
        """Primary break info, plus the secondary axis' sec_* entries when one is set."""
        info = super().break_info(range)
        if self.has_secondary_axis():
            self.secondary_axis.init(self)
            info.update(self.secondary_axis.break_info(info["range"], self))
        return info

    def sec_name(self) -> Any:
        if self.secondary_axis is None:
            return DEFAULT
        return self.secondary_axis.name

    def make_sec_title(self, label_title: Optional[str] = None) -> Optional[str]:
        if self.secondary_axis is not None:
            return self.secondary_axis.make_title(label_title)
        return super().make_sec_title(label_title)

    def clone(self) -> "ContinuousPositionScale":
        new = super().clone()
        new.secondary_axis = None
        return new
