"""Secondary axes: a second set of breaks and labels computed through a monotonic transform of the primary axis."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any, Callable, Optional, Sequence

import numpy as np

from nicescales.scales.continuous import rescale
from nicescales.scales.conventions import DEFAULT, DERIVE, Sentinel
from nicescales.scales.values import as_float_array

if TYPE_CHECKING:
    from nicescales.scales.continuous import ContinuousPositionScale


def _identity(x: Any) -> Any:
    return x


@dataclass
class SecondaryAxis:
    """A secondary axis attached to a position scale.

    Attributes:
        transform: Maps primary domain values to secondary domain values. Must be monotonic.
        name: Axis title. DEFAULT uses the layer's label, DERIVE copies the primary scale's name.
        breaks: Break spec in secondary units, or DERIVE to reuse the primary spec.
        labels: Label spec, or DERIVE to reuse the primary spec.
        detail: Number of samples used to invert the transform.
    """
    transform: Optional[Callable[[Any], Any]] = _identity
    name: Any = DEFAULT
    breaks: Any = DEFAULT
    labels: Any = DEFAULT
    detail: int = 1000

    def empty(self) -> bool:
        return self.transform is None

    def init(self, scale: "ContinuousPositionScale") -> None:
        """Replace DERIVE settings with the primary scale's."""
        if self.empty():
            return
        if not callable(self.transform):
            raise TypeError(f"Secondary axis transform must be callable, not {type(self.transform).__name__}")
        if self.name is DERIVE:
            self.name = scale.name
        if self.breaks is DERIVE:
            self.breaks = scale.breaks
        if self.labels is DERIVE:
            self.labels = scale.labels

    def _secondary_positions(self, along: np.ndarray, scale: "ContinuousPositionScale") -> np.ndarray:
        """Secondary values (in the primary transform's numeric space) at the sampled primary positions."""
        domain = scale.trans.inverse(along)
        # add back what the inverse dropped (day fractions for dates, whole days for hms)
        residue = along - scale._forward_values(domain)
        return scale._forward_values(self.transform(domain)) + residue

    def break_info(self, range: Sequence[float], scale: "ContinuousPositionScale") -> dict[str, Any]:
        """Break info for the secondary axis, keyed sec_*, with positions on the primary range.

        Raises:
            ValueError: If the transform is not monotonic over range.
        """
        if self.empty():
            return {}
        rng = as_float_array(range)

        # Step 1: sample the primary range and push it through the transform
        along = np.linspace(rng[0], rng[1], self.detail)
        full = self._secondary_positions(along, scale)
        finite = np.isfinite(full)
        steps = np.diff(full[finite])
        if not (np.all(steps >= 0) or np.all(steps <= 0)):
            raise ValueError("Transformation for secondary axes must be monotonic")
        sec_range = np.array([np.nanmin(full), np.nanmax(full)])

        # Step 2: breaks and labels from a temporary copy of the primary scale
        temp = scale.clone()
        temp.breaks = self.breaks
        temp.labels = self.labels
        temp.limits = None
        temp.train(sec_range)
        info = temp.break_info(sec_range)

        # Step 3: map secondary break values back to primary positions
        xp, fp = full[finite], along[finite]
        if xp.size > 1 and xp[0] > xp[-1]:
            xp, fp = xp[::-1], fp[::-1]

        def to_primary(values: Optional[np.ndarray]) -> Optional[np.ndarray]:
            if values is None:
                return None
            positions = np.interp(values, xp, fp)
            return rescale(positions, from_range=rng)

        return {
            "sec_range": sec_range,
            "sec_labels": info["labels"],
            "sec_major": to_primary(info["major_source"]),
            "sec_minor": to_primary(info["minor_source"]),
            "sec_major_source": info["major_source"],
            "sec_minor_source": info["minor_source"],
        }

    def make_title(self, label_title: Optional[str] = None) -> Optional[str]:
        if isinstance(self.name, Sentinel):
            return label_title
        return self.name

    def copy(self) -> "SecondaryAxis":
        return replace(self)


def sec_axis(
    transform: Callable[[Any], Any] = _identity,
    name: Any = DEFAULT,
    breaks: Any = DEFAULT,
    labels: Any = DEFAULT,
    detail: int = 1000,
) -> SecondaryAxis:
    """Secondary axis showing transform(primary values)."""
    if not callable(transform):
        raise TypeError(f"`transform` must be callable, not {type(transform).__name__}")
    return SecondaryAxis(transform=transform, name=name, breaks=breaks, labels=labels, detail=detail)


def dup_axis(**overrides: Any) -> SecondaryAxis:
    """Secondary axis that copies the primary's name, breaks and labels unless overridden."""
    settings: dict[str, Any] = {"transform": _identity, "name": DERIVE, "breaks": DERIVE, "labels": DERIVE}
    settings.update(overrides)
    return sec_axis(**settings)
