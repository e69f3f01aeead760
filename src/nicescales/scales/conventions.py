"""Sentinel and naming conventions shared by scales and secondary axes.

Single source of truth so that scale construction, secondary axes and the
parameter dataclasses agree on what "not given" means:

    - DEFAULT: use the default for this scale (breaks and labels from the
      transform, title from the layer's label).
    - DERIVE: copy the setting from the primary scale (secondary axes only).
    - None: explicitly nothing (no breaks, no labels, no title).
"""

from __future__ import annotations

from enum import Enum


class Sentinel(Enum):
    """Marker values for unset scale settings; use the DEFAULT / DERIVE members."""
    DEFAULT = "default"
    DERIVE = "derive"

    def __repr__(self) -> str:
        return self.name


DEFAULT = Sentinel.DEFAULT
DERIVE = Sentinel.DERIVE

# Position aesthetic names, used to decide whether a scale is a position scale.
X_AESTHETICS: tuple[str, ...] = (
    "x", "xmin", "xmax", "xend", "xintercept", "xmin_final", "xmax_final", "xlower", "xmiddle", "xupper", "x0",
)
Y_AESTHETICS: tuple[str, ...] = (
    "y", "ymin", "ymax", "yend", "yintercept", "ymin_final", "ymax_final", "lower", "middle", "upper", "y0",
)


def format_spec_display(value: object) -> str:
    """Short label for reprs / logs: '(default)', '(derive)', '(none)' or the value."""
    if isinstance(value, Sentinel):
        return f"({value.value})"
    if value is None:
        return "(none)"
    if callable(value):
        return getattr(value, "__name__", None) or str(value)
    return repr(value)
