"""
Fixed-width binning - pure pandas/numpy.

Shared by the histodot method of the dot-plot stat. Bins are described by
their breaks plus slightly widened ("fuzzy") breaks that absorb
floating-point rounding, so a value that lands exactly on a break is counted
on the closed side.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Sequence

import numpy as np
import pandas as pd

from nicescales.scales.continuous import zero_range

MAX_BINS = 1_000_000

BIN_COLUMNS = ["count", "x", "xmin", "xmax", "width", "density", "ncount", "ndensity"]


@dataclass(frozen=True)
class Bins:
    """Sorted breaks, their fuzzed counterparts and the closed side."""
    breaks: np.ndarray
    fuzzy: np.ndarray
    right_closed: bool = True

    @property
    def n_bins(self) -> int:
        return max(len(self.breaks) - 1, 0)


def _check_closed(closed: str) -> str:
    if closed not in ("right", "left"):
        raise ValueError(f"`closed` must be 'right' or 'left', not {closed!r}")
    return closed


def bin_breaks(breaks: Sequence[float], closed: str = "right", fuzz: Optional[float] = None) -> Bins:
    """Bins from explicit breaks."""
    closed = _check_closed(closed)
    b = np.sort(np.asarray(breaks, dtype=float))
    if fuzz is None:
        finite = b[np.isfinite(b)]
        spacing = float(np.median(np.diff(finite))) if finite.size > 1 else 0.0
        fuzz = 1e-08 * spacing if spacing > 0 else 1e-08
    if closed == "right":
        fuzzy = np.concatenate([[-fuzz], np.full(max(b.size - 1, 0), fuzz)])
    else:
        fuzzy = np.concatenate([np.full(max(b.size - 1, 0), -fuzz), [fuzz]])
    return Bins(breaks=b, fuzzy=b + fuzzy[: b.size], right_closed=closed == "right")


def bin_breaks_width(
    x_range: Sequence[float],
    width: float,
    center: Optional[float] = None,
    boundary: Optional[float] = None,
    closed: str = "right",
) -> Bins:
    """Bins of a fixed width aligned on boundary (or centered on center).

    Without either, the boundary is width / 2 so the data extremes sit in the
    outer halves of their bins.

    Raises:
        ValueError: Non-positive width, both center and boundary given, or too many bins.
    """
    if width is None or not width > 0:
        raise ValueError(f"`binwidth` must be positive, not {width!r}")
    if boundary is not None and center is not None:
        raise ValueError("Only one of `boundary` and `center` may be specified.")
    if boundary is None:
        boundary = width / 2 if center is None else center - width / 2

    lo, hi = float(x_range[0]), float(x_range[1])
    shift = np.floor((lo - boundary) / width)
    origin = boundary + shift * width

    # keep an exact multiple (e.g. max 20, width 10) from getting an extra bin
    max_x = hi + (1 - 1e-08) * width
    if (max_x - origin) / width > MAX_BINS:
        raise ValueError(
            f"The number of histogram bins must be less than {MAX_BINS:,}. Did you make `binwidth` too small?"
        )
    breaks = origin + width * np.arange(int(np.floor((max_x - origin) / width)) + 1)
    if breaks.size == 1:
        breaks = np.array([breaks[0], breaks[0] + width])
    return bin_breaks(breaks, closed=closed)


def bin_breaks_bins(
    x_range: Sequence[float],
    bins: int = 30,
    center: Optional[float] = None,
    boundary: Optional[float] = None,
    closed: str = "right",
) -> Bins:
    """Roughly `bins` bins spanning x_range."""
    if int(bins) < 1:
        raise ValueError(f"`bins` must be at least 1, not {bins!r}")
    lo, hi = float(x_range[0]), float(x_range[1])
    if zero_range((lo, hi)):
        width = 0.1
    elif bins == 1:
        width = hi - lo
        boundary = lo
        center = None
    else:
        width = (hi - lo) / (bins - 1)
        if center is None:
            boundary = (boundary if boundary is not None else lo) - width / 2
    return bin_breaks_width((lo, hi), width, center=center, boundary=boundary, closed=closed)


def compute_bins(
    values: Any,
    dimension: Optional[Sequence[float]] = None,
    binwidth: Optional[float] = None,
    bins: int = 30,
    center: Optional[float] = None,
    boundary: Optional[float] = None,
    closed: str = "right",
    breaks: Optional[Sequence[float]] = None,
) -> Bins:
    """Pick bins from explicit breaks, a bin width, or a bin count (in that order)."""
    if dimension is None:
        x = np.asarray(values, dtype=float)
        x = x[np.isfinite(x)]
        dimension = (x.min(), x.max()) if x.size else (0.0, 1.0)
    if breaks is not None:
        return bin_breaks(breaks, closed=closed)
    if binwidth is not None:
        if callable(binwidth):
            binwidth = binwidth(values)
        return bin_breaks_width(dimension, binwidth, center=center, boundary=boundary, closed=closed)
    return bin_breaks_bins(dimension, bins, center=center, boundary=boundary, closed=closed)


def bin_cut(values: Any, bins: Bins) -> np.ndarray:
    """Bin index of each value (-1 when outside every bin or missing); the outermost closed edge is included."""
    x = np.asarray(values, dtype=float)
    n = bins.n_bins
    if bins.right_closed:
        idx = np.searchsorted(bins.fuzzy, x, side="left") - 1
        idx[x == bins.fuzzy[0]] = 0
    else:
        idx = np.searchsorted(bins.fuzzy, x, side="right") - 1
        idx[x == bins.fuzzy[-1]] = n - 1
    idx[(idx < 0) | (idx >= n) | np.isnan(x)] = -1
    return idx


def bin_out(
    count: Any = (),
    x: Any = (),
    width: Any = (),
    xmin: Any = None,
    xmax: Any = None,
) -> pd.DataFrame:
    """Binned summary frame with densities and normalised counts."""
    count = np.asarray(count, dtype=float)
    x = np.asarray(x, dtype=float)
    width = np.asarray(width, dtype=float)
    xmin = x - width / 2 if xmin is None else np.asarray(xmin, dtype=float)
    xmax = x + width / 2 if xmax is None else np.asarray(xmax, dtype=float)
    with np.errstate(divide="ignore", invalid="ignore"):
        density = count / width / np.nansum(np.abs(count))
        ncount = count / np.nanmax(np.abs(count)) if count.size else count
        ndensity = density / np.nanmax(np.abs(density)) if density.size else density
    return pd.DataFrame(
        {
            "count": count,
            "x": x,
            "xmin": xmin,
            "xmax": xmax,
            "width": width,
            "density": density,
            "ncount": ncount,
            "ndensity": ndensity,
        },
        columns=BIN_COLUMNS,
    )


def bin_vector(values: Any, bins: Bins, weight: Any = None, pad: bool = False) -> pd.DataFrame:
    """Weighted counts of values per bin; values outside every bin get an extra row with x = NaN.

    Args:
        values: Numeric values.
        bins: Bins from compute_bins() or one of the bin_breaks_* helpers.
        weight: Per-value weights (NaN counts as 0); 1 each when None.
        pad: Add an empty bin on each side.
    """
    x = np.asarray(values, dtype=float)
    if x.size == 0 or np.isnan(x).all():
        return bin_out([x.size], [np.nan], [np.nan], xmin=[np.nan], xmax=[np.nan])
    w = np.ones(x.size) if weight is None else np.nan_to_num(np.asarray(weight, dtype=float), nan=0.0)

    idx = bin_cut(x, bins)
    inside = idx >= 0
    bin_count = np.bincount(idx[inside], weights=w[inside], minlength=bins.n_bins).astype(float)
    bin_x = (bins.breaks[1:] + bins.breaks[:-1]) / 2
    bin_widths = np.diff(bins.breaks)

    if pad:
        bin_count = np.concatenate([[0.0], bin_count, [0.0]])
        first, last = bin_widths[0], bin_widths[-1]
        bin_x = np.concatenate([[bin_x[0] - first], bin_x, [bin_x[-1] + last]])
        bin_widths = np.concatenate([[first], bin_widths, [last]])

    if not inside.all():
        bin_count = np.concatenate([bin_count, [w[~inside].sum()]])
        bin_x = np.concatenate([bin_x, [np.nan]])
        bin_widths = np.concatenate([bin_widths, [np.nan]])

    return bin_out(bin_count, bin_x, bin_widths)
