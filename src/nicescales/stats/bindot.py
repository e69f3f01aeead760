"""
Dot-plot binning algorithm - pure pandas/numpy.

Two methods:

    - dotdensity: a greedy left-to-right scan over sorted values. A value
      starts a new bin when it is at or past the end (start + binwidth) of
      the current bin; the bin center is the midpoint of its members.
    - histodot: fixed-width bins from nicescales.stats.binning.

With binpositions="all" the dotdensity scan runs once over the whole panel
before groups are split, so bins line up across groups.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional, Sequence

import numpy as np
import pandas as pd

from nicescales.stats.binning import bin_vector, compute_bins
from nicescales.stats.grouping import remove_missing, split_apply
from nicescales.utils.logging import get_logger

logger = get_logger(__name__)

DENSITYBIN_COLUMNS = ["x", "bin", "binwidth", "weight", "bincenter"]

# Working columns that never survive to the output.
DROPPED_COLUMNS = ("weight", "bin", "bincenter")


class BinMethod(Enum):
    DOTDENSITY = "dotdensity"
    HISTODOT = "histodot"


class BinPositions(Enum):
    BYGROUP = "bygroup"
    ALL = "all"


class BinAxis(Enum):
    X = "x"
    Y = "y"


def _coerce_enum(enum_cls: type[Enum], value: Any, arg: str) -> Any:
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        choices = ", ".join(repr(m.value) for m in enum_cls)
        raise ValueError(f"`{arg}` must be one of {choices}, not {value!r}") from None


# -----------------------------------------------------------------------------
# Step 1: Weights and the density scan
# -----------------------------------------------------------------------------


def validate_weights(weight: Any) -> np.ndarray:
    """Weights as floats; each must be a whole number >= 0 (NaN is allowed and counts as 0 later).

    Raises:
        ValueError: A weight is negative, fractional, infinite or not numeric.
    """
    try:
        w = np.asarray(weight, dtype=float)
    except (TypeError, ValueError):
        raise ValueError("`weight` must be a vector of non-negative integers") from None
    present = ~np.isnan(w)
    bad = present & (~np.isfinite(w) | (w < 0) | (w != np.floor(w)))
    if bad.any():
        raise ValueError(
            f"`weight` must be a vector of non-negative integers; got {w[bad][:3].tolist()}"
        )
    return w


def densitybin(
    values: Any,
    weight: Any = None,
    binwidth: Optional[float] = None,
    range: Optional[Sequence[float]] = None,
) -> pd.DataFrame:
    """Assign sorted values to dotdensity bins without collapsing them.

    Args:
        values: Values to bin.
        weight: Per-value weights (NaN counts as 0); 1 each when None.
        binwidth: Bin width; (max - min) / 30 of range when None.
        range: Range used for the default bin width; the finite data range when None.

    Returns:
        One row per value in ascending (stable) order with columns x, bin,
        binwidth, weight, bincenter. Missing values sort last with no bin.
    """
    x = np.asarray(values, dtype=float)
    if x.size == 0 or np.isnan(x).all():
        return pd.DataFrame(columns=DENSITYBIN_COLUMNS)
    w = np.ones(x.size) if weight is None else np.asarray(weight, dtype=float).copy()
    w[np.isnan(w)] = 0.0

    if range is None:
        finite = x[np.isfinite(x)]
        range = (finite.min(), finite.max()) if finite.size else (np.nan, np.nan)
    if binwidth is None:
        binwidth = (range[1] - range[0]) / 30

    order = np.argsort(x, kind="stable")
    x = x[order]
    w = w[order]

    bins = np.full(x.size, np.nan)
    current = 0
    bin_end = -np.inf
    for i, value in enumerate(x):
        if np.isnan(value):
            continue
        # start a new bin once past the end of the current one
        if value >= bin_end:
            bin_end = value + binwidth
            current += 1
        bins[i] = current

    out = pd.DataFrame({"x": x, "bin": bins, "binwidth": float(binwidth), "weight": w})
    members = out.groupby("bin")["x"]
    out["bincenter"] = (members.transform("min") + members.transform("max")) / 2
    return out


# -----------------------------------------------------------------------------
# Step 2: Parameters
# -----------------------------------------------------------------------------


@dataclass
class BindotParams:
    """Parameters of the dot-plot stat.

    width is the dot stack's visual width factor; it is passed through for
    the dot layout and does not change the binning.
    """
    binwidth: Optional[float] = None
    binaxis: BinAxis = BinAxis.X
    method: BinMethod = BinMethod.DOTDENSITY
    binpositions: BinPositions = BinPositions.BYGROUP
    origin: Optional[float] = None
    width: float = 0.9
    drop: bool = False
    right: bool = True
    na_rm: bool = False

    def __post_init__(self) -> None:
        self.binaxis = _coerce_enum(BinAxis, self.binaxis, "binaxis")
        self.method = _coerce_enum(BinMethod, self.method, "method")
        self.binpositions = _coerce_enum(BinPositions, self.binpositions, "binpositions")
        if self.binwidth is not None and not self.binwidth > 0:
            raise ValueError(f"`binwidth` must be positive, not {self.binwidth!r}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "binwidth": self.binwidth,
            "binaxis": self.binaxis.value,
            "method": self.method.value,
            "binpositions": self.binpositions.value,
            "origin": self.origin,
            "width": self.width,
            "drop": self.drop,
            "right": self.right,
            "na_rm": self.na_rm,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "BindotParams":
        """Tolerant loader: missing keys take defaults, unknown keys are ignored.

        Raises:
            ValueError: An enum field holds an unknown value.
        """
        known = {"binwidth", "binaxis", "method", "binpositions", "origin", "width", "drop", "right", "na_rm"}
        unknown = sorted(set(data) - known)
        if unknown:
            logger.warning("BindotParams.from_dict: ignoring unknown keys %s", unknown)
        binwidth = data.get("binwidth")
        origin = data.get("origin")
        return cls(
            binwidth=float(binwidth) if binwidth is not None else None,
            binaxis=data.get("binaxis", BinAxis.X.value),
            method=data.get("method", BinMethod.DOTDENSITY.value),
            binpositions=data.get("binpositions", BinPositions.BYGROUP.value),
            origin=float(origin) if origin is not None else None,
            width=float(data.get("width", 0.9)),
            drop=bool(data.get("drop", False)),
            right=bool(data.get("right", True)),
            na_rm=bool(data.get("na_rm", False)),
        )


def setup_params(data: pd.DataFrame, params: Optional[BindotParams] = None) -> BindotParams:
    """Check the layer's parameters once; note when the bin width will default."""
    params = params if params is not None else BindotParams()
    if params.binwidth is None:
        logger.info("Bin width defaults to 1/30 of the range of the data. Pick a better value with `binwidth`.")
    return params


# -----------------------------------------------------------------------------
# Step 3: Per-group binning
# -----------------------------------------------------------------------------


def _group_histodot(data: pd.DataFrame, values: np.ndarray, params: BindotParams, dimension: Any) -> pd.DataFrame:
    bins = compute_bins(
        values,
        dimension,
        binwidth=params.binwidth,
        bins=30,
        center=None,
        boundary=params.origin,
        closed="right" if params.right else "left",
    )
    weight = data["weight"].to_numpy(dtype=float) if "weight" in data.columns else None
    out = bin_vector(values, bins, weight=weight, pad=False)
    return out.rename(columns={"width": "binwidth", "x": "bincenter"})


def _group_dotdensity(data: pd.DataFrame, values: np.ndarray, params: BindotParams, dimension: Any) -> pd.DataFrame:
    if params.binpositions is BinPositions.BYGROUP:
        weight = data["weight"].to_numpy(dtype=float) if "weight" in data.columns else None
        data = densitybin(values, weight=weight, binwidth=params.binwidth, range=dimension)

    # one row per bin center
    out = (
        data.groupby("bincenter", sort=True)
        .agg(binwidth=("binwidth", "first"), count=("weight", "sum"))
        .reset_index()
    )
    if out["count"].sum(skipna=True) != 0:
        out["count"] = out["count"].fillna(0)
        out["ncount"] = out["count"] / out["count"].abs().max()
        if params.drop:
            out = out[out["count"] > 0].reset_index(drop=True)
    return out


_GROUP_METHODS: dict[BinMethod, Callable[[pd.DataFrame, np.ndarray, BindotParams, Any], pd.DataFrame]] = {
    BinMethod.DOTDENSITY: _group_dotdensity,
    BinMethod.HISTODOT: _group_histodot,
}


def compute_group(
    data: pd.DataFrame,
    params: BindotParams,
    dimension: Optional[Sequence[float]] = None,
) -> pd.DataFrame:
    """Bin one group.

    Args:
        data: The group's rows (x, y when binning on y, optional weight).
        params: Layer parameters.
        dimension: Range of the binning axis' scale; the group's data range when None.

    Returns:
        One row per bin. Binning on x sets x = bin center and width = binwidth;
        binning on y sets y = bin center and x = the middle of the group's x range.

    Raises:
        ValueError: Invalid weights.
    """
    if "weight" in data.columns:
        validate_weights(data["weight"])

    axis = params.binaxis.value
    values = data[axis].to_numpy(dtype=float)
    midline = None
    if params.binaxis is BinAxis.Y:
        midline = (data["x"].min() + data["x"].max()) / 2

    out = _GROUP_METHODS[params.method](data, values, params, dimension)

    out = out.rename(columns={"bincenter": axis})
    if params.binaxis is BinAxis.X:
        out["width"] = out["binwidth"]
    else:
        out["x"] = midline
    return out


# -----------------------------------------------------------------------------
# Step 4: Panels and the stat
# -----------------------------------------------------------------------------


def compute_panel(
    data: pd.DataFrame,
    params: BindotParams,
    dimension: Optional[Sequence[float]] = None,
) -> pd.DataFrame:
    """Bin every group of one panel.

    For dotdensity with binpositions="all" the scan runs over the whole panel
    first and each row receives its bin, binwidth, weight and bincenter by
    sorted position. Rows with equal values keep their original order.
    """
    if params.method is BinMethod.DOTDENSITY and params.binpositions is BinPositions.ALL:
        axis = params.binaxis.value
        weight = data["weight"].to_numpy(dtype=float) if "weight" in data.columns else None
        binned = densitybin(data[axis].to_numpy(dtype=float), weight=weight, binwidth=params.binwidth)
        order = np.argsort(data[axis].to_numpy(dtype=float), kind="stable")
        data = data.copy()
        for col in ("bin", "binwidth", "weight", "bincenter"):
            column = np.empty(len(data))
            column[order] = binned[col].to_numpy(dtype=float)
            data[col] = column

    return split_apply(
        data,
        "group",
        lambda group: compute_group(group, params, dimension),
        dropped=DROPPED_COLUMNS,
    )


def stat_bindot(
    data: pd.DataFrame,
    params: Optional[BindotParams] = None,
    dimensions: Optional[dict[str, Sequence[float]]] = None,
) -> pd.DataFrame:
    """Dot-plot bins for every PANEL / group in data.

    Args:
        data: Layer data with x (and y when binning on y), optional weight,
            group and PANEL columns.
        params: Layer parameters; defaults when None.
        dimensions: Scale ranges keyed by axis name ("x", "y").

    Returns:
        Concatenated per-group results with constant group columns carried over.
    """
    params = setup_params(data, params)
    required = ["x", "weight"] if params.binaxis is BinAxis.X else ["x", "y", "weight"]
    data = remove_missing(data, params.na_rm, vars=required, name="stat_bindot")
    dimension = None if dimensions is None else dimensions.get(params.binaxis.value)

    return split_apply(
        data,
        "PANEL",
        lambda panel: compute_panel(panel, params, dimension),
        dropped=DROPPED_COLUMNS,
    )
