"""
Confidence ellipse algorithm - pure pandas/numpy/scipy.

Computes a closed polygon around a 2D point cloud:

    center + radius * (unit circle @ U)

where U is the upper Cholesky factor of a shape matrix estimated under a
multivariate t, multivariate normal or "euclid" (circle) model. Groups that
cannot produce an ellipse return a single row of NaN so drawing code can skip
them.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional, Sequence

import numpy as np
import pandas as pd
from scipy import stats as sp_stats

from nicescales.stats.grouping import remove_missing, split_apply
from nicescales.utils.logging import get_logger

logger = get_logger(__name__)


class EllipseType(Enum):
    """Statistical model behind the ellipse."""
    T = "t"
    NORM = "norm"
    EUCLID = "euclid"


# -----------------------------------------------------------------------------
# Step 1: Location and scatter estimators
# -----------------------------------------------------------------------------


def cov_wt(x: Any, wt: Optional[Any] = None) -> tuple[np.ndarray, np.ndarray]:
    """Weighted mean and unbiased weighted covariance.

    Args:
        x: (n, p) observations.
        wt: Non-negative weights; normalised to sum to 1. Equal weights when None.

    Returns:
        (center, cov)
    """
    x = np.asarray(x, dtype=float)
    n = x.shape[0]
    wt = np.full(n, 1.0 / n) if wt is None else np.asarray(wt, dtype=float)
    if wt.shape[0] != n:
        raise ValueError("length of 'wt' must equal the number of rows in 'x'")
    if np.any(wt < 0):
        raise ValueError("weights must be non-negative")
    if wt.sum() == 0:
        raise ValueError("weights must not all be zero")
    wt = wt / wt.sum()
    center = wt @ x
    xc = np.sqrt(wt)[:, None] * (x - center)
    cov = xc.T @ xc / (1 - np.sum(wt**2))
    return center, cov


def cov_trob(
    x: Any,
    wt: Optional[Any] = None,
    nu: float = 5,
    maxit: int = 25,
    tol: float = 0.01,
) -> tuple[np.ndarray, np.ndarray]:
    """Location and scatter of a multivariate t distribution by iterative reweighting.

    Rows with zero weight are dropped before fitting. A warning is logged when
    the iteration probably did not converge.

    Returns:
        (center, cov)

    Raises:
        ValueError: Missing or infinite values, negative weights, or no positive weight.
        np.linalg.LinAlgError: The weighted data are singular.
    """
    x = np.asarray(x, dtype=float)
    n, p = x.shape
    if not np.all(np.isfinite(x)):
        raise ValueError("missing or infinite values in 'x'")
    wt = np.ones(n) if wt is None else np.asarray(wt, dtype=float)
    if not np.all(np.isfinite(wt)):
        raise ValueError("missing or infinite values in 'wt'")
    if wt.shape[0] != n:
        raise ValueError("length of 'wt' must equal the number of rows in 'x'")
    if np.any(wt < 0):
        raise ValueError("negative weights not allowed")
    if not wt.sum():
        raise ValueError("no positive weights")
    keep = wt > 0
    x, wt = x[keep], wt[keep]

    loc = wt @ x / wt.sum()
    w = np.sqrt(wt)
    converged = False
    for _ in range(maxit):
        w0 = w
        X = x - loc
        _, d, vt = np.linalg.svd(np.sqrt(w / w.sum())[:, None] * X, full_matrices=False)
        if d.min() <= np.finfo(float).eps * d.max() * max(X.shape):
            raise np.linalg.LinAlgError("singular scatter matrix")
        wX = X @ vt.T / d
        Q = np.sum(wX**2, axis=1)
        w = wt * (nu + p) / (nu + Q)
        loc = w @ x / w.sum()
        if np.all(np.abs(w - w0) < tol):
            converged = True
            break

    if not converged or abs(w.mean() - wt.mean()) > tol or abs(np.mean(w * Q) / p - 1) > tol:
        logger.warning("Probable convergence failure of the multivariate t fit")

    Xw = np.sqrt(w)[:, None] * X
    cov = Xw.T @ Xw / wt.sum()
    return loc, cov


def _estimate_t(xy: np.ndarray, weight: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    # the t fit treats weights as case counts
    return cov_trob(xy, wt=weight * len(weight))


def _estimate_norm(xy: np.ndarray, weight: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    return cov_wt(xy, wt=weight)


def _estimate_euclid(xy: np.ndarray, weight: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    center, cov = cov_wt(xy, wt=weight)
    return center, np.diag(np.repeat(np.min(np.diag(cov)), 2))


_ESTIMATORS: dict[EllipseType, Callable[[np.ndarray, np.ndarray], tuple[np.ndarray, np.ndarray]]] = {
    EllipseType.T: _estimate_t,
    EllipseType.NORM: _estimate_norm,
    EllipseType.EUCLID: _estimate_euclid,
}


# -----------------------------------------------------------------------------
# Step 2: Ellipse polygon
# -----------------------------------------------------------------------------


def _no_ellipse(vars: Sequence[str]) -> pd.DataFrame:
    return pd.DataFrame({vars[0]: [np.nan], vars[1]: [np.nan]})


def _parse_type(type: Any) -> Optional[EllipseType]:
    if isinstance(type, EllipseType):
        return type
    try:
        return EllipseType(type)
    except ValueError:
        return None


def calculate_ellipse(
    data: pd.DataFrame,
    vars: Sequence[str] = ("x", "y"),
    type: Any = "t",
    level: float = 0.95,
    segments: int = 51,
) -> pd.DataFrame:
    """Closed ellipse polygon for one group of points.

    Args:
        data: Rows with the two columns in vars and an optional "weight" column.
        vars: Names of the two coordinate columns; also the output column names.
        type: "t", "norm" or "euclid" (or an EllipseType).
        level: Confidence level, or the circle radius for "euclid".
        segments: Number of polygon segments.

    Returns:
        segments + 1 rows whose first and last rows coincide, or one NaN row
        when the type is unknown, there are fewer than 4 points, or the shape
        matrix is singular.
    """
    vars = list(vars)
    dfn = 2
    dfd = len(data) - 1

    ellipse_type = _parse_type(type)
    if ellipse_type is None:
        logger.info("Unrecognized ellipse type %r", type)
        return _no_ellipse(vars)
    if dfd < 3:
        logger.info("Too few points to calculate an ellipse")
        return _no_ellipse(vars)

    weight = data["weight"].to_numpy(dtype=float) if "weight" in data.columns else np.ones(len(data))
    weight = weight / weight.sum()
    xy = data[vars].to_numpy(dtype=float)

    try:
        center, shape = _ESTIMATORS[ellipse_type](xy, weight)
        if not np.all(np.isfinite(shape)):
            raise np.linalg.LinAlgError("non-finite shape matrix")
        chol = np.linalg.cholesky(shape).T
    except np.linalg.LinAlgError:
        logger.info("Shape matrix is not positive definite; cannot calculate an ellipse")
        return _no_ellipse(vars)

    if ellipse_type is EllipseType.EUCLID:
        radius = level / np.max(chol)
    else:
        radius = np.sqrt(dfn * sp_stats.f.ppf(level, dfn, dfd))

    angles = np.arange(segments + 1) * 2 * np.pi / segments
    unit_circle = np.column_stack([np.cos(angles), np.sin(angles)])
    ellipse = center + radius * (unit_circle @ chol)
    return pd.DataFrame(ellipse, columns=vars)


# -----------------------------------------------------------------------------
# Step 3: Layer parameters and the stat
# -----------------------------------------------------------------------------


@dataclass
class EllipseParams:
    """Parameters of the ellipse stat."""
    type: str = "t"
    level: float = 0.95
    segments: int = 51
    na_rm: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value if isinstance(self.type, EllipseType) else self.type,
            "level": self.level,
            "segments": self.segments,
            "na_rm": self.na_rm,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "EllipseParams":
        """Tolerant loader: missing keys take defaults, unknown keys are ignored."""
        unknown = sorted(set(data) - {"type", "level", "segments", "na_rm"})
        if unknown:
            logger.warning("EllipseParams.from_dict: ignoring unknown keys %s", unknown)
        return cls(
            type=data.get("type") or "t",
            level=float(data.get("level", 0.95)),
            segments=int(data.get("segments", 51)),
            na_rm=bool(data.get("na_rm", False)),
        )


def setup_params(params: Optional[EllipseParams] = None) -> EllipseParams:
    """Fill in the default type and check segments.

    Raises:
        ValueError: segments is not a positive integer.
    """
    params = params if params is not None else EllipseParams()
    if params.type is None:
        params.type = EllipseType.T.value
    if int(params.segments) != params.segments or params.segments < 1:
        raise ValueError(f"`segments` must be a positive integer, not {params.segments!r}")
    return params


def stat_ellipse(data: pd.DataFrame, params: Optional[EllipseParams] = None) -> pd.DataFrame:
    """Ellipse polygons for every PANEL / group in data.

    Rows with a missing x or y are removed first. Columns that are constant
    within a group are carried onto that group's polygon rows; weight is not.
    """
    params = setup_params(params)
    data = remove_missing(data, params.na_rm, vars=("x", "y"), name="stat_ellipse")

    def compute_group(group: pd.DataFrame) -> pd.DataFrame:
        return calculate_ellipse(group, ("x", "y"), params.type, params.level, int(params.segments))

    def compute_panel(panel: pd.DataFrame) -> pd.DataFrame:
        return split_apply(panel, "group", compute_group, dropped=("weight",))

    return split_apply(data, "PANEL", compute_panel, dropped=("weight",))
