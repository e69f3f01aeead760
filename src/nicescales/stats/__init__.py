"""Statistical summaries: confidence ellipses and dot-plot binning."""

from nicescales.stats.bindot import (
    BinAxis,
    BindotParams,
    BinMethod,
    BinPositions,
    compute_group,
    compute_panel,
    densitybin,
    stat_bindot,
    validate_weights,
)
from nicescales.stats.binning import Bins, bin_breaks, bin_breaks_bins, bin_breaks_width, bin_vector, compute_bins
from nicescales.stats.ellipse import EllipseParams, EllipseType, calculate_ellipse, cov_trob, cov_wt, stat_ellipse

__all__ = [
    "BinAxis",
    "BinMethod",
    "BinPositions",
    "BindotParams",
    "Bins",
    "EllipseParams",
    "EllipseType",
    "bin_breaks",
    "bin_breaks_bins",
    "bin_breaks_width",
    "bin_vector",
    "calculate_ellipse",
    "compute_bins",
    "compute_group",
    "compute_panel",
    "cov_trob",
    "cov_wt",
    "densitybin",
    "stat_bindot",
    "stat_ellipse",
    "validate_weights",
]
