"""Unit tests for the dot-plot binning stat (dotdensity and histodot)."""

import logging

import numpy as np
import pandas as pd
import pytest

from nicescales.stats.bindot import (
    BinAxis,
    BindotParams,
    BinMethod,
    BinPositions,
    densitybin,
    setup_params,
    stat_bindot,
    validate_weights,
)

VALUES = [1.0, 1.05, 1.2, 3.0, 3.1]


# -----------------------------------------------------------------------------
# densitybin
# -----------------------------------------------------------------------------


def test_densitybin_greedy_scan():
    out = densitybin(VALUES, binwidth=0.5)
    assert list(out.columns) == ["x", "bin", "binwidth", "weight", "bincenter"]
    assert list(out["bin"]) == [1, 1, 1, 2, 2]
    assert out["bincenter"].tolist() == pytest.approx([1.1, 1.1, 1.1, 3.05, 3.05])


def test_value_at_bin_end_starts_a_new_bin():
    out = densitybin([0.0, 0.5, 1.0], binwidth=0.5)
    assert list(out["bin"]) == [1, 2, 3]


def test_densitybin_sorts_values():
    out = densitybin([3.0, 1.0, 2.0], binwidth=0.1)
    assert list(out["x"]) == [1.0, 2.0, 3.0]


def test_default_binwidth_is_a_thirtieth_of_the_range():
    out = densitybin([0.0, 3.0])
    assert out["binwidth"].iloc[0] == pytest.approx(0.1)
    out = densitybin([0.5], range=(0.0, 6.0))
    assert out["binwidth"].iloc[0] == pytest.approx(0.2)


def test_missing_weight_counts_as_zero():
    out = densitybin([1.0, 2.0], weight=[np.nan, 2.0], binwidth=0.5)
    assert list(out["weight"]) == [0.0, 2.0]


def test_missing_values_get_no_bin():
    out = densitybin([2.0, np.nan, 1.0], binwidth=0.5)
    assert list(out["x"][:2]) == [1.0, 2.0]
    assert np.isnan(out["bin"].iloc[-1])


def test_densitybin_empty_input():
    assert densitybin([]).empty


# -----------------------------------------------------------------------------
# Weights
# -----------------------------------------------------------------------------


@pytest.mark.parametrize("weight", [[1, -1], [1, 2.5], [np.inf]])
def test_validate_weights_rejects(weight):
    with pytest.raises(ValueError):
        validate_weights(weight)


def test_validate_weights_accepts_zero_and_missing():
    w = validate_weights([0, 3, np.nan])
    assert w[:2].tolist() == [0.0, 3.0]
    assert np.isnan(w[2])


@pytest.mark.parametrize("bad", [-1.0, 2.5])
def test_stat_rejects_invalid_weights(bad):
    data = pd.DataFrame({"x": VALUES, "weight": [1.0, bad, 1.0, 1.0, 1.0]})
    with pytest.raises(ValueError):
        stat_bindot(data, BindotParams(binwidth=0.5))


def test_zero_weight_contributes_nothing():
    data = pd.DataFrame({"x": VALUES, "weight": [1.0, 1.0, 0.0, 1.0, 1.0]})
    out = stat_bindot(data, BindotParams(binwidth=0.5))
    assert list(out["count"]) == [2.0, 2.0]


# -----------------------------------------------------------------------------
# Dot density through the stat
# -----------------------------------------------------------------------------


def test_stat_bindot_collapses_to_bin_centers():
    data = pd.DataFrame({"x": VALUES, "group": 1, "PANEL": 1})
    out = stat_bindot(data, BindotParams(binwidth=0.5))
    assert out["x"].tolist() == pytest.approx([1.1, 3.05])
    assert list(out["count"]) == [3.0, 2.0]
    assert out["ncount"].tolist() == pytest.approx([1.0, 2.0 / 3.0])
    assert list(out["width"]) == [0.5, 0.5]
    assert list(out["binwidth"]) == [0.5, 0.5]
    assert (out["group"] == 1).all() and (out["PANEL"] == 1).all()
    for col in ("weight", "bin", "bincenter"):
        assert col not in out.columns


def test_drop_removes_empty_bins():
    data = pd.DataFrame({"x": [1.0, 3.0], "weight": [0.0, 2.0]})
    kept = stat_bindot(data, BindotParams(binwidth=0.5))
    dropped = stat_bindot(data, BindotParams(binwidth=0.5, drop=True))
    assert list(kept["count"]) == [0.0, 2.0]
    assert list(dropped["x"]) == [3.0]


def test_all_zero_weights_leave_out_ncount():
    data = pd.DataFrame({"x": [1.0, 3.0], "weight": [0.0, 0.0]})
    out = stat_bindot(data, BindotParams(binwidth=0.5))
    assert list(out["count"]) == [0.0, 0.0]
    assert "ncount" not in out.columns


def test_binning_on_y_sets_midline():
    data = pd.DataFrame({"x": [0.0, 0.0, 2.0, 2.0], "y": [1.0, 1.05, 3.0, 3.1]})
    out = stat_bindot(data, BindotParams(binwidth=0.5, binaxis="y"))
    assert out["y"].tolist() == pytest.approx([1.025, 3.05])
    assert list(out["x"]) == [1.0, 1.0]
    assert "width" not in out.columns


def test_bins_line_up_across_groups_with_binpositions_all():
    """Panel-wide bins: both groups share centers 1.15 and 3.2."""
    data = pd.DataFrame(
        {
            "x": [1.05, 1.0, 1.3, 1.2, 3.4, 3.0, 3.1],
            "group": ["a", "b", "a", "b", "a", "b", "b"],
        }
    )
    out = stat_bindot(data, BindotParams(binwidth=0.5, binpositions="all"))
    a = out[out["group"] == "a"]
    b = out[out["group"] == "b"]
    assert a["x"].tolist() == pytest.approx([1.15, 3.2])
    assert b["x"].tolist() == pytest.approx([1.15, 3.2])
    assert list(a["count"]) == [2.0, 1.0]
    assert list(b["count"]) == [2.0, 2.0]


def test_binpositions_all_matches_ungrouped_bins(rng):
    """Random data: 'all' centers come from the ungrouped bins and counts add up per center."""
    data = pd.DataFrame(
        {
            "x": np.round(rng.normal(0.0, 2.0, size=150), 2),
            "group": rng.choice(["a", "b", "c"], size=150),
        }
    )
    grouped = stat_bindot(data, BindotParams(binwidth=0.4, binpositions="all"))
    pooled = stat_bindot(data.drop(columns="group"), BindotParams(binwidth=0.4))

    pooled_counts = dict(zip(np.round(pooled["x"], 10), pooled["count"]))
    grouped_counts = grouped.assign(x=np.round(grouped["x"], 10)).groupby("x")["count"].sum()

    assert set(grouped_counts.index) <= set(pooled_counts)
    assert grouped["count"].sum() == pooled["count"].sum() == 150.0
    for center, count in grouped_counts.items():
        assert count == pooled_counts[center]


def test_bygroup_bins_differ_across_groups():
    data = pd.DataFrame(
        {
            "x": [1.05, 1.0, 1.3, 1.2, 3.4, 3.0, 3.1],
            "group": ["a", "b", "a", "b", "a", "b", "b"],
        }
    )
    out = stat_bindot(data, BindotParams(binwidth=0.5))
    a = out[out["group"] == "a"]
    assert a["x"].tolist() == pytest.approx([1.175, 3.4])


def test_panels_are_binned_separately():
    data = pd.DataFrame({"x": [1.0, 1.2, 5.0, 5.4], "PANEL": [1, 1, 2, 2]})
    out = stat_bindot(data, BindotParams(binwidth=1.0))
    assert out["x"].tolist() == pytest.approx([1.1, 5.2])
    assert list(out["PANEL"]) == [1, 2]


# -----------------------------------------------------------------------------
# Histodot
# -----------------------------------------------------------------------------


def test_histodot_uses_fixed_width_bins():
    data = pd.DataFrame({"x": [0.1, 0.2, 1.1, 1.9]})
    out = stat_bindot(data, BindotParams(binwidth=1.0, method="histodot", origin=0.0))
    assert list(out["x"]) == [0.5, 1.5]
    assert list(out["count"]) == [2.0, 2.0]
    assert list(out["width"]) == [1.0, 1.0]


def test_histodot_left_closed():
    data = pd.DataFrame({"x": [0.0, 1.0, 1.5, 2.0]})
    out = stat_bindot(data, BindotParams(binwidth=1.0, method="histodot", origin=0.0, right=False))
    assert list(out["count"]) == [1.0, 3.0]


# -----------------------------------------------------------------------------
# Messages and parameters
# -----------------------------------------------------------------------------


def test_default_binwidth_is_announced_once(caplog):
    data = pd.DataFrame({"x": [1.0, 2.0, 5.0, 6.0], "PANEL": [1, 1, 2, 2]})
    with caplog.at_level(logging.INFO, logger="nicescales"):
        stat_bindot(data)
    messages = [r.getMessage() for r in caplog.records if "Bin width defaults" in r.getMessage()]
    assert len(messages) == 1


def test_missing_rows_removed_with_warning(caplog):
    data = pd.DataFrame({"x": [1.0, np.nan, 2.0]})
    with caplog.at_level(logging.WARNING, logger="nicescales"):
        out = stat_bindot(data, BindotParams(binwidth=0.5))
    assert out["count"].sum() == 2.0
    assert any("Removed 1 row containing missing values" in r.getMessage() for r in caplog.records)


def test_params_coerce_strings_to_enums():
    params = BindotParams(binaxis="y", method="histodot", binpositions="all")
    assert params.binaxis is BinAxis.Y
    assert params.method is BinMethod.HISTODOT
    assert params.binpositions is BinPositions.ALL


@pytest.mark.parametrize(
    "kwargs",
    [{"method": "bogus"}, {"binaxis": "z"}, {"binpositions": "some"}, {"binwidth": 0.0}, {"binwidth": -1.0}],
)
def test_params_reject_invalid_values(kwargs):
    with pytest.raises(ValueError):
        BindotParams(**kwargs)


def test_params_round_trip():
    params = BindotParams(binwidth=0.25, binaxis="y", method="histodot", origin=0.0, drop=True, right=False)
    assert BindotParams.from_dict(params.to_dict()) == params


def test_setup_params_defaults():
    params = setup_params(pd.DataFrame({"x": [1.0]}))
    assert params.binwidth is None
    assert params.method is BinMethod.DOTDENSITY
