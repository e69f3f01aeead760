"""Unit tests for the generic continuous scale and its helpers."""

import numpy as np
import pytest

from nicescales.scales.continuous import (
    ContinuousPositionScale,
    ContinuousScale,
    censor,
    rescale,
    squish,
    zero_range,
)
from nicescales.scales.conventions import DEFAULT
from nicescales.scales.transforms import identity_transform


def _scale(**kwargs):
    return ContinuousPositionScale(["x"], identity_transform(), **kwargs)


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------


def test_censor_replaces_out_of_range_with_nan():
    out = censor([-0.5, 0.5, 1.5, np.inf], (0.0, 1.0))
    assert np.isnan(out[0]) and np.isnan(out[2])
    assert out[1] == 0.5
    assert np.isinf(out[3])


def test_squish_clamps_to_range():
    assert list(squish([-1.0, 0.5, 3.0], (0.0, 1.0))) == [0.0, 0.5, 1.0]


def test_rescale():
    assert list(rescale([0.0, 5.0, 10.0], from_range=(0.0, 10.0))) == [0.0, 0.5, 1.0]
    assert list(rescale([3.0, 3.0], from_range=(3.0, 3.0))) == [0.5, 0.5]
    assert list(rescale([1.0, 3.0])) == [0.0, 1.0]


def test_zero_range():
    assert zero_range((1.0, 1.0)) is True
    assert zero_range((0.0, 1.0)) is False
    assert zero_range((1e10, 1e10 + 1e-7)) is True


# -----------------------------------------------------------------------------
# Training and limits
# -----------------------------------------------------------------------------


def test_untrained_scale_limits_default_to_unit_interval():
    assert list(_scale().get_limits()) == [0.0, 1.0]


def test_train_extends_range():
    scale = _scale()
    scale.train([1.0, 5.0])
    scale.train([3.0, 10.0, np.nan])
    assert scale.range == (1.0, 10.0)
    assert list(scale.get_limits()) == [1.0, 10.0]
    assert list(scale.dimension()) == [1.0, 10.0]


def test_nan_limits_fall_back_to_trained_range():
    scale = _scale(limits=[np.nan, 20.0])
    scale.train([1.0, 5.0])
    assert list(scale.get_limits()) == [1.0, 20.0]


def test_limits_must_have_two_values():
    with pytest.raises(ValueError):
        _scale(limits=[1.0, 2.0, 3.0])


def test_position_map_only_applies_oob():
    scale = _scale(limits=[0.0, 1.0])
    out = scale.map([-1.0, 0.5])
    assert np.isnan(out[0]) and out[1] == 0.5


def test_non_position_map_rescales_and_applies_palette():
    scale = ContinuousScale(["alpha"], identity_transform(), palette=lambda v: v * 100)
    scale.train([0.0, 10.0])
    assert list(scale.map([0.0, 5.0, 10.0])) == [0.0, 50.0, 100.0]


# -----------------------------------------------------------------------------
# Breaks and labels
# -----------------------------------------------------------------------------


def test_get_breaks_censors_outside_limits():
    """Breaks outside the limits stay as NaN so fixed labels stay aligned."""
    scale = _scale()
    scale.train([1.0, 9.0])
    breaks = scale.get_breaks()
    assert len(breaks) == 6
    assert np.isnan(breaks[0]) and np.isnan(breaks[-1])
    assert list(breaks[1:-1]) == [2.0, 4.0, 6.0, 8.0]


def test_break_info_drops_censored_breaks():
    scale = _scale()
    scale.train([1.0, 9.0])
    info = scale.break_info()
    assert list(info["major_source"]) == [2.0, 4.0, 6.0, 8.0]
    assert info["labels"] == ["2", "4", "6", "8"]
    assert np.allclose(info["major"], (np.array([2.0, 4.0, 6.0, 8.0]) - 1.0) / 8.0)
    assert list(info["range"]) == [1.0, 9.0]
    assert np.all((info["minor_source"] >= 1.0) & (info["minor_source"] <= 9.0))


def test_fixed_breaks_and_labels():
    scale = _scale(breaks=[2.0, 5.0, 50.0], labels=["two", "five", "fifty"])
    scale.train([0.0, 10.0])
    info = scale.break_info()
    assert list(info["major_source"]) == [2.0, 5.0]
    assert info["labels"] == ["two", "five"]


def test_callable_breaks_and_labels_receive_domain_values():
    scale = _scale(breaks=lambda lim: [lim[0], lim[1]], labels=lambda v: [f"<{x:g}>" for x in v])
    scale.train([1.0, 3.0])
    assert scale.get_labels() == ["<1>", "<3>"]


def test_label_length_mismatch_raises():
    scale = _scale(breaks=[1.0, 2.0, 3.0], labels=["a", "b"])
    scale.train([0.0, 4.0])
    with pytest.raises(ValueError):
        scale.get_labels()


def test_no_breaks():
    scale = _scale(breaks=None)
    scale.train([0.0, 4.0])
    info = scale.break_info()
    assert info["major"] is None
    assert info["labels"] is None
    assert info["minor"] is None


def test_no_minor_breaks():
    scale = _scale(minor_breaks=None)
    scale.train([0.0, 4.0])
    assert scale.get_breaks_minor() is None


def test_zero_width_range_has_single_break():
    scale = _scale()
    scale.train([2.0, 2.0])
    assert list(scale.get_breaks()) == [2.0]


# -----------------------------------------------------------------------------
# Titles, clone, repr
# -----------------------------------------------------------------------------


def test_make_title():
    assert _scale().make_title("from layer") == "from layer"
    assert _scale(name="Time").make_title("from layer") == "Time"
    assert _scale(name=None).make_title("from layer") is None


def test_sec_name_without_secondary_axis_is_default():
    assert _scale().sec_name() is DEFAULT
    assert _scale(name="T").make_sec_title("label") == "T"


def test_clone_is_untrained():
    scale = _scale()
    scale.train([0.0, 5.0])
    copy = scale.clone()
    assert copy.range is None
    assert copy.trans is scale.trans
    assert scale.range == (0.0, 5.0)


def test_repr_shows_specs():
    text = repr(_scale(breaks=None))
    assert "ContinuousPositionScale" in text
    assert "breaks=(none)" in text
    assert "labels=(default)" in text
