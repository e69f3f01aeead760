"""Unit tests for secondary axes on position scales."""

import numpy as np
import pytest

from nicescales.scales.continuous import ContinuousPositionScale
from nicescales.scales.conventions import DEFAULT, DERIVE
from nicescales.scales.secondary_axis import SecondaryAxis, dup_axis, sec_axis
from nicescales.scales.transforms import identity_transform


def _scale(axis=None, **kwargs):
    scale = ContinuousPositionScale(["x"], identity_transform(), secondary_axis=axis, **kwargs)
    scale.train([0.0, 10.0])
    return scale


def test_scaled_secondary_axis_breaks_map_back_to_primary():
    """A doubling axis over [0, 10] shows 0..20 with breaks at the primary quarter points."""
    info = _scale(sec_axis(lambda x: x * 2)).break_info()
    assert np.allclose(info["sec_range"], [0.0, 20.0])
    assert list(info["sec_major_source"]) == [0.0, 5.0, 10.0, 15.0, 20.0]
    assert np.allclose(info["sec_major"], [0.0, 0.25, 0.5, 0.75, 1.0])
    assert info["sec_labels"] == ["0", "5", "10", "15", "20"]


def test_primary_break_info_is_unchanged_by_secondary_axis():
    plain = _scale().break_info()
    with_sec = _scale(sec_axis(lambda x: x + 1)).break_info()
    assert np.allclose(plain["major"], with_sec["major"])
    assert plain["labels"] == with_sec["labels"]
    assert "sec_major" not in plain


def test_decreasing_transform_is_allowed():
    info = _scale(sec_axis(lambda x: -x)).break_info()
    assert np.allclose(info["sec_range"], [-10.0, 0.0])
    assert np.allclose(np.sort(info["sec_major"]), [0.0, 0.2, 0.4, 0.6, 0.8, 1.0])


def test_non_monotonic_transform_raises():
    with pytest.raises(ValueError):
        _scale(sec_axis(lambda x: (x - 5.0) ** 2)).break_info()


def test_dup_axis_copies_primary_settings():
    scale = _scale(dup_axis(), name="Temp", breaks=[2.0, 4.0])
    info = scale.break_info()
    assert info["sec_labels"] == info["labels"] == ["2", "4"]
    assert np.allclose(info["sec_major"], info["major"])
    assert scale.sec_name() == "Temp"
    assert scale.make_sec_title("layer label") == "Temp"


def test_dup_axis_overrides():
    scale = _scale(dup_axis(name="Other"), name="Temp")
    scale.break_info()
    assert scale.make_sec_title("layer label") == "Other"


def test_secondary_title_falls_back_to_label():
    scale = _scale(sec_axis(lambda x: x))
    assert scale.sec_name() is DEFAULT
    assert scale.make_sec_title("layer label") == "layer label"


def test_sec_axis_requires_callable():
    with pytest.raises(TypeError):
        sec_axis(5)


def test_dup_axis_uses_derive_sentinels():
    axis = dup_axis()
    assert axis.name is DERIVE and axis.breaks is DERIVE and axis.labels is DERIVE


def test_empty_secondary_axis_adds_nothing():
    scale = _scale(SecondaryAxis(transform=None))
    assert scale.has_secondary_axis() is False
    assert "sec_range" not in scale.break_info()


def test_clone_drops_secondary_axis():
    scale = _scale(sec_axis(lambda x: x))
    assert scale.clone().secondary_axis is None
