"""Tests for legend pairs and the folium legend control."""

from __future__ import annotations

import folium
import pytest

from minicharts.config import LEGEND_LAYER_ID
from minicharts.elements import get_child
from minicharts.errors import ValidationError
from minicharts.legend import (
    add_legend_control,
    compute_legend,
    get_legend_control,
    remove_legend_control,
)


def test_legend_cycles_palette() -> None:
    """Three variables over a two-color palette reuse the first color."""

    pairs = compute_legend(["a", "b", "c"], ["#p0", "#p1"])
    assert pairs == [("a", "#p0"), ("b", "#p1"), ("c", "#p0")]


def test_legend_needs_several_variables_and_flag() -> None:
    """No legend for one variable, a disabled flag or unnamed columns."""

    assert compute_legend(["a"], ["#p0"]) == []
    assert compute_legend(["a", "b"], ["#p0"], show=False) == []
    assert compute_legend(None, ["#p0"]) == []


def test_legend_control_is_registered_under_reserved_name() -> None:
    """The control lives under minichartsLegend and can be dropped again."""

    m = folium.Map()
    control = add_legend_control(m, [("a", "#111111"), ("b", "#222222")], "bottomleft")

    assert get_child(m, LEGEND_LAYER_ID) is control
    assert get_legend_control(m).labels == ["a", "b"]
    html = m.get_root().render()
    assert "minicharts-legend" in html
    assert '"bottomleft"' in html

    assert remove_legend_control(m) is True
    assert get_legend_control(m) is None
    assert remove_legend_control(m) is False


def test_legend_control_replaces_previous_one() -> None:
    """Showing a new legend replaces the old control."""

    m = folium.Map()
    add_legend_control(m, [("a", "#1"), ("b", "#2")])
    add_legend_control(m, [("x", "#1"), ("y", "#2")])
    assert get_legend_control(m).labels == ["x", "y"]


def test_legend_control_rejects_unknown_position() -> None:
    """Positions are the four leaflet corners."""

    with pytest.raises(ValidationError):
        add_legend_control(folium.Map(), [("a", "#1"), ("b", "#2")], "middle")
