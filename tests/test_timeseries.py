"""Tests for chartdata coercion and the per-timestep reshape."""

from __future__ import annotations

import math
from datetime import date, datetime

import numpy as np
import pandas as pd
import pytest

from minicharts.errors import DataShapeError
from minicharts.timeseries import coerce_chartdata, reshape_time_series


def _column(values) -> pd.DataFrame:
    return pd.DataFrame({"v": [float(v) for v in values]})


def test_reshape_splits_rows_by_time_key() -> None:
    """Two charts over three time steps give three slices of two rows."""

    data = _column([1, 2, 3, 4, 5, 6])
    series = reshape_time_series(data, [1, 1, 2, 2, 3, 3], n_anchors=2)

    assert series.keys == [1, 2, 3]
    assert series.labels == ["1", "2", "3"]
    assert series.slices == [[[1.0], [2.0]], [[3.0], [4.0]], [[5.0], [6.0]]]
    assert series.initial_index == 0


def test_reshape_keeps_first_seen_key_order() -> None:
    """Distinct keys follow encounter order, not sort order."""

    data = _column([1, 2, 3, 4])
    series = reshape_time_series(data, ["b", "b", "a", "a"], n_anchors=2)
    assert series.labels == ["b", "a"]
    assert series.slices[0] == [[1.0], [2.0]]


def test_reshape_groups_interleaved_rows_by_position() -> None:
    """Rows are grouped by key position while keeping chart order."""

    data = _column([10, 20, 11, 21])
    series = reshape_time_series(data, [1, 2, 1, 2], n_anchors=2)
    assert series.positions == [[0, 2], [1, 3]]
    assert series.slices == [[[10.0], [11.0]], [[20.0], [21.0]]]


def test_reshape_without_time_is_a_single_step() -> None:
    """No time vector means one implicit step keyed 1."""

    data = _column([1, 2, 3])
    series = reshape_time_series(data, None, n_anchors=3)
    assert series.labels == ["1"]
    assert series.slices == [[[1.0], [2.0], [3.0]]]


def test_reshape_rejects_unbalanced_time_keys() -> None:
    """A key appearing twice as often as another is a DataShapeError."""

    data = _column([1, 2, 3])
    with pytest.raises(DataShapeError):
        reshape_time_series(data, [1, 1, 2], n_anchors=1)


def test_reshape_rejects_row_count_not_matching_charts() -> None:
    """Rows must equal charts x distinct time steps."""

    data = _column([1, 2, 3, 4, 5, 6])
    with pytest.raises(DataShapeError):
        reshape_time_series(data, [1, 1, 1, 2, 2, 2], n_anchors=2)


def test_reshape_rejects_time_length_mismatch() -> None:
    """The time vector is aligned with chartdata rows."""

    with pytest.raises(DataShapeError):
        reshape_time_series(_column([1, 2, 3, 4]), [1, 2], n_anchors=2)


def test_date_keys_use_time_format() -> None:
    """Date keys are formatted with the caller's strftime pattern."""

    keys = [date(2020, 1, 1)] * 2 + [date(2020, 2, 1)] * 2
    data = _column([1, 2, 3, 4])

    default = reshape_time_series(data, keys, n_anchors=2)
    assert default.labels == ["2020-01-01", "2020-02-01"]

    custom = reshape_time_series(data, keys, n_anchors=2, time_format="%b %Y")
    assert custom.labels == ["Jan 2020", "Feb 2020"]


def test_datetime_keys_include_time_of_day() -> None:
    """Datetimes off midnight keep hours in the default label."""

    keys = [datetime(2021, 5, 1, 6, 30), datetime(2021, 5, 1, 18, 0)]
    series = reshape_time_series(_column([1, 2]), keys, n_anchors=1)
    assert series.labels == ["2021-05-01 06:30:00", "2021-05-01 18:00:00"]


def test_initial_time_lookup() -> None:
    """initial_time selects its step; unknown values fall back to the first."""

    keys = [date(2020, 1, 1), date(2020, 2, 1), date(2020, 3, 1)]
    data = _column([1, 2, 3])
    assert reshape_time_series(data, keys, 1, initial_time=date(2020, 2, 1)).initial_index == 1
    assert reshape_time_series(data, keys, 1, initial_time=date(1999, 1, 1)).initial_index == 0
    assert reshape_time_series(data, [5, 6, 7], 1, initial_time=7).initial_index == 2
    assert reshape_time_series(data, [5, 6, 7], 1, initial_time=8).initial_index == 0


def test_unhashable_initial_time_falls_back_to_first_step() -> None:
    """A list is not a time key; the first step is shown."""

    data = _column([1, 2, 3])
    assert reshape_time_series(data, [5, 6, 7], 1, initial_time=[6]).initial_index == 0


def test_coerce_vector_for_single_chart_is_one_row() -> None:
    """A plain vector for one chart holds one value per variable."""

    frame, names = coerce_chartdata([1, 2, 3], expected_rows=1)
    assert frame.shape == (1, 3)
    assert names is None


def test_coerce_vector_matching_rows_is_one_column() -> None:
    """A vector with one value per row is a single variable."""

    frame, _ = coerce_chartdata(np.array([1, 2, 3]), expected_rows=3)
    assert frame.shape == (3, 1)


def test_coerce_scalar_fills_every_row() -> None:
    """A scalar gives every chart the same single value."""

    frame, _ = coerce_chartdata(1, expected_rows=4)
    assert frame.shape == (4, 1)
    assert frame[0].tolist() == [1.0] * 4


def test_coerce_dataframe_keeps_column_names() -> None:
    """DataFrame columns double as variable labels."""

    frame, names = coerce_chartdata(pd.DataFrame({"a": [1], "b": [2]}), expected_rows=1)
    assert names == ["a", "b"]
    assert frame.shape == (1, 2)


def test_coerce_rejects_non_numeric() -> None:
    """Text chartdata is a DataShapeError."""

    with pytest.raises(DataShapeError):
        coerce_chartdata(pd.DataFrame({"a": ["x"]}), expected_rows=1)


def test_nan_cells_become_none() -> None:
    """Missing values are shipped as JSON null."""

    data = pd.DataFrame([[1.0, math.nan]])
    series = reshape_time_series(data, None, n_anchors=1)
    assert series.slices == [[[1.0, None]]]
