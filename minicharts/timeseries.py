"""
timeseries.py
Reshape long-format chartdata into one slice per time step.

Row convention: chartdata holds one row per (time step, chart). Rows are
grouped by time key: every row carrying the first distinct key (in chart
order), then every row carrying the second key, and so on. The partition is
computed from the positions of each key, so only the order of charts within
a key matters.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from .config import DEFAULT_DATE_FORMAT, DEFAULT_DATETIME_FORMAT, DEFAULT_TIME_KEY
from .errors import DataShapeError
from .options import as_list, is_sequence

log = logging.getLogger(__name__)


@dataclass
class TimeSeries:
    """Distinct time keys with the row positions and chartdata slice of each."""

    keys: List[Any]
    labels: List[str]
    positions: List[List[int]]
    slices: List[List[List[Optional[float]]]] = field(default_factory=list)
    initial_index: int = 0

    @property
    def n_steps(self) -> int:
        return len(self.keys)

    @property
    def initial_label(self) -> str:
        return self.labels[self.initial_index]


# ----------------------------
# Helpers: chartdata coercion
# ----------------------------

def coerce_chartdata(chartdata: Any, expected_rows: int) -> Tuple[pd.DataFrame, Optional[List[str]]]:
    """
    Turn caller chartdata into a float DataFrame and its column names.

    Scalars fill a single column. A 1-D sequence is a column when its length
    matches ``expected_rows``, otherwise a single row (only valid when one
    row is expected). DataFrames and named Series keep their column names.
    """
    names: Optional[List[str]] = None
    if isinstance(chartdata, pd.DataFrame):
        frame = chartdata
        if not isinstance(frame.columns, pd.RangeIndex):
            names = [str(col) for col in frame.columns]
    elif isinstance(chartdata, pd.Series):
        frame = chartdata.to_frame()
        if chartdata.name is not None:
            names = [str(chartdata.name)]
    else:
        try:
            arr = np.asarray(chartdata, dtype=float)
        except (TypeError, ValueError) as exc:
            raise DataShapeError(f"chartdata is not numeric: {exc}") from exc
        if arr.ndim == 0:
            arr = np.full((expected_rows, 1), float(arr))
        elif arr.ndim == 1:
            if len(arr) == expected_rows:
                arr = arr.reshape(-1, 1)
            elif expected_rows == 1:
                arr = arr.reshape(1, -1)
            else:
                raise DataShapeError(
                    f"chartdata has {len(arr)} values but {expected_rows} rows are expected."
                )
        elif arr.ndim != 2:
            raise DataShapeError(f"chartdata must be 1-D or 2-D, got {arr.ndim} dimensions.")
        frame = pd.DataFrame(arr)

    try:
        frame = frame.astype(float)
    except (TypeError, ValueError) as exc:
        raise DataShapeError(f"chartdata columns must be numeric: {exc}") from exc
    if frame.shape[0] == 0 or frame.shape[1] == 0:
        raise DataShapeError("chartdata is empty.")
    return frame.reset_index(drop=True), names


def frame_rows(values: Any) -> List[List[Optional[float]]]:
    """Nested float lists with NaN replaced by None (JSON null)."""
    arr = np.asarray(values, dtype=float)
    return [[None if np.isnan(v) else float(v) for v in row] for row in arr]


def partition_values(values: Sequence[Any], positions: List[List[int]]) -> List[List[Any]]:
    return [[values[i] for i in pos] for pos in positions]


# ----------------------------
# Helpers: time keys
# ----------------------------

def _is_datetime_like(value: Any) -> bool:
    return isinstance(value, (date, datetime, np.datetime64, pd.Timestamp))


def time_vector(time: Any, n_rows: int) -> List[Any]:
    """Time keys aligned with chartdata rows; a missing time means one step."""
    if time is None:
        return [DEFAULT_TIME_KEY] * n_rows
    if not is_sequence(time):
        return [time] * n_rows
    keys = as_list(time)
    if len(keys) != n_rows:
        raise DataShapeError(
            f"time has {len(keys)} values but chartdata has {n_rows} rows."
        )
    return keys


def format_time_labels(keys: pd.Index, time_format: Optional[str] = None) -> List[str]:
    """str() for plain keys; strftime for datetime keys."""
    if isinstance(keys, pd.DatetimeIndex):
        fmt = time_format
        if not fmt:
            fmt = DEFAULT_DATE_FORMAT if (keys == keys.normalize()).all() else DEFAULT_DATETIME_FORMAT
        return [ts.strftime(fmt) for ts in keys]
    return [str(k) for k in keys.tolist()]


def _initial_index(keys: pd.Index, initial_time: Any) -> int:
    if initial_time is None:
        return 0
    target = initial_time
    try:
        if isinstance(keys, pd.DatetimeIndex):
            target = pd.Timestamp(initial_time)
        loc = keys.get_loc(target)
    except (KeyError, TypeError, ValueError, pd.errors.InvalidIndexError):
        log.debug("initial_time=%r reason=not_found fallback_index=0", initial_time)
        return 0
    if not isinstance(loc, (int, np.integer)):
        return 0
    return int(loc)


# ----------------------------
# Public API
# ----------------------------

def reshape_time_series(
    data: pd.DataFrame,
    time: Any,
    n_anchors: int,
    time_format: Optional[str] = None,
    initial_time: Any = None,
) -> TimeSeries:
    """
    Split ``data`` into one slice per distinct time key.

    Raises DataShapeError unless every distinct key occurs exactly
    ``n_anchors`` times (rows == n_anchors * distinct keys). An
    ``initial_time`` absent from the keys falls back to the first step.
    """
    n_rows = data.shape[0]
    raw_keys = time_vector(time, n_rows)

    if raw_keys and all(_is_datetime_like(k) for k in raw_keys):
        index = pd.DatetimeIndex(pd.to_datetime(raw_keys))
    else:
        index = pd.Index(raw_keys)

    codes, uniques = pd.factorize(index, sort=False)
    if (codes < 0).any():
        raise DataShapeError("time contains missing values.")

    n_steps = len(uniques)
    counts = np.bincount(codes, minlength=n_steps)
    if n_rows % n_steps != 0 or (counts != counts[0]).any():
        raise DataShapeError(
            "Each time value must appear the same number of times; "
            f"got counts {sorted(set(counts.tolist()))} over {n_steps} time values."
        )
    if n_rows != n_anchors * n_steps:
        raise DataShapeError(
            f"chartdata has {n_rows} rows; expected {n_anchors} charts x {n_steps} "
            f"time steps = {n_anchors * n_steps}."
        )

    positions = [np.flatnonzero(codes == k).tolist() for k in range(n_steps)]
    values = data.to_numpy(dtype=float)
    slices = [frame_rows(values[pos]) for pos in positions]

    series = TimeSeries(
        keys=uniques.tolist(),
        labels=format_time_labels(uniques, time_format),
        positions=positions,
        slices=slices,
        initial_index=_initial_index(uniques, initial_time),
    )
    log.debug("time_steps=%d charts=%d variables=%d", n_steps, n_anchors, data.shape[1])
    return series
