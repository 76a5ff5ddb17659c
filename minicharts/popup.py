"""
popup.py
Popup options for minicharts and their payload form.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .errors import DataShapeError
from .options import as_list, is_sequence
from .timeseries import TimeSeries, coerce_chartdata, frame_rows, partition_values


@dataclass
class PopupArgs:
    """Options controlling popup generation.

    labels: names of the chartdata variables; default to chartdata column names.
    sup_values: extra table (one row per chartdata row) shown under the chart values.
    sup_labels: names of the sup_values columns; default to its column names.
    html: one HTML string per chartdata row, replacing the generated popup.
    """

    labels: Optional[List[str]] = None
    sup_values: Any = None
    sup_labels: Optional[List[str]] = None
    html: Any = None
    show_title: bool = True
    show_values: bool = True
    digits: Optional[int] = None
    no_popup: bool = False


def popup_args(
    labels: Optional[List[str]] = None,
    sup_values: Any = None,
    sup_labels: Optional[List[str]] = None,
    html: Any = None,
    show_title: bool = True,
    show_values: bool = True,
    digits: Optional[int] = None,
    no_popup: bool = False,
) -> PopupArgs:
    return PopupArgs(
        labels=as_list(labels) if labels is not None else None,
        sup_values=sup_values,
        sup_labels=as_list(sup_labels) if sup_labels is not None else None,
        html=html,
        show_title=show_title,
        show_values=show_values,
        digits=digits,
        no_popup=no_popup,
    )


def _row_positions(series: Optional[TimeSeries], n_rows: int) -> List[List[int]]:
    if series is not None:
        return series.positions
    return [list(range(n_rows))]


def build_popup(
    popup: PopupArgs,
    names: Optional[List[str]],
    series: Optional[TimeSeries],
    n_rows: int,
) -> Dict[str, Any]:
    """
    Popup payload. Per-row ``sup_values`` and ``html`` are split by time step
    the same way chartdata is.
    """
    labels = popup.labels if popup.labels is not None else names
    positions = _row_positions(series, n_rows)

    sup_values = None
    sup_labels = popup.sup_labels
    if popup.sup_values is not None:
        sup_frame, sup_names = coerce_chartdata(popup.sup_values, n_rows)
        if sup_frame.shape[0] != n_rows:
            raise DataShapeError(
                f"popup sup_values has {sup_frame.shape[0]} rows; chartdata has {n_rows}."
            )
        values = sup_frame.to_numpy(dtype=float)
        sup_values = [frame_rows(values[pos]) for pos in positions]
        if sup_labels is None:
            sup_labels = sup_names

    html = None
    if popup.html is not None:
        html_rows = as_list(popup.html) if is_sequence(popup.html) else [popup.html] * n_rows
        if len(html_rows) != n_rows:
            raise DataShapeError(
                f"popup html has {len(html_rows)} entries; chartdata has {n_rows} rows."
            )
        html = partition_values(html_rows, positions)

    return {
        "labels": labels,
        "supValues": sup_values,
        "supLabels": sup_labels,
        "html": html,
        "showTitle": bool(popup.show_title),
        "showValues": bool(popup.show_values),
        "digits": popup.digits,
        "noPopup": bool(popup.no_popup),
    }
