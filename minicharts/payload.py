"""
payload.py
Build the commands consumed by the minicharts rendering client.

- build_add_command: full payload, every option defaulted.
- build_update_command: partial payload; fields left UNSET mean "no change"
  and are dropped from the serialized payload, while None serializes to null.
- build_remove_command / build_clear_command: direct commands, no payload work.
- merge_update: overlay an update payload on previously rendered state.
"""

import json
import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .config import (
    DEFAULT_LAYER_ID_FORMAT,
    DEFAULT_LEGEND_POSITION,
    add_defaults,
    default_palette,
)
from .errors import ValidationError
from .legend import compute_legend, validate_legend_position
from .options import (
    UNSET,
    as_list,
    is_sequence,
    preprocess_args,
    resolve_chart_type,
    resolve_labels,
    resolve_max_values,
    validate_chart_type,
)
from .popup import PopupArgs, build_popup, popup_args
from .timeseries import coerce_chartdata, reshape_time_series

log = logging.getLogger(__name__)

ADD_METHOD = "addMinicharts"
UPDATE_METHOD = "updateMinicharts"
REMOVE_METHOD = "removeMinicharts"
CLEAR_METHOD = "clearMinicharts"


def strip_unset(obj: Any) -> Any:
    """Drop UNSET entries so they never reach the renderer."""
    if isinstance(obj, dict):
        return {k: strip_unset(v) for k, v in obj.items() if v is not UNSET}
    if isinstance(obj, (list, tuple)):
        return [strip_unset(v) for v in obj if v is not UNSET]
    return obj


@dataclass
class Command:
    """
    One instruction for the rendering client.

    legend: list of (label, color) pairs to show, None to remove the legend
    control, UNSET to leave it untouched.
    bounds: [[south, west], [north, east]] covering the anchors of an add.
    """

    method: str
    payload: Dict[str, Any] = field(default_factory=dict)
    legend: Any = UNSET
    legend_position: str = DEFAULT_LEGEND_POSITION
    bounds: Optional[List[List[float]]] = None

    @property
    def layer_ids(self) -> List[str]:
        if self.method in (ADD_METHOD, UPDATE_METHOD):
            return list(self.payload["options"]["layerId"])
        return list(self.payload.get("layerId", []))

    def to_dict(self) -> Dict[str, Any]:
        return strip_unset(self.payload)

    def to_json(self) -> str:
        # Safe to inline in a <script> tag
        return json.dumps(self.to_dict(), ensure_ascii=False).replace('</', '<\\/')


# ----------------------------
# Helpers: anchors
# ----------------------------

def _anchors(lng: Any, lat: Any, layer_id: Any) -> Tuple[List[Any], List[Any], List[str]]:
    lngs = as_list(lng)
    lats = as_list(lat)
    ids = as_list(layer_id) if layer_id is not None else []
    n = max(len(lngs), len(lats), len(ids))
    if len(lngs) == 1:
        lngs = lngs * n
    if len(lats) == 1:
        lats = lats * n
    if len(lngs) != n or len(lats) != n:
        raise ValidationError(
            f"lng ({len(as_list(lng))}) and lat ({len(as_list(lat))}) must have the same length."
        )
    if layer_id is None:
        ids = [DEFAULT_LAYER_ID_FORMAT.format(lng=x, lat=y) for x, y in zip(lngs, lats)]
    elif len(ids) == 1:
        ids = ids * n
    elif len(ids) != n:
        raise ValidationError(f"layerId has {len(ids)} values; expected {n} (one per chart).")
    return lngs, lats, ids


def _bounds(lngs: Iterable[Any], lats: Iterable[Any]) -> Optional[List[List[float]]]:
    points = []
    for x, y in zip(lngs, lats):
        try:
            fx, fy = float(x), float(y)
        except (TypeError, ValueError):
            continue
        if math.isnan(fx) or math.isnan(fy):
            continue
        points.append((fy, fx))
    if not points:
        return None
    ys = [p[0] for p in points]
    xs = [p[1] for p in points]
    return [[min(ys), min(xs)], [max(ys), max(xs)]]


def _expected_rows(time: Any, n_anchors: int) -> int:
    return len(as_list(time)) if is_sequence(time) else n_anchors


def _check_on_change(on_change: Any) -> Any:
    if on_change is UNSET or on_change is None or isinstance(on_change, str):
        return on_change
    raise ValidationError("on_change must be a string of JavaScript code.")


def _supplied(value: Any) -> bool:
    return value is not UNSET and value is not None


# ----------------------------
# Public API
# ----------------------------

def build_add_command(
    lng: Any,
    lat: Any,
    chartdata: Any = 1,
    time: Any = None,
    max_values: Any = None,
    chart_type: Any = UNSET,
    fill_color: Any = UNSET,
    color_palette: Optional[List[str]] = None,
    width: Any = UNSET,
    height: Any = UNSET,
    opacity: Any = UNSET,
    show_labels: bool = False,
    label_text: Any = None,
    label_min_size: Any = UNSET,
    label_max_size: Any = UNSET,
    label_style: Any = UNSET,
    transition_time: Any = UNSET,
    popup: Optional[PopupArgs] = None,
    layer_id: Any = None,
    legend: bool = True,
    legend_position: Optional[str] = None,
    time_format: Optional[str] = None,
    initial_time: Any = None,
    on_change: Optional[str] = None,
) -> Command:
    """
    Normalize add inputs into an addMinicharts command.

    Options left UNSET take the add defaults from config.add_defaults().
    Raises ValidationError / DataShapeError before anything is built.
    """
    lngs, lats, ids = _anchors(lng, lat, layer_id)
    n = len(ids)
    if chart_type is not UNSET and chart_type is not None:
        validate_chart_type(chart_type)
    legend_position = validate_legend_position(legend_position)
    on_change = _check_on_change(on_change)

    frame, names = coerce_chartdata(chartdata, _expected_rows(time, n))
    ncols = frame.shape[1]
    series = reshape_time_series(frame, time, n, time_format=time_format, initial_time=initial_time)

    options = preprocess_args(
        required={"lng": lngs, "lat": lats, "layerId": ids, "time": series.initial_label},
        optional={
            "type": chart_type,
            "width": width,
            "height": height,
            "opacity": opacity,
            "labels": resolve_labels(bool(show_labels), label_text),
            "labelMinSize": label_min_size,
            "labelMaxSize": label_max_size,
            "labelStyle": label_style,
            "transitionTime": transition_time,
            "fillColor": fill_color,
        },
        n_anchors=n,
        defaults=add_defaults(),
        positions=series.positions,
    )
    options["type"] = resolve_chart_type(options["type"], ncols)

    palette = list(color_palette) if color_palette else default_palette()
    popup = popup if popup is not None else popup_args()
    pairs = compute_legend(names, palette, legend)

    payload = {
        "options": options,
        "chartdata": series.slices,
        "maxValues": resolve_max_values(max_values, frame, ncols),
        "colorPalette": palette,
        "timeLabels": series.labels,
        "initialTimeIndex": series.initial_index,
        "popup": build_popup(popup, names, series, frame.shape[0]),
        "onChange": on_change if on_change is not None else UNSET,
    }
    log.debug("command=%s charts=%d variables=%d steps=%d", ADD_METHOD, n, ncols, series.n_steps)
    return Command(
        method=ADD_METHOD,
        payload=payload,
        legend=pairs if pairs else UNSET,
        legend_position=legend_position,
        bounds=_bounds(lngs, lats),
    )


def build_update_command(
    layer_id: Any,
    chartdata: Any = UNSET,
    time: Any = UNSET,
    max_values: Any = UNSET,
    chart_type: Any = UNSET,
    fill_color: Any = UNSET,
    color_palette: Any = UNSET,
    width: Any = UNSET,
    height: Any = UNSET,
    opacity: Any = UNSET,
    show_labels: Any = UNSET,
    label_text: Any = UNSET,
    label_min_size: Any = UNSET,
    label_max_size: Any = UNSET,
    label_style: Any = UNSET,
    transition_time: Any = UNSET,
    popup: Any = UNSET,
    legend: bool = True,
    legend_position: Optional[str] = None,
    time_format: Optional[str] = None,
    initial_time: Any = None,
    on_change: Any = UNSET,
) -> Command:
    """
    Normalize update inputs into an updateMinicharts command.

    Only supplied fields are carried; UNSET ones leave the rendered charts
    as they are. Time labels, the initial time step and the legend are only
    touched when new chartdata is supplied: the legend is redrawn when the new
    data has several named columns (and ``legend`` is true), else removed.
    """
    ids = as_list(layer_id)
    n = len(ids)
    if n == 0:
        raise ValidationError("update needs at least one layerId.")
    if _supplied(chart_type):
        validate_chart_type(chart_type)
    else:
        # null type is "no change", not a clear
        chart_type = UNSET
    legend_position = validate_legend_position(legend_position)
    on_change = _check_on_change(on_change)

    frame = names = series = None
    ncols = None
    if _supplied(chartdata):
        time = time if _supplied(time) else None
        frame, names = coerce_chartdata(chartdata, _expected_rows(time, n))
        ncols = frame.shape[1]
        series = reshape_time_series(frame, time, n, time_format=time_format, initial_time=initial_time)

    required: Dict[str, Any] = {"layerId": ids}
    if series is not None:
        required["time"] = series.initial_label
    options = preprocess_args(
        required=required,
        optional={
            "type": chart_type,
            "width": width,
            "height": height,
            "opacity": opacity,
            "labels": resolve_labels(show_labels, label_text),
            "labelMinSize": label_min_size,
            "labelMaxSize": label_max_size,
            "labelStyle": label_style,
            "labelText": label_text,
            "transitionTime": transition_time,
            "fillColor": fill_color,
        },
        n_anchors=n,
        positions=series.positions if series is not None else None,
    )
    if "time" not in options:
        options["time"] = UNSET

    max_values = resolve_max_values(
        max_values if max_values is not None else UNSET, None, ncols
    )

    popup_payload: Any = UNSET
    if _supplied(popup):
        n_rows = frame.shape[0] if frame is not None else n
        popup_payload = build_popup(popup, names, series, n_rows)

    palette: Any = list(color_palette) if _supplied(color_palette) else color_palette
    legend_action: Any = UNSET
    legend_labels: Any = UNSET
    if series is not None:
        if not _supplied(palette):
            # The legend colors must be the ones the bars are drawn with
            palette = default_palette()
        pairs = compute_legend(names, palette, legend)
        legend_action = pairs if pairs else None
        legend_labels = names

    payload = {
        "options": options,
        "chartdata": series.slices if series is not None else UNSET,
        "maxValues": max_values,
        "colorPalette": palette,
        "timeLabels": series.labels if series is not None else UNSET,
        "initialTimeIndex": series.initial_index if series is not None else UNSET,
        "popup": popup_payload,
        "legendLabels": legend_labels,
        "onChange": on_change,
    }
    log.debug("command=%s charts=%d new_data=%s", UPDATE_METHOD, n, series is not None)
    return Command(
        method=UPDATE_METHOD,
        payload=payload,
        legend=legend_action,
        legend_position=legend_position,
    )


def build_remove_command(layer_id: Any) -> Command:
    return Command(method=REMOVE_METHOD, payload={"layerId": as_list(layer_id)})


def build_clear_command() -> Command:
    """Remove every chart and the automatic legend."""
    return Command(method=CLEAR_METHOD, payload={}, legend=None)


def merge_update(
    previous: Dict[str, Any],
    update: Dict[str, Any],
    nested: Tuple[str, ...] = ("options",),
) -> Dict[str, Any]:
    """
    Return ``previous`` overlaid with the supplied fields of ``update``.

    UNSET fields keep the previous value; None replaces it. Keys listed in
    ``nested`` are merged field by field instead of replaced whole.
    """
    merged = dict(previous)
    for key, value in update.items():
        if value is UNSET:
            continue
        if key in nested and isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_update(merged[key], value, nested=())
        else:
            merged[key] = value
    return merged
