import logging
from typing import Any, List, Optional

import folium
from branca.element import MacroElement
from jinja2 import Template as JinjaTemplate

from .config import BOUNDS_CHILD_NAME, DEFAULT_RENDERER
from .elements import get_child, iter_children
from .legend import add_legend_control, remove_legend_control
from .options import UNSET
from .payload import (
    Command,
    build_add_command,
    build_clear_command,
    build_remove_command,
    build_update_command,
)
from .popup import PopupArgs

log = logging.getLogger(__name__)


# ----------------------------
# Helpers: map elements
# ----------------------------

class MinichartsCommand(MacroElement):
    """Calls the rendering client with one command payload when the map loads."""

    _template = JinjaTemplate(
        """
        {% macro script(this, kwargs) %}
        {{ this.renderer }}.{{ this.method }}({{ this._parent.get_name() }}, {{ this.payload_json }});
        {% endmacro %}
        """
    )

    def __init__(self, command: Command, renderer: str = DEFAULT_RENDERER):
        super().__init__()
        self._name = "MinichartsCommand"
        self.command = command
        self.method = command.method
        self.renderer = renderer
        self.payload_json = command.to_json()


def _attach(map_obj: folium.Map, command: Command, renderer: str) -> None:
    map_obj.add_child(MinichartsCommand(command, renderer=renderer))
    log.info("command=%s layer_ids=%d", command.method, len(command.layer_ids))


def _apply_legend(map_obj: folium.Map, command: Command) -> None:
    if command.legend is UNSET:
        return
    if command.legend:
        add_legend_control(map_obj, command.legend, command.legend_position)
    else:
        remove_legend_control(map_obj)


def _expand_limits(map_obj: folium.Map, bounds: Optional[List[List[float]]]) -> None:
    """Grow the map's initial view so it also covers ``bounds``."""
    if not bounds:
        return
    existing = get_child(map_obj, BOUNDS_CHILD_NAME)
    if isinstance(existing, folium.FitBounds):
        (south, west), (north, east) = existing.bounds
        bounds = [
            [min(south, bounds[0][0]), min(west, bounds[0][1])],
            [max(north, bounds[1][0]), max(east, bounds[1][1])],
        ]
    map_obj.add_child(folium.FitBounds(bounds), name=BOUNDS_CHILD_NAME)


def get_commands(map_obj: folium.Map) -> List[Command]:
    """Commands attached to the map, in the order the renderer will run them."""
    return [
        child.command
        for child in iter_children(map_obj)
        if isinstance(child, MinichartsCommand)
    ]


# ----------------------------
# Public API
# ----------------------------

def add_minicharts(
    map_obj: folium.Map,
    lng: Any,
    lat: Any,
    chartdata: Any = 1,
    time: Any = None,
    max_values: Any = None,
    chart_type: Any = "auto",
    fill_color: Any = UNSET,
    color_palette: Optional[List[str]] = None,
    width: Any = 30,
    height: Any = 30,
    opacity: Any = 1,
    show_labels: bool = False,
    label_text: Any = None,
    label_min_size: Any = 8,
    label_max_size: Any = 24,
    label_style: Optional[str] = None,
    transition_time: Any = 750,
    popup: Optional[PopupArgs] = None,
    layer_id: Any = None,
    legend: bool = True,
    legend_position: str = "topright",
    time_format: Optional[str] = None,
    initial_time: Any = None,
    on_change: Optional[str] = None,
    renderer: str = DEFAULT_RENDERER,
) -> folium.Map:
    """
    Add minicharts to a folium map at the given coordinates.

    Parameters:
      - lng / lat: coordinates of the charts (scalars or one value per chart).
      - chartdata: numeric table, one column per variable. With ``time``, one
        row per (time step, chart): all charts for the first time value, then
        all charts for the second, and so on.
      - time: one value per chartdata row (numbers, dates or datetimes); every
        distinct value must occur once per chart.
      - max_values: scalar (shared scale), one value per variable, or None to
        use the maximum absolute value of each variable.
      - chart_type: 'auto' | 'bar' | 'pie' | 'polar-area' | 'polar-radius'.
        'auto' gives a single circle for one variable, else a bar chart.
      - fill_color: circle color for single-variable data (default: first
        color of the palette).
      - color_palette: colors for multi-variable data (default d3 category10).
      - show_labels / label_text: display values ("auto") or the given text.
      - Style options (fill_color, width, label_text, ...) take one value,
        one per chart, or one per chartdata row to vary over time.
      - popup: popup_args(...) options; labels default to the column names.
      - layer_id: chart ids; default "_minichart (<lng>,<lat>)".
      - legend / legend_position: show a legend when chartdata has several
        named columns.
      - time_format: strftime pattern for date/datetime time values.
      - initial_time: time value shown first; unknown values fall back to the
        first time step.
      - on_change: JavaScript source run by the renderer on each chart update.
        It is passed through untouched.
      - renderer: JS namespace providing the minicharts commands.

    Returns:
        The map, for chaining.
    """
    command = build_add_command(
        lng, lat,
        chartdata=chartdata,
        time=time,
        max_values=max_values,
        chart_type=chart_type,
        fill_color=fill_color,
        color_palette=color_palette,
        width=width,
        height=height,
        opacity=opacity,
        show_labels=show_labels,
        label_text=label_text,
        label_min_size=label_min_size,
        label_max_size=label_max_size,
        label_style=label_style,
        transition_time=transition_time,
        popup=popup,
        layer_id=layer_id,
        legend=legend,
        legend_position=legend_position,
        time_format=time_format,
        initial_time=initial_time,
        on_change=on_change,
    )
    _attach(map_obj, command, renderer)
    _apply_legend(map_obj, command)
    _expand_limits(map_obj, command.bounds)
    return map_obj


def update_minicharts(
    map_obj: folium.Map,
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
    renderer: str = DEFAULT_RENDERER,
) -> folium.Map:
    """
    Update minicharts already added with ``add_minicharts``.

    Arguments left out do not change the rendered charts; passing None
    explicitly clears a style option. New chartdata also refreshes the time
    labels and redraws (or removes) the legend.
    """
    command = build_update_command(
        layer_id,
        chartdata=chartdata,
        time=time,
        max_values=max_values,
        chart_type=chart_type,
        fill_color=fill_color,
        color_palette=color_palette,
        width=width,
        height=height,
        opacity=opacity,
        show_labels=show_labels,
        label_text=label_text,
        label_min_size=label_min_size,
        label_max_size=label_max_size,
        label_style=label_style,
        transition_time=transition_time,
        popup=popup,
        legend=legend,
        legend_position=legend_position,
        time_format=time_format,
        initial_time=initial_time,
        on_change=on_change,
    )
    _attach(map_obj, command, renderer)
    _apply_legend(map_obj, command)
    return map_obj


def remove_minicharts(map_obj: folium.Map, layer_id: Any, renderer: str = DEFAULT_RENDERER) -> folium.Map:
    """Remove the charts with the given ids."""
    _attach(map_obj, build_remove_command(layer_id), renderer)
    return map_obj


def clear_minicharts(map_obj: folium.Map, renderer: str = DEFAULT_RENDERER) -> folium.Map:
    """Remove every chart and the legend created by add/update."""
    command = build_clear_command()
    _attach(map_obj, command, renderer)
    _apply_legend(map_obj, command)
    return map_obj
