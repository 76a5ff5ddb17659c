# Project structure:
#
# minicharts/
# ├── minicharts/                   # Python package
# │   ├── __init__.py
# │   ├── config.py                 # defaults and reserved names
# │   ├── errors.py                 # exception taxonomy
# │   ├── options.py                # option, label, type and max value resolution
# │   ├── timeseries.py             # long-format chartdata -> per-timestep slices
# │   ├── popup.py                  # popup options
# │   ├── legend.py                 # legend pairs + folium legend control
# │   ├── payload.py                # add/update/remove/clear commands
# │   ├── state.py                  # renderer state mirror
# │   └── map_create.py             # public API on folium maps
# ├── tests/
# └── pyproject.toml

from typing import Any, Dict, List

# d3.schemeCategory10
D3_SCHEME_CATEGORY10: List[str] = [
    "#1f77b4", "#ff7f0e", "#2ca02c", "#d62728", "#9467bd",
    "#8c564b", "#e377c2", "#7f7f7f", "#bcbd22", "#17becf",
]

CHART_TYPES = ("auto", "bar", "pie", "polar-area", "polar-radius")

# A lone variable is drawn as one circle whose area encodes the value
SINGLE_VARIABLE_TYPE = "polar-area"
MULTI_VARIABLE_TYPE = "bar"

# Reserved control name, never a chart layerId
LEGEND_LAYER_ID = "minichartsLegend"
DEFAULT_LEGEND_POSITION = "topright"
LEGEND_POSITIONS = ("topright", "topleft", "bottomright", "bottomleft")

BOUNDS_CHILD_NAME = "minichartsBounds"

# JS namespace exposing addMinicharts/updateMinicharts/removeMinicharts/clearMinicharts
DEFAULT_RENDERER = "L.minicharts"

DEFAULT_LAYER_ID_FORMAT = "_minichart ({lng},{lat})"

# Implicit key when no time vector is given
DEFAULT_TIME_KEY = 1

DEFAULT_DATE_FORMAT = "%Y-%m-%d"
DEFAULT_DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"

_ADD_DEFAULTS: Dict[str, Any] = {
    "type": "auto",
    "width": 30,
    "height": 30,
    "opacity": 1,
    "labels": "none",
    "labelMinSize": 8,
    "labelMaxSize": 24,
    "labelStyle": None,
    "transitionTime": 750,
    "fillColor": D3_SCHEME_CATEGORY10[0],
}


def add_defaults() -> Dict[str, Any]:
    """Return a fresh copy of the option defaults applied by add operations."""
    return dict(_ADD_DEFAULTS)


def default_palette() -> List[str]:
    return list(D3_SCHEME_CATEGORY10)
