"""
minicharts package

Normalizes chart data and display options into commands that place, update
and remove small bar/pie/polar charts on folium (leaflet) maps, optionally
animated over time.

The JavaScript renderer drawing the charts is provided separately; this
package only builds and attaches the commands it consumes.
"""

__version__ = "0.1.0"

from .errors import DataShapeError, MinichartsError, NotFoundError, ValidationError
from .options import UNSET
from .popup import popup_args
from .legend import compute_legend
from .payload import (
    Command,
    build_add_command,
    build_clear_command,
    build_remove_command,
    build_update_command,
    merge_update,
)
from .state import ChartStateStore
from .map_create import (
    add_minicharts,
    clear_minicharts,
    get_commands,
    remove_minicharts,
    update_minicharts,
)

__all__ = [
    "add_minicharts",
    "update_minicharts",
    "remove_minicharts",
    "clear_minicharts",
    "get_commands",
    "popup_args",
    "compute_legend",
    "Command",
    "build_add_command",
    "build_update_command",
    "build_remove_command",
    "build_clear_command",
    "merge_update",
    "ChartStateStore",
    "UNSET",
    "MinichartsError",
    "ValidationError",
    "DataShapeError",
    "NotFoundError",
]
