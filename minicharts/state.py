"""
state.py
In-memory mirror of the renderer's per-chart state.

Applies commands the way the rendering client does: add creates or replaces
charts (last applied wins), update merges supplied fields only, remove drops
single charts and clear drops every chart plus the automatic legend.
"""

from typing import Any, Dict, Iterator, List, Optional, Tuple

from .errors import NotFoundError
from .options import UNSET
from .payload import ADD_METHOD, CLEAR_METHOD, REMOVE_METHOD, UPDATE_METHOD, Command, merge_update, strip_unset

_PER_STEP_POPUP_KEYS = ("supValues", "html")


def _option_view(opt: Any, i: int) -> Any:
    """Value of chart ``i``: per-chart lists are indexed, per-step lists sliced."""
    if not isinstance(opt, list):
        return opt
    if opt and isinstance(opt[0], list):
        return [step[i] for step in opt]
    return opt[i]


def _chart_view(payload: Dict[str, Any], i: int) -> Dict[str, Any]:
    """The part of a multi-chart payload that concerns chart ``i``."""
    view: Dict[str, Any] = {}
    for key, value in payload.items():
        if key == "options":
            view[key] = {name: _option_view(opt, i) for name, opt in value.items()}
        elif key == "chartdata" and isinstance(value, list):
            view[key] = [step[i] for step in value]
        elif key == "popup" and isinstance(value, dict):
            popup = dict(value)
            for popup_key in _PER_STEP_POPUP_KEYS:
                if isinstance(popup.get(popup_key), list):
                    popup[popup_key] = [step[i] for step in popup[popup_key]]
            view[key] = popup
        else:
            view[key] = value
    return view


class ChartStateStore:
    """Rendered minicharts keyed by layerId, plus the automatic legend."""

    def __init__(self):
        self._charts: Dict[str, Dict[str, Any]] = {}
        self.legend: Optional[List[Tuple[str, str]]] = None

    def __len__(self) -> int:
        return len(self._charts)

    def __contains__(self, layer_id: str) -> bool:
        return layer_id in self._charts

    def __iter__(self) -> Iterator[str]:
        return iter(self._charts)

    def get(self, layer_id: str) -> Dict[str, Any]:
        try:
            return self._charts[layer_id]
        except KeyError:
            raise NotFoundError(layer_id) from None

    def _require(self, layer_ids: List[str]) -> None:
        for layer_id in layer_ids:
            if layer_id not in self._charts:
                raise NotFoundError(layer_id)

    def apply(self, command: Command) -> None:
        """Apply one command; unknown ids on update/remove raise NotFoundError."""
        if command.method == ADD_METHOD:
            for i, layer_id in enumerate(command.layer_ids):
                self._charts[layer_id] = strip_unset(_chart_view(command.payload, i))
        elif command.method == UPDATE_METHOD:
            ids = command.layer_ids
            self._require(ids)
            for i, layer_id in enumerate(ids):
                self._charts[layer_id] = merge_update(self._charts[layer_id], _chart_view(command.payload, i))
        elif command.method == REMOVE_METHOD:
            ids = command.layer_ids
            self._require(ids)
            for layer_id in ids:
                del self._charts[layer_id]
        elif command.method == CLEAR_METHOD:
            self._charts.clear()
        else:
            raise ValueError(f"Unknown minicharts command {command.method!r}.")

        if command.legend is not UNSET:
            self.legend = list(command.legend) if command.legend else None
