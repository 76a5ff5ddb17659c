"""
legend.py
Legend pairs for multi-variable minicharts and the folium control showing them.

The control is registered on the map under the reserved LEGEND_LAYER_ID,
never in the chart layerId namespace, so clear/update can find and drop it.
"""

import html
from typing import List, Optional, Sequence, Tuple

import folium
from branca.element import MacroElement
from jinja2 import Template as JinjaTemplate

from .config import DEFAULT_LEGEND_POSITION, LEGEND_LAYER_ID, LEGEND_POSITIONS
from .elements import get_child, pop_child
from .errors import ValidationError


def compute_legend(
    names: Optional[Sequence[str]],
    palette: Sequence[str],
    show: bool = True,
) -> List[Tuple[str, str]]:
    """
    (label, color) per chartdata column, cycling through ``palette``.

    Empty unless ``show`` is true and there are named columns for more than
    one variable.
    """
    if not show or not names or len(names) <= 1 or not palette:
        return []
    return [(str(name), palette[i % len(palette)]) for i, name in enumerate(names)]


def validate_legend_position(position: Optional[str]) -> str:
    position = position or DEFAULT_LEGEND_POSITION
    if position not in LEGEND_POSITIONS:
        raise ValidationError(
            f"Invalid legend position {position!r}. Allowed: {', '.join(LEGEND_POSITIONS)}."
        )
    return position


def _legend_html(pairs: List[Tuple[str, str]], opacity: float) -> str:
    rows = []
    for label, color in pairs:
        swatch = (
            '<i style="display:inline-block; width:12px; height:12px; margin-right:6px; '
            f'background:{html.escape(str(color), quote=True)}; opacity:{opacity};"></i>'
        )
        rows.append(f'<div>{swatch}{html.escape(label)}</div>')
    return ''.join(rows)


class LegendControl(MacroElement):
    """Static leaflet control listing legend labels with their colors."""

    _template = JinjaTemplate(
        """
        {% macro script(this, kwargs) %}
        var {{ this.get_name() }} = L.control({position: {{ this.position|tojson }}});
        {{ this.get_name() }}.onAdd = function(map) {
            var div = L.DomUtil.create('div', 'info legend minicharts-legend');
            div.style.background = 'rgba(255,255,255,0.9)';
            div.style.padding = '6px 8px';
            div.style.borderRadius = '4px';
            div.innerHTML = {{ this.html|tojson }};
            return div;
        };
        {{ this.get_name() }}.addTo({{ this._parent.get_name() }});
        {% endmacro %}
        """
    )

    def __init__(self, pairs: List[Tuple[str, str]], position: str = DEFAULT_LEGEND_POSITION,
                 opacity: float = 1):
        super().__init__()
        self._name = "MinichartsLegend"
        self.pairs = list(pairs)
        self.position = position
        self.html = _legend_html(self.pairs, opacity)

    @property
    def labels(self) -> List[str]:
        return [label for label, _ in self.pairs]

    @property
    def colors(self) -> List[str]:
        return [color for _, color in self.pairs]


def add_legend_control(
    map_obj: folium.Map,
    pairs: List[Tuple[str, str]],
    position: Optional[str] = None,
) -> LegendControl:
    """Show (or replace) the minicharts legend on the map."""
    position = validate_legend_position(position)
    control = LegendControl(pairs, position=position)
    map_obj.add_child(control, name=LEGEND_LAYER_ID)
    return control


def remove_legend_control(map_obj: folium.Map) -> bool:
    """Drop the minicharts legend if the map has one."""
    return pop_child(map_obj, LEGEND_LAYER_ID) is not None


def get_legend_control(map_obj: folium.Map) -> Optional[LegendControl]:
    control = get_child(map_obj, LEGEND_LAYER_ID)
    return control if isinstance(control, LegendControl) else None
