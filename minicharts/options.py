"""
options.py
Resolution of caller options into the normalized option bundle.

- preprocess_args: merge required and optional fields, applying add defaults.
- resolve_labels: showLabels/labelText -> "auto" | "none" | text vector.
- resolve_chart_type: "auto" -> concrete chart type from the variable count.
- resolve_max_values: scalar/vector/absent -> per-variable scaling ceiling.

Optional fields are tri-state: UNSET (no instruction), None (clear) or a value.
"""

from numbers import Number
from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd

from .config import CHART_TYPES, MULTI_VARIABLE_TYPE, SINGLE_VARIABLE_TYPE
from .errors import ValidationError


class _Unset:
    """Marker for an option the caller did not supply."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False

    def __copy__(self):
        return self

    def __deepcopy__(self, memo):
        return self

    def __reduce__(self):
        return (_Unset, ())


UNSET: Any = _Unset()


def is_unset(value: Any) -> bool:
    return value is UNSET


def is_sequence(value: Any) -> bool:
    """True for list-like inputs; strings and mappings are scalars here."""
    if isinstance(value, (str, bytes, dict)):
        return False
    return isinstance(value, (list, tuple, np.ndarray, pd.Series, pd.Index))


def as_list(value: Any) -> List[Any]:
    if isinstance(value, (pd.Series, pd.Index, np.ndarray)):
        return value.tolist()
    if is_sequence(value):
        return list(value)
    return [value]


def _per_anchor(
    name: str,
    value: Any,
    n_anchors: int,
    broadcast: bool,
    positions: Optional[List[List[int]]] = None,
) -> Any:
    """
    Normalize a field to a scalar, a list with one entry per anchor or, when
    it holds one entry per chartdata row, one such list per time step.
    """
    if not is_sequence(value):
        return [value] * n_anchors if broadcast else value
    values = as_list(value)
    if len(values) == n_anchors:
        return values
    if len(values) == 1:
        return values * n_anchors if broadcast else values[0]
    if positions is not None:
        n_rows = sum(len(pos) for pos in positions)
        if len(values) == n_rows:
            return [[values[j] for j in pos] for pos in positions]
        raise ValidationError(
            f"'{name}' has {len(values)} values; expected 1, one per chart ({n_anchors}) "
            f"or one per chartdata row ({n_rows})."
        )
    raise ValidationError(
        f"'{name}' has {len(values)} values; expected 1 or one per chart ({n_anchors})."
    )


def validate_chart_type(chart_type: Any) -> None:
    """Raise ValidationError unless chart_type is one of CHART_TYPES."""
    for value in as_list(chart_type):
        if value not in CHART_TYPES:
            raise ValidationError(
                f"Invalid chart type {value!r}. Allowed: {', '.join(CHART_TYPES)}."
            )


def preprocess_args(
    required: Dict[str, Any],
    optional: Dict[str, Any],
    n_anchors: int,
    defaults: Optional[Dict[str, Any]] = None,
    positions: Optional[List[List[int]]] = None,
) -> Dict[str, Any]:
    """
    Build the option bundle sent to the renderer.

    Required fields are always present and broadcast to one value per anchor.
    Optional fields keep the caller's value; an UNSET field takes its entry in
    ``defaults`` (add) or stays UNSET (update, meaning "leave as is").
    Optional sequences must hold 1 value, one per anchor or, given the row
    ``positions`` of each time step, one per chartdata row. Row vectors are
    split into one per-anchor list per time step.
    """
    options: Dict[str, Any] = {}
    for name, value in required.items():
        options[name] = _per_anchor(name, value, n_anchors, broadcast=True)

    for name, value in optional.items():
        if value is UNSET and defaults is not None and name in defaults:
            value = defaults[name]
        if value is UNSET or value is None:
            options[name] = value
            continue
        if name == "type":
            validate_chart_type(value)
        options[name] = _per_anchor(name, value, n_anchors, broadcast=False, positions=positions)
    return options


def resolve_labels(show_labels: Any, label_text: Any = None) -> Any:
    """Collapse the showLabels flag and optional text into one label mode."""
    if show_labels is UNSET or show_labels is None:
        return UNSET
    if not show_labels:
        return "none"
    if label_text is UNSET or label_text is None:
        return "auto"
    return as_list(label_text) if is_sequence(label_text) else label_text


def resolve_chart_type(chart_type: Any, ncols: int) -> Any:
    """Replace "auto" (or nothing) by the concrete type for ``ncols`` variables."""
    if is_sequence(chart_type):
        return [resolve_chart_type(value, ncols) for value in chart_type]
    if chart_type is UNSET or chart_type is None or chart_type == "auto":
        return SINGLE_VARIABLE_TYPE if ncols == 1 else MULTI_VARIABLE_TYPE
    return chart_type


def _to_float(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (Number, np.number)):
        raise ValidationError(f"maxValues must be numeric, got {value!r}.")
    return float(value)


def data_max_values(data: pd.DataFrame) -> List[float]:
    """Maximum absolute value of each column; NaN ignored, empty columns give 0."""
    maxima = data.abs().max(axis=0, skipna=True).fillna(0.0)
    return [float(v) for v in maxima.tolist()]


def resolve_max_values(
    max_values: Any,
    data: Optional[pd.DataFrame] = None,
    ncols: Optional[int] = None,
) -> Any:
    """
    Resolve the scaling ceiling of each variable.

    A scalar is broadcast to ``ncols`` entries, a vector must have 1 or
    ``ncols`` entries, and a missing value is computed from ``data``. Without
    a known variable count (update without new chartdata) the caller's value
    is forwarded as given.
    """
    if ncols is None and data is not None:
        ncols = data.shape[1]

    if max_values is UNSET or max_values is None:
        if data is None:
            return max_values
        return data_max_values(data)

    if not is_sequence(max_values):
        value = _to_float(max_values)
        return value if ncols is None else [value] * ncols

    values = [_to_float(v) for v in as_list(max_values)]
    if ncols is None or len(values) == ncols:
        return values
    if len(values) == 1:
        return values * ncols
    raise ValidationError(
        f"maxValues has {len(values)} values; expected 1 or {ncols} (one per variable)."
    )
