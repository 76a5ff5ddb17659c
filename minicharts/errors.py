"""
errors.py
Exceptions raised while normalizing minichart inputs.

Everything is raised before a command reaches the map, so a failed call never
leaves a partial payload behind.
"""


class MinichartsError(ValueError):
    """Base class for invalid minichart input."""


class ValidationError(MinichartsError):
    """An option value is outside its allowed set or has the wrong length."""


class DataShapeError(MinichartsError):
    """chartdata and time keys do not form a balanced anchors x time table."""


class NotFoundError(KeyError):
    """A command referenced a layerId the renderer does not hold."""

    def __init__(self, layer_id):
        super().__init__(layer_id)
        self.layer_id = layer_id

    def __str__(self) -> str:
        return f"No minichart with layerId {self.layer_id!r}"
