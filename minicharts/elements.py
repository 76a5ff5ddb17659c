"""
elements.py
Named children of a folium map.

folium only exposes add_child(); looking up or dropping a child by name goes
through the element's ``_children`` OrderedDict. Every such access in the
package goes through these helpers so the private attribute is used in one
place only.
"""

from typing import Iterator, Optional

from branca.element import Element


def get_child(parent: Element, name: str) -> Optional[Element]:
    """The child registered under ``name``, or None."""
    return parent._children.get(name)


def pop_child(parent: Element, name: str) -> Optional[Element]:
    """Detach and return the child registered under ``name``, or None."""
    return parent._children.pop(name, None)


def iter_children(parent: Element) -> Iterator[Element]:
    """Children in insertion order, which is the order their scripts render."""
    return iter(list(parent._children.values()))
