"""
heapreach

Reachability-based memory usage for live Python object graphs: walk
everything reachable from a root, count each object once, and break the
total down by how each object is referenced.
"""

from __future__ import annotations

from .graph import Node, build
from .identity import IdentityMap, IdentitySet
from .model import ObjectModel, PythonObjectModel
from .references import ReferenceResolver
from .usage import DEFAULT_IGNORE, Usage, walk
from .utils import format_bytes
from .via import ViaMap

__all__ = [
    "DEFAULT_IGNORE",
    "IdentityMap",
    "IdentitySet",
    "Node",
    "ObjectModel",
    "PythonObjectModel",
    "ReferenceResolver",
    "Usage",
    "ViaMap",
    "__version__",
    "build",
    "format_bytes",
    "walk",
]

__version__ = "0.1.0"
