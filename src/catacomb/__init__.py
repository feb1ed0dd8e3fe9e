"""
Catacomb package root.

Builds the navigable topology of dungeon regions as connected graphs of
locations and resolves player movement against those graphs at runtime.
Content generation, combat and presentation live outside this package; the
modules here only deal in node identifiers, edges and player navigation state.
"""

__version__ = "0.1.0"

__all__ = [
    "graph",
    "navigation",
    "persistence",
]
