from __future__ import annotations

from typing import Iterable, List


class CatacombError(Exception):
    """Base exception for the catacomb topology package."""


class LayoutError(CatacombError):
    """Raised when a layout strategy cannot produce a single node."""


class GraphValidationError(CatacombError):
    """Raised when a generated region violates a hard topology invariant.

    The individual problems are kept on ``issues`` so callers can log or
    display all of them, not just the first.
    """

    def __init__(self, issues: Iterable[str]) -> None:
        self.issues: List[str] = list(issues)
        summary = "; ".join(self.issues[:5])
        if len(self.issues) > 5:
            summary += f" (+{len(self.issues) - 5} more)"
        super().__init__(f"Graph validation failed: {summary}")


class PersistenceError(CatacombError):
    """Base exception for node store read/write errors."""


class RegionValidationError(PersistenceError):
    """Raised when a stored node or region document fails validation."""


class CorruptRegionError(PersistenceError):
    """Raised when a stored document is unreadable and no backup can be recovered."""


class LinkError(CatacombError):
    """Describes why two regions could not be linked.

    Returned inside a :class:`catacomb.linking.LinkResult`, never raised to callers.
    """


class ExitParserError(CatacombError):
    """Raised by the free-text exit parser for transport or API errors."""
