"""Flattening of chained list cells.

An ordered list is a chain of cells: each cell holds its contents and links
to the next one. Cells are keys into the context's contents and chain tables,
and a chain is walked iteratively with a visited set.
"""

from __future__ import annotations

from typing import Any, List, Optional

import structlog

from .model import ConversionContext

logger = structlog.get_logger(__name__)


class ListResolver:
    """Resolve list cells of a conversion context into flat sequences."""

    def __init__(self, context: ConversionContext, max_length: Optional[int] = None):
        """Initialize resolver.

        Args:
            context: Conversion context holding contents and chain tables
            max_length: Maximum number of cells walked per list, or None
        """
        self.context = context
        self.max_length = max_length

    def _warn(self, event: str, **context: Any) -> None:
        logger.warning(event, **context)
        self.context.report.add_warning(event, **context)

    def _error(self, event: str, **context: Any) -> None:
        logger.error(event, **context)
        self.context.report.add_error(event, **context)

    def resolve(self, key: str) -> List[Optional[str]]:
        """Flatten the list starting at a head cell.

        A head cell without contents contributes a single None placeholder.
        A cyclic or over-long chain is reported and cut at the offending link.

        Args:
            key: Key of the head cell

        Returns:
            Contents of every cell in chain order
        """
        contents = self.context.contents
        next_cells = self.context.next_cells

        values: List[Optional[str]] = []
        head = contents.get(key)
        if head is None:
            self._warn("Found a list without contents", cell=key)
            values.append(None)
        else:
            values.extend(head)

        visited = {key}
        cell = key
        while cell in next_cells:
            following = next_cells[cell]
            if following in visited:
                self._error("List chain is cyclic", head=key, cell=following)
                break
            if self.max_length is not None and len(visited) >= self.max_length:
                self._error("List chain exceeds maximum length", head=key, limit=self.max_length)
                break
            visited.add(following)
            values.extend(contents.get(following, []))
            cell = following

        return values
