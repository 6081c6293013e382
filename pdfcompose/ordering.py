"""Tracking the logical page order across merged sources."""

from __future__ import annotations

import logging
from typing import Iterable, List, Sequence, Tuple

from .types import PageReference, SourceDocument

LOGGER = logging.getLogger("pdfcompose.ordering")


def natural_references(sources: Iterable[SourceDocument]) -> List[PageReference]:
    """Page references in source order, then in intra-source page order."""

    references: List[PageReference] = []
    for source in sources:
        for page_number in range(1, source.page_count + 1):
            references.append(
                PageReference(
                    source_id=source.id,
                    page_number=page_number,
                    logical_index=len(references),
                )
            )
    return references


def _page_key(reference: PageReference) -> Tuple[str, int]:
    return reference.source_id, reference.page_number


class PageOrderTracker:
    """Maps logical positions to pages of the natural (merged) order.

    ``order[i]`` is the natural index of the page shown at logical position
    ``i``. Pages are identified by source id and page number, so moving a
    source keeps every page at its logical position. A change in the total
    page count resets the order to the identity.
    """

    def __init__(self, sources: Iterable[SourceDocument] = ()) -> None:
        self._natural: List[PageReference] = []
        self._order: List[int] = []
        self.sync(sources)

    # ------------------------------------------------------------------
    # Source synchronisation
    # ------------------------------------------------------------------
    def sync(self, sources: Iterable[SourceDocument]) -> bool:
        """Rebuild the natural page list; return ``True`` if the order was reset.

        The order resets to the identity when the page count changes. While
        the same pages are present the logical sequence is kept and expressed
        against the new natural order. Otherwise the positions are kept.
        """

        sequence = [_page_key(self._natural[index]) for index in self._order]
        self._natural = natural_references(sources)
        if len(self._natural) != len(sequence):
            LOGGER.debug("Page count changed to %d, resetting order", len(self._natural))
            self._order = list(range(len(self._natural)))
            return True
        positions = {_page_key(ref): index for index, ref in enumerate(self._natural)}
        if all(key in positions for key in sequence):
            self._order = [positions[key] for key in sequence]
        return False

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    @property
    def order(self) -> List[int]:
        return list(self._order)

    def __len__(self) -> int:
        return len(self._order)

    @property
    def is_identity(self) -> bool:
        return all(value == index for index, value in enumerate(self._order))

    def references(self) -> List[PageReference]:
        """The current logical page sequence."""

        return [
            PageReference(
                source_id=self._natural[natural_index].source_id,
                page_number=self._natural[natural_index].page_number,
                logical_index=logical_index,
            )
            for logical_index, natural_index in enumerate(self._order)
        ]

    def reference_at(self, logical_index: int) -> PageReference:
        return self.references()[logical_index]

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    def reorder(self, old_index: int, new_index: int) -> bool:
        """Move the page at ``old_index`` to ``new_index``.

        Pages in between shift by one position. Out-of-range indexes leave the
        order untouched and return ``False``.
        """

        size = len(self._order)
        if not (0 <= old_index < size and 0 <= new_index < size):
            LOGGER.debug("Ignoring reorder %s -> %s for %d page(s)", old_index, new_index, size)
            return False
        page = self._order.pop(old_index)
        self._order.insert(new_index, page)
        return True

    def set_order(self, order: Sequence[int]) -> None:
        candidate = [int(value) for value in order]
        if sorted(candidate) != list(range(len(self._natural))):
            raise ValueError(
                f"Order must be a permutation of 0..{len(self._natural) - 1}, got {candidate!r}"
            )
        self._order = candidate

    def reset(self) -> None:
        self._order = list(range(len(self._natural)))


__all__ = ["PageOrderTracker", "natural_references"]
