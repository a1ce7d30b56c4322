"""History of presenter-accepted slides and the style references derived from it."""

from __future__ import annotations

import logging
from typing import List, Tuple

from shared.models import Slide

from .contracts import AcceptedSlideEntry, StyleReference

logger = logging.getLogger(__name__)

DEFAULT_STYLE_REFERENCE_LIMIT = 2


class AcceptedSlideLedger:
    """Append-only during a session; the first accepted slides become style references."""

    def __init__(self, style_reference_limit: int = DEFAULT_STYLE_REFERENCE_LIMIT) -> None:
        self.style_reference_limit = style_reference_limit
        self._entries: Tuple[AcceptedSlideEntry, ...] = ()
        self._style_references: Tuple[StyleReference, ...] = ()

    @property
    def entries(self) -> List[AcceptedSlideEntry]:
        return list(self._entries)

    @property
    def style_references(self) -> List[StyleReference]:
        return list(self._style_references)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, slide_id: object) -> bool:
        return any(e.id == slide_id for e in self._entries)

    def record(self, slide: Slide) -> bool:
        """Append a compact entry for `slide`. Returns False if it was already recorded."""
        if slide.id in self:
            logger.debug(f"Slide {slide.id} already recorded; ignoring")
            return False

        entry = AcceptedSlideEntry(
            id=slide.id,
            headline=slide.title or "Untitled",
            visual_description=slide.description,
            category=slide.category,
        )
        self._entries = self._entries + (entry,)

        if len(self._style_references) < self.style_reference_limit:
            reference = StyleReference(
                headline=entry.headline,
                visual_description=entry.visual_description,
                category=entry.category,
                slide_number=len(self._entries),
            )
            self._style_references = self._style_references + (reference,)
            logger.info(f"🎨 Added style reference slide: {len(self._style_references)}")

        logger.info(f"📝 Recorded accepted slide: {len(self._entries)} slides in history")
        return True

    def recent(self, count: int) -> List[AcceptedSlideEntry]:
        return list(self._entries[-count:]) if count > 0 else []

    def reset(self) -> None:
        self._entries = ()
        self._style_references = ()
