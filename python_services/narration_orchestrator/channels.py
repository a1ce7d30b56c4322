"""Three independently cursored slide queues (exploratory, audience, deck).

All channel operations are written once and dispatched by `ChannelType`.
Every mutation replaces the whole `Channel` value; nothing is edited in place.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, Optional, Tuple

from shared.models import Slide

from .state import ChannelView

logger = logging.getLogger(__name__)

DEFAULT_EXPLORATORY_CAPACITY = 10


class ChannelType(str, Enum):
    EXPLORATORY = "exploratory"
    AUDIENCE = "audience"
    SLIDES = "slides"


class Direction(str, Enum):
    PREV = "prev"
    NEXT = "next"


@dataclass(frozen=True)
class Channel:
    queue: Tuple[Slide, ...] = ()
    cursor: int = 0

    def clamped(self) -> "Channel":
        upper = max(0, len(self.queue) - 1)
        return Channel(self.queue, min(max(self.cursor, 0), upper))


class ChannelStore:
    """Holds the three channels; only the exploratory channel is capacity-bounded."""

    def __init__(self, exploratory_capacity: int = DEFAULT_EXPLORATORY_CAPACITY) -> None:
        if exploratory_capacity < 1:
            raise ValueError("exploratory_capacity must be at least 1")
        self.exploratory_capacity = exploratory_capacity
        self._channels: Dict[ChannelType, Channel] = {kind: Channel() for kind in ChannelType}

    def channel(self, kind: ChannelType) -> Channel:
        return self._channels[kind]

    def queue(self, kind: ChannelType) -> Tuple[Slide, ...]:
        return self._channels[kind].queue

    # ------------------------------------------------------------------
    # Mutations ---------------------------------------------------------
    # ------------------------------------------------------------------

    def append(self, kind: ChannelType, slide: Slide) -> None:
        self.extend(kind, [slide])

    def extend(self, kind: ChannelType, slides: Iterable[Slide]) -> None:
        current = self._channels[kind]
        queue = current.queue + tuple(slides)
        cursor = current.cursor
        if kind is ChannelType.EXPLORATORY and len(queue) > self.exploratory_capacity:
            evicted = len(queue) - self.exploratory_capacity
            queue = queue[evicted:]
            # keep the cursor on the same slide when it survived eviction
            cursor -= evicted
            logger.debug(f"🧹 Evicted {evicted} oldest exploratory slide(s)")
        self._channels[kind] = Channel(queue, cursor).clamped()

    def navigate(self, kind: ChannelType, direction: Direction) -> int:
        """Move the cursor one step; never leaves [0, len-1]. Returns the new cursor."""
        current = self._channels[kind]
        step = -1 if Direction(direction) is Direction.PREV else 1
        self._channels[kind] = Channel(current.queue, current.cursor + step).clamped()
        return self._channels[kind].cursor

    def take(self, kind: ChannelType) -> Optional[Slide]:
        """Remove and return the slide at the cursor (None when empty)."""
        current = self._channels[kind]
        if not current.queue:
            return None
        slide = current.queue[current.cursor]
        queue = current.queue[: current.cursor] + current.queue[current.cursor + 1 :]
        self._channels[kind] = Channel(queue, current.cursor).clamped()
        return slide

    def remove(self, kind: ChannelType, slide_id: str) -> bool:
        """Remove a slide by id regardless of the cursor. Returns whether anything was removed."""
        current = self._channels[kind]
        index = next((i for i, s in enumerate(current.queue) if s.id == slide_id), None)
        if index is None:
            return False
        queue = current.queue[:index] + current.queue[index + 1 :]
        cursor = current.cursor - 1 if index < current.cursor else current.cursor
        self._channels[kind] = Channel(queue, cursor).clamped()
        return True

    def reset(self, kind: Optional[ChannelType] = None) -> None:
        """Empty one channel, or all of them when `kind` is None."""
        kinds = [kind] if kind is not None else list(ChannelType)
        for k in kinds:
            self._channels[k] = Channel()

    # ------------------------------------------------------------------
    # Reads -------------------------------------------------------------
    # ------------------------------------------------------------------

    def peek_current(self, kind: ChannelType) -> Optional[Slide]:
        current = self._channels[kind]
        if not current.queue:
            return None
        return current.queue[current.cursor]

    def info(self, kind: ChannelType) -> ChannelView:
        current = self._channels[kind]
        total = len(current.queue)
        return ChannelView(
            current=self.peek_current(kind),
            total=total,
            cursor=current.cursor,
            can_go_prev=current.cursor > 0,
            can_go_next=current.cursor < total - 1,
        )

    def is_empty(self) -> bool:
        return all(not c.queue for c in self._channels.values())
