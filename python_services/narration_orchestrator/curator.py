"""Legacy two-slot option curation.

The presenter sees two candidate slides. A new slide fills an empty slot
directly; once both are full the curator service decides which one (if any)
the newcomer replaces.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from shared.models import Slide

from .contracts import CuratorDecision, CuratorRequest, CuratorSlide
from .errors import ServiceError
from .services import SlideServices
from .state import SessionEpoch

logger = logging.getLogger(__name__)

VALID_ACTIONS = ("replace_slot_1", "replace_slot_2", "discard")


class SlotCurator:
    def __init__(self, services: SlideServices, epoch: Optional[SessionEpoch] = None) -> None:
        self.services = services
        self.epoch = epoch or SessionEpoch()
        self.options: List[Optional[Slide]] = [None, None]
        self.status = ""

    def reset(self) -> None:
        self.options = [None, None]
        self.status = ""

    def remove(self, slide_id: str) -> bool:
        for i, option in enumerate(self.options):
            if option is not None and option.id == slide_id:
                options = list(self.options)
                options[i] = None
                self.options = options
                return True
        return False

    async def decide(self, slide: Slide) -> CuratorDecision:
        if self.options[0] is None:
            return CuratorDecision(action="replace_slot_1", reasoning="Slot 1 was empty")
        if self.options[1] is None:
            return CuratorDecision(action="replace_slot_2", reasoning="Slot 2 was empty")

        request = CuratorRequest(
            new_slide=CuratorSlide.from_slide(slide),
            current_options=[CuratorSlide.from_slide(o) if o else None for o in self.options],
        )
        try:
            decision = await self.services.curate(request)
        except ServiceError as e:
            logger.error(f"❌ Slide curator error: {e}")
            # keep newest content flowing
            return CuratorDecision(action="replace_slot_2", reasoning="Error in curator, defaulting to replace slot 2")

        if decision.action not in VALID_ACTIONS:
            return CuratorDecision(action="discard", reasoning=decision.reasoning or "Could not determine best action")
        return decision

    async def offer(self, slide: Slide) -> CuratorDecision:
        token = self.epoch.token()
        self.status = "Curating..."
        decision = await self.decide(slide)
        if not self.epoch.is_current(token):
            logger.warning(f"Curator answered for '{slide.title}' after a session reset; ignoring")
            return decision
        options = list(self.options)
        if decision.action == "replace_slot_1":
            options[0] = slide
        elif decision.action == "replace_slot_2":
            options[1] = slide
        self.options = options
        self.status = decision.reasoning
        logger.info(f"🗂️ Curator: {decision.action} ({decision.reasoning})")
        return decision
