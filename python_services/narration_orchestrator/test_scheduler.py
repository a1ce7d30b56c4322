import asyncio

import pytest

from .conftest import make_slide
from .scheduler import ExploratoryTriggerScheduler
from .state import PresenterPrompt, SessionEpoch, TriggerKind


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


class RecordingDispatcher:
    def __init__(self, results=None):
        self.batches = []
        self.results = list(results or [])

    async def __call__(self, batch):
        self.batches.append(batch)
        return self.results.pop(0) if self.results else True


@pytest.mark.asyncio
async def test_burst_of_accepted_slides_coalesces_into_one_dispatch():
    dispatcher = RecordingDispatcher()
    scheduler = ExploratoryTriggerScheduler(dispatcher, interval=0.05)
    slides = [make_slide(f"Accepted {i}") for i in range(3)]

    for slide in slides:
        assert await scheduler.enqueue(TriggerKind.ACCEPTED_SLIDE, slide) is False
    assert dispatcher.batches == []
    assert scheduler.has_scheduled_dispatch

    await asyncio.sleep(0.15)
    await scheduler.wait_idle()

    assert len(dispatcher.batches) == 1
    assert dispatcher.batches[0].accepted_slides == tuple(slides)
    assert scheduler.pending.is_empty()


@pytest.mark.asyncio
async def test_presenter_prompt_dispatches_immediately():
    clock = FakeClock()
    dispatcher = RecordingDispatcher()
    scheduler = ExploratoryTriggerScheduler(dispatcher, interval=20.0, clock=clock)

    ok = await scheduler.enqueue(TriggerKind.PRESENTER_PROMPT, PresenterPrompt("explain the risks"), force_now=True)

    assert ok
    assert dispatcher.batches[0].presenter_prompts == (PresenterPrompt("explain the risks"),)
    assert not scheduler.has_scheduled_dispatch


@pytest.mark.asyncio
async def test_passive_trigger_after_interval_dispatches_at_once():
    clock = FakeClock()
    dispatcher = RecordingDispatcher()
    scheduler = ExploratoryTriggerScheduler(dispatcher, interval=20.0, clock=clock)

    clock.now += 21
    assert await scheduler.enqueue(TriggerKind.ACCEPTED_SLIDE, make_slide())
    assert len(dispatcher.batches) == 1
    assert scheduler.last_dispatch == clock.now


@pytest.mark.asyncio
async def test_failed_dispatch_rolls_back_and_keeps_window_open():
    clock = FakeClock()
    dispatcher = RecordingDispatcher(results=[False, True])
    scheduler = ExploratoryTriggerScheduler(dispatcher, interval=20.0, clock=clock)
    first, second = make_slide("first"), make_slide("second")
    before = scheduler.last_dispatch

    assert not await scheduler.enqueue(TriggerKind.ACCEPTED_SLIDE, first, force_now=True)
    assert scheduler.pending.accepted_slides == (first,)
    assert scheduler.last_dispatch == before

    assert await scheduler.enqueue(TriggerKind.ACCEPTED_SLIDE, second, force_now=True)
    assert dispatcher.batches[1].accepted_slides == (first, second)
    assert scheduler.pending.is_empty()


@pytest.mark.asyncio
async def test_paused_prompt_is_held_until_resume():
    dispatcher = RecordingDispatcher()
    scheduler = ExploratoryTriggerScheduler(dispatcher, interval=20.0, clock=FakeClock())
    scheduler.pause()

    prompt = PresenterPrompt("explain the risks")
    assert not await scheduler.enqueue(TriggerKind.PRESENTER_PROMPT, prompt, force_now=True)
    assert dispatcher.batches == []
    assert scheduler.pending.presenter_prompts == (prompt,)

    assert await scheduler.resume()
    assert len(dispatcher.batches) == 1
    assert dispatcher.batches[0].presenter_prompts == (prompt,)


@pytest.mark.asyncio
async def test_resume_folds_leftover_narration_into_a_prompt():
    dispatcher = RecordingDispatcher()
    scheduler = ExploratoryTriggerScheduler(dispatcher, interval=20.0, clock=FakeClock())
    scheduler.pause()

    assert await scheduler.resume("  what I said while paused ")
    assert dispatcher.batches[0].presenter_prompts == (PresenterPrompt("what I said while paused"),)


@pytest.mark.asyncio
async def test_resume_with_nothing_pending_does_not_dispatch():
    dispatcher = RecordingDispatcher()
    scheduler = ExploratoryTriggerScheduler(dispatcher, interval=20.0, clock=FakeClock())
    scheduler.pause()

    assert not await scheduler.resume("   ")
    assert not scheduler.paused
    assert dispatcher.batches == []


@pytest.mark.asyncio
async def test_reset_cancels_timer_and_discards_pending():
    clock = FakeClock()
    dispatcher = RecordingDispatcher()
    scheduler = ExploratoryTriggerScheduler(dispatcher, interval=20.0, clock=clock)
    await scheduler.enqueue(TriggerKind.ACCEPTED_SLIDE, make_slide())
    scheduler.pause()
    scheduler.record(TriggerKind.AUDIENCE_QUESTION, make_slide("question"))

    clock.now += 5
    scheduler.reset()

    assert not scheduler.has_scheduled_dispatch
    assert scheduler.pending.is_empty()
    assert not scheduler.paused
    assert scheduler.last_dispatch == clock.now
    assert dispatcher.batches == []


@pytest.mark.asyncio
async def test_success_after_reset_does_not_touch_new_window():
    clock = FakeClock()
    epoch = SessionEpoch()
    hold = asyncio.Event()
    batches = []

    async def dispatcher(batch):
        batches.append(batch)
        await hold.wait()
        return True

    scheduler = ExploratoryTriggerScheduler(dispatcher, interval=20.0, clock=clock, epoch=epoch)
    task = asyncio.ensure_future(
        scheduler.enqueue(TriggerKind.PRESENTER_PROMPT, PresenterPrompt("old session"), force_now=True)
    )
    await asyncio.sleep(0)

    epoch.advance()
    clock.now += 3
    scheduler.reset()
    clock.now += 4
    hold.set()
    await task

    assert scheduler.last_dispatch == 1003.0
    assert scheduler.pending.is_empty()
