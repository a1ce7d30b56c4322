import pytest

from .channels import ChannelStore, ChannelType, Direction
from .conftest import make_slide


def fill(store, kind, count):
    slides = [make_slide(f"Slide {i}") for i in range(count)]
    store.extend(kind, slides)
    return slides


def test_empty_channel_has_no_current_slide():
    store = ChannelStore()
    view = store.info(ChannelType.EXPLORATORY)
    assert view.current is None
    assert view.total == 0
    assert view.cursor == 0
    assert not view.can_go_prev and not view.can_go_next
    assert store.take(ChannelType.EXPLORATORY) is None
    assert store.is_empty()


def test_append_does_not_move_cursor():
    store = ChannelStore()
    slides = fill(store, ChannelType.AUDIENCE, 3)
    assert store.channel(ChannelType.AUDIENCE).cursor == 0
    assert store.peek_current(ChannelType.AUDIENCE) == slides[0]


def test_navigation_is_clamped_at_both_ends():
    store = ChannelStore()
    fill(store, ChannelType.SLIDES, 3)

    assert store.navigate(ChannelType.SLIDES, Direction.PREV) == 0
    assert store.navigate(ChannelType.SLIDES, Direction.NEXT) == 1
    assert store.navigate(ChannelType.SLIDES, Direction.NEXT) == 2
    assert store.navigate(ChannelType.SLIDES, Direction.NEXT) == 2

    view = store.info(ChannelType.SLIDES)
    assert view.can_go_prev and not view.can_go_next


def test_take_removes_slide_at_cursor_and_clamps():
    store = ChannelStore()
    slides = fill(store, ChannelType.EXPLORATORY, 3)
    store.navigate(ChannelType.EXPLORATORY, Direction.NEXT)
    store.navigate(ChannelType.EXPLORATORY, Direction.NEXT)

    assert store.take(ChannelType.EXPLORATORY) == slides[2]
    assert store.channel(ChannelType.EXPLORATORY).cursor == 1
    assert store.peek_current(ChannelType.EXPLORATORY) == slides[1]

    assert store.take(ChannelType.EXPLORATORY) == slides[1]
    assert store.take(ChannelType.EXPLORATORY) == slides[0]
    assert store.channel(ChannelType.EXPLORATORY).cursor == 0
    assert store.take(ChannelType.EXPLORATORY) is None


def test_remove_before_cursor_keeps_current_slide():
    store = ChannelStore()
    slides = fill(store, ChannelType.AUDIENCE, 3)
    store.navigate(ChannelType.AUDIENCE, Direction.NEXT)
    store.navigate(ChannelType.AUDIENCE, Direction.NEXT)

    assert store.remove(ChannelType.AUDIENCE, slides[0].id)
    assert store.peek_current(ChannelType.AUDIENCE) == slides[2]
    assert not store.remove(ChannelType.AUDIENCE, "missing")


def test_exploratory_channel_evicts_oldest_beyond_capacity():
    store = ChannelStore(exploratory_capacity=3)
    slides = fill(store, ChannelType.EXPLORATORY, 5)

    assert store.queue(ChannelType.EXPLORATORY) == tuple(slides[2:])


def test_eviction_keeps_cursor_on_surviving_slide():
    store = ChannelStore(exploratory_capacity=3)
    slides = fill(store, ChannelType.EXPLORATORY, 3)
    store.navigate(ChannelType.EXPLORATORY, Direction.NEXT)
    store.navigate(ChannelType.EXPLORATORY, Direction.NEXT)

    store.append(ChannelType.EXPLORATORY, make_slide("Fresh"))

    assert store.peek_current(ChannelType.EXPLORATORY) == slides[2]
    assert store.channel(ChannelType.EXPLORATORY).cursor == 1


def test_other_channels_are_unbounded():
    store = ChannelStore(exploratory_capacity=2)
    fill(store, ChannelType.SLIDES, 5)
    assert store.info(ChannelType.SLIDES).total == 5


def test_reset_one_or_all_channels():
    store = ChannelStore()
    fill(store, ChannelType.EXPLORATORY, 2)
    fill(store, ChannelType.AUDIENCE, 2)

    store.reset(ChannelType.EXPLORATORY)
    assert store.info(ChannelType.EXPLORATORY).total == 0
    assert store.info(ChannelType.AUDIENCE).total == 2

    store.reset()
    assert store.is_empty()


def test_capacity_must_be_positive():
    with pytest.raises(ValueError):
        ChannelStore(exploratory_capacity=0)
