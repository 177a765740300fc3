"""Tests for the turn event bus."""

import pytest

from smartmem.events import BEFORE_TURN, TURN_END, BeforeTurnEvent, EventBus, TurnEndEvent


@pytest.fixture
def bus() -> EventBus:
    return EventBus()


def test_unknown_event_rejected(bus: EventBus) -> None:
    with pytest.raises(ValueError, match="Unknown event"):
        bus.on("after_everything", lambda payload: None)


def test_off_removes_handler(bus: EventBus) -> None:
    handler = lambda payload: None  # noqa: E731
    bus.on(BEFORE_TURN, handler)
    bus.off(BEFORE_TURN, handler)
    bus.off(BEFORE_TURN, handler)
    assert bus.handlers(BEFORE_TURN) == []


@pytest.mark.asyncio
async def test_emit_collects_results_in_order(bus: EventBus) -> None:
    async def first(event: BeforeTurnEvent) -> str:
        return f"first:{event.prompt}"

    def second(event: BeforeTurnEvent) -> str:
        return "second"

    bus.on(BEFORE_TURN, first)
    bus.on(BEFORE_TURN, second)

    assert await bus.emit(BEFORE_TURN, BeforeTurnEvent(prompt="hi")) == ["first:hi", "second"]


@pytest.mark.asyncio
async def test_emit_drops_none_results(bus: EventBus) -> None:
    bus.on(TURN_END, lambda event: None)
    assert await bus.emit(TURN_END, TurnEndEvent()) == []


@pytest.mark.asyncio
async def test_failing_handler_does_not_stop_others(bus: EventBus) -> None:
    async def failing(event: BeforeTurnEvent) -> str:
        raise RuntimeError("boom")

    bus.on(BEFORE_TURN, failing)
    bus.on(BEFORE_TURN, lambda event: "still here")

    assert await bus.emit(BEFORE_TURN, BeforeTurnEvent(prompt="hi")) == ["still here"]


@pytest.mark.asyncio
async def test_emit_without_handlers(bus: EventBus) -> None:
    assert await bus.emit(TURN_END, TurnEndEvent(messages=[], success=False)) == []


def test_turn_end_defaults() -> None:
    event = TurnEndEvent()
    assert event.messages == []
    assert event.success is True
