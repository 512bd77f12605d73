"""Tests for the event bus."""

from neotactics.util.events import CombatOccurred, EventBus, FloatingText, UnitDeselected


class TestEventBus:
    def test_emit_triggers_handler(self):
        bus = EventBus()
        received = []
        bus.on(CombatOccurred, lambda e: received.append(e.damage))
        bus.emit(CombatOccurred(attacker_id=1, defender_id=2, damage=7, died=False))
        assert received == [7]

    def test_no_cross_event(self):
        bus = EventBus()
        received = []
        bus.on(CombatOccurred, lambda e: received.append("combat"))
        bus.emit(FloatingText(tile=3, text="+20", color="#4ade80"))
        assert received == []

    def test_multiple_handlers(self):
        bus = EventBus()
        a, b = [], []
        bus.on(UnitDeselected, lambda e: a.append(1))
        bus.on(UnitDeselected, lambda e: b.append(2))
        bus.emit(UnitDeselected())
        assert a == [1] and b == [2]

    def test_off_removes_handler(self):
        bus = EventBus()
        received = []
        handler = lambda e: received.append(1)
        bus.on(UnitDeselected, handler)
        bus.off(UnitDeselected, handler)
        bus.emit(UnitDeselected())
        assert received == []

    def test_on_any_sees_every_event(self):
        bus = EventBus()
        seen = []
        bus.on_any(lambda e: seen.append(type(e).__name__))
        bus.emit(UnitDeselected())
        bus.emit(FloatingText(tile=0, text="READY", color="#10b981"))
        assert seen == ["UnitDeselected", "FloatingText"]

    def test_off_any(self):
        bus = EventBus()
        seen = []
        handler = lambda e: seen.append(e)
        bus.on_any(handler)
        bus.off_any(handler)
        bus.emit(UnitDeselected())
        assert seen == []

    def test_clear(self):
        bus = EventBus()
        bus.on(UnitDeselected, lambda e: None)
        bus.on_any(lambda e: None)
        bus.clear()
        # Should not raise
        bus.emit(UnitDeselected())

    def test_handler_may_unsubscribe_during_emit(self):
        bus = EventBus()
        calls = []

        def once(e):
            calls.append(1)
            bus.off(UnitDeselected, once)

        bus.on(UnitDeselected, once)
        bus.emit(UnitDeselected())
        bus.emit(UnitDeselected())
        assert calls == [1]
