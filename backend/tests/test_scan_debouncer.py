# Overview: Pytest coverage for scan debouncing.

from tallyscan.services.scan_debouncer import (
    DebouncerRegistry,
    ScanDebouncer,
    ScanSignal,
    should_accept,
)


class TestShouldAccept:
    def test_first_signal(self):
        assert should_accept(None, 0, 500) is True

    def test_inside_window(self):
        assert should_accept(1000, 1499, 500) is False

    def test_window_boundary_accepts(self):
        assert should_accept(1000, 1500, 500) is True


class TestScanDebouncer:
    def test_burst_of_same_code_yields_one(self):
        debouncer = ScanDebouncer(window_ms=500)
        accepted = [
            debouncer.offer(ScanSignal(at_ms=t, code="A"))
            for t in (0, 50, 100, 499)
        ]
        assert accepted == [True, False, False, False]

    def test_different_code_inside_window_is_dropped(self):
        """The window is per source, not per code."""
        debouncer = ScanDebouncer(window_ms=500)
        assert debouncer.offer(ScanSignal(at_ms=0, code="A")) is True
        assert debouncer.offer(ScanSignal(at_ms=200, code="B")) is False

    def test_dropped_signals_do_not_extend_window(self):
        debouncer = ScanDebouncer(window_ms=500)
        debouncer.offer(ScanSignal(at_ms=0, code="A"))
        debouncer.offer(ScanSignal(at_ms=400, code="A"))
        assert debouncer.offer(ScanSignal(at_ms=500, code="A")) is True
        assert debouncer.last_accepted_at == 500

    def test_feed_calls_back_only_when_accepted(self):
        debouncer = ScanDebouncer(window_ms=500)
        seen = []

        def on_accept(code):
            seen.append(code)
            return code.lower()

        assert debouncer.feed(ScanSignal(at_ms=10, code="ABC"), on_accept) == "abc"
        assert debouncer.feed(ScanSignal(at_ms=20, code="ABC"), on_accept) is None
        assert seen == ["ABC"]

    def test_reset(self):
        debouncer = ScanDebouncer(window_ms=500)
        debouncer.offer(ScanSignal(at_ms=0, code="A"))
        debouncer.reset()
        assert debouncer.offer(ScanSignal(at_ms=1, code="A")) is True


class TestDebouncerRegistry:
    def test_stations_are_independent(self):
        registry = DebouncerRegistry(window_ms=500)
        assert registry.offer(1, "front", ScanSignal(at_ms=0, code="A")) is True
        assert registry.offer(1, "back", ScanSignal(at_ms=10, code="A")) is True
        assert registry.offer(1, "front", ScanSignal(at_ms=20, code="A")) is False

    def test_orgs_are_independent(self):
        registry = DebouncerRegistry(window_ms=500)
        assert registry.offer(1, "front", ScanSignal(at_ms=0, code="A")) is True
        assert registry.offer(2, "front", ScanSignal(at_ms=0, code="A")) is True

    def test_same_debouncer_returned(self):
        registry = DebouncerRegistry(window_ms=250)
        assert registry.get(1, "x") is registry.get(1, "x")
        assert registry.get(1, "x").window_ms == 250

    def test_clear(self):
        registry = DebouncerRegistry(window_ms=500)
        registry.offer(1, "front", ScanSignal(at_ms=0, code="A"))
        registry.clear()
        assert registry.offer(1, "front", ScanSignal(at_ms=1, code="A")) is True

    def test_least_recently_used_station_evicted(self):
        registry = DebouncerRegistry(window_ms=500, max_stations=2)
        registry.offer(1, "front", ScanSignal(at_ms=0, code="A"))
        registry.offer(1, "back", ScanSignal(at_ms=0, code="A"))
        registry.get(1, "front")
        registry.offer(1, "side", ScanSignal(at_ms=0, code="A"))

        assert len(registry) == 2
        # "back" was dropped, so it opens a fresh window
        assert registry.offer(1, "back", ScanSignal(at_ms=10, code="A")) is True
        assert registry.offer(1, "side", ScanSignal(at_ms=20, code="A")) is False
