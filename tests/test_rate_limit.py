"""Tests for the in-process rate limiter."""

import threading

from src.intake.ratelimit import InMemoryRateLimiter


class TestFixedWindow:
    """Tests for window counting and reset."""

    def test_seventh_call_rejected(self, fake_clock) -> None:
        """Six calls pass within a window; the seventh is refused."""
        limiter = InMemoryRateLimiter(60, 6, clock=fake_clock)

        results = []
        for _ in range(7):
            results.append(limiter.check("198.51.100.1"))
            fake_clock.advance(1)

        assert results == [True] * 6 + [False]

    def test_window_resets_after_expiry(self, fake_clock) -> None:
        """A call more than 60 s after the window start succeeds."""
        limiter = InMemoryRateLimiter(60, 6, clock=fake_clock)
        for _ in range(7):
            limiter.check("198.51.100.1")

        fake_clock.advance(60.5)
        assert limiter.check("198.51.100.1") is True

    def test_boundary_is_inclusive(self, fake_clock) -> None:
        """Exactly 60 s after the start still counts as the same window."""
        limiter = InMemoryRateLimiter(60, 1, clock=fake_clock)
        assert limiter.check("k") is True

        fake_clock.advance(60)
        assert limiter.check("k") is False

        fake_clock.advance(0.001)
        assert limiter.check("k") is True

    def test_refused_attempts_still_count(self, fake_clock) -> None:
        """Hammering during a window does not extend it."""
        limiter = InMemoryRateLimiter(60, 2, clock=fake_clock)
        for _ in range(10):
            limiter.check("k")
            fake_clock.advance(5)

        # 50 s elapsed since the window began; still refused
        assert limiter.check("k") is False
        fake_clock.advance(15)
        assert limiter.check("k") is True

    def test_keys_are_independent(self, fake_clock) -> None:
        limiter = InMemoryRateLimiter(60, 1, clock=fake_clock)
        assert limiter.check("a") is True
        assert limiter.check("a") is False
        assert limiter.check("b") is True
        assert len(limiter) == 2

    def test_reset(self, fake_clock) -> None:
        limiter = InMemoryRateLimiter(60, 1, clock=fake_clock)
        limiter.check("a")
        limiter.check("b")

        limiter.reset("a")
        assert limiter.check("a") is True
        assert limiter.check("b") is False

        limiter.reset()
        assert len(limiter) == 0

    def test_expired_windows_evicted(self, fake_clock) -> None:
        """Callers who never return do not accumulate state."""
        limiter = InMemoryRateLimiter(60, 6, clock=fake_clock)
        for i in range(100):
            limiter.check(f"203.0.113.{i}")
        assert len(limiter) == 100

        fake_clock.advance(61)
        limiter.check("198.51.100.1")

        assert len(limiter) == 1

    def test_live_windows_survive_eviction(self, fake_clock) -> None:
        limiter = InMemoryRateLimiter(60, 1, clock=fake_clock)
        limiter.check("old")
        fake_clock.advance(30)
        limiter.check("recent")
        fake_clock.advance(31)

        limiter.check("new")

        assert len(limiter) == 2
        assert limiter.check("recent") is False


class TestConcurrency:
    """Increment-and-compare is atomic per key."""

    def test_exact_ceiling_under_threads(self, fake_clock) -> None:
        limiter = InMemoryRateLimiter(60, 25, clock=fake_clock)
        allowed: list[bool] = []
        lock = threading.Lock()

        def worker() -> None:
            for _ in range(10):
                result = limiter.check("shared")
                with lock:
                    allowed.append(result)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(allowed) == 80
        assert allowed.count(True) == 25
