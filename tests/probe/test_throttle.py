"""Tests for the run-scoped RequestThrottle."""

from __future__ import annotations

import pytest

from agentdir.probe import RequestThrottle
from tests.conftest import FakeClock


class TestRequestThrottle:
    """Requests are spaced at least min_interval apart."""

    @pytest.mark.asyncio
    async def test_first_request_does_not_wait(self, fake_clock: FakeClock) -> None:
        throttle = RequestThrottle(1.0, clock=fake_clock, sleep=fake_clock.sleep)
        async with throttle:
            pass
        assert fake_clock.sleeps == []

    @pytest.mark.asyncio
    async def test_back_to_back_requests_wait_full_interval(self, fake_clock: FakeClock) -> None:
        throttle = RequestThrottle(1.0, clock=fake_clock, sleep=fake_clock.sleep)
        for _ in range(3):
            async with throttle:
                pass
        assert fake_clock.sleeps == [1.0, 1.0]

    @pytest.mark.asyncio
    async def test_elapsed_time_is_credited(self, fake_clock: FakeClock) -> None:
        throttle = RequestThrottle(1.0, clock=fake_clock, sleep=fake_clock.sleep)
        async with throttle:
            pass
        fake_clock.advance(0.25)
        async with throttle:
            pass
        fake_clock.advance(5.0)
        async with throttle:
            pass
        assert fake_clock.sleeps == [pytest.approx(0.75)]

    @pytest.mark.asyncio
    async def test_interval_measured_from_completion(self, fake_clock: FakeClock) -> None:
        """A slow request does not shorten the gap before the next one."""
        throttle = RequestThrottle(1.0, clock=fake_clock, sleep=fake_clock.sleep)
        async with throttle:
            fake_clock.advance(3.0)
        async with throttle:
            pass
        assert fake_clock.sleeps == [1.0]

    @pytest.mark.asyncio
    async def test_marks_even_when_request_raises(self, fake_clock: FakeClock) -> None:
        throttle = RequestThrottle(1.0, clock=fake_clock, sleep=fake_clock.sleep)
        with pytest.raises(RuntimeError):
            async with throttle:
                raise RuntimeError("boom")
        assert throttle.remaining() == 1.0

    @pytest.mark.asyncio
    async def test_zero_interval_never_sleeps(self, fake_clock: FakeClock) -> None:
        throttle = RequestThrottle(0.0, clock=fake_clock, sleep=fake_clock.sleep)
        for _ in range(5):
            async with throttle:
                pass
        assert fake_clock.sleeps == []

    def test_negative_interval_rejected(self) -> None:
        with pytest.raises(ValueError):
            RequestThrottle(-0.1)
