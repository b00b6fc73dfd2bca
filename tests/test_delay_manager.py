import asyncio

from erutcurts.delay_manager import DelayManager


def test_negative_delay_is_clamped():
    manager = DelayManager(-1)
    assert manager.delay == 0
    manager.set_delay(-5)
    assert manager.delay == 0


def test_requests_are_spaced(monkeypatch):
    sleeps = []

    async def fake_sleep(seconds):
        sleeps.append(seconds)

    monkeypatch.setattr("erutcurts.delay_manager.asyncio.sleep", fake_sleep)
    manager = DelayManager(60)

    async def run():
        await manager.wait_before_request()
        await manager.wait_before_request()

    asyncio.run(run())
    # 첫 요청은 기다리지 않음
    assert len(sleeps) == 1
    assert 0 < sleeps[0] <= 60


def test_zero_delay_never_sleeps(monkeypatch):
    sleeps = []

    async def fake_sleep(seconds):
        sleeps.append(seconds)

    monkeypatch.setattr("erutcurts.delay_manager.asyncio.sleep", fake_sleep)
    manager = DelayManager(0)

    async def run():
        for _ in range(3):
            await manager.wait_before_request()

    asyncio.run(run())
    assert sleeps == []
