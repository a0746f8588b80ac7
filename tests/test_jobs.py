import asyncio

import pytest

from pryvo.jobs import run_repeating


@pytest.mark.asyncio
async def test_run_repeating_survives_failures():
    runs = []
    done = asyncio.Event()

    async def flaky():
        runs.append(len(runs))
        if len(runs) == 1:
            raise RuntimeError("first run fails")
        if len(runs) >= 3:
            done.set()

    task = asyncio.ensure_future(run_repeating(flaky, interval=0.001, name="flaky"))
    await asyncio.wait_for(done.wait(), timeout=2)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task
    assert len(runs) >= 3


@pytest.mark.asyncio
async def test_application_lifecycle(core):
    await core.start()
    assert core.is_running
    await core.stop()
    assert not core.is_running
