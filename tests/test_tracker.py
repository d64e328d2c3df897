import asyncio

import pytest

from subcrawl.crawler.tracker import InFlightTracker


@pytest.mark.asyncio
async def test_drained_once_everything_is_done():
    tracker = InFlightTracker()
    tracker.add()
    tracker.add(2)
    assert tracker.in_flight == 3

    waiter = asyncio.create_task(tracker.wait_drained())
    tracker.done()
    tracker.done()
    await asyncio.sleep(0)
    assert not waiter.done()

    tracker.done()
    await asyncio.wait_for(waiter, timeout=1)
    assert tracker.in_flight == 0


def test_done_without_add_is_an_error():
    tracker = InFlightTracker()
    with pytest.raises(RuntimeError):
        tracker.done()
