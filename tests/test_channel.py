import asyncio

import pytest

from subcrawl.crawler.channel import (
    Channel, ChannelClosed, ChannelError, ChannelTimeout, ReceiveCancelled
)


@pytest.mark.asyncio
async def test_send_then_receive_in_order():
    channel = Channel('url')
    await channel.send('a')
    await channel.send('b')
    assert channel.qsize() == 2
    assert await channel.receive(0) == 'a'
    assert await channel.receive(0) == 'b'


@pytest.mark.asyncio
async def test_zero_timeout_on_empty_channel_raises_immediately():
    channel = Channel('url')
    with pytest.raises(ChannelTimeout):
        await asyncio.wait_for(channel.receive(0), timeout=1)


@pytest.mark.asyncio
async def test_receive_waits_for_late_send():
    channel = Channel('html')

    async def late_send():
        await asyncio.sleep(0.05)
        await channel.send('<html></html>')

    sender = asyncio.create_task(late_send())
    assert await channel.receive(timeout=1) == '<html></html>'
    await sender


@pytest.mark.asyncio
async def test_receive_times_out():
    channel = Channel('html')
    with pytest.raises(ChannelTimeout):
        await channel.receive(timeout=0.05)


@pytest.mark.asyncio
async def test_stop_event_cancels_receive():
    channel = Channel('url')
    stop = asyncio.Event()
    asyncio.get_running_loop().call_later(0.05, stop.set)

    with pytest.raises(ReceiveCancelled):
        await channel.receive(timeout=None, stop=stop)


@pytest.mark.asyncio
async def test_closed_channel_refuses_sends_and_receives():
    channel = Channel('url')
    channel.close()
    assert channel.closed

    with pytest.raises(ChannelClosed):
        await channel.send('https://x.com')
    with pytest.raises(ChannelError):
        await channel.receive(0)


@pytest.mark.asyncio
async def test_item_is_not_lost_after_timeout():
    channel = Channel('url')
    with pytest.raises(ChannelTimeout):
        await channel.receive(timeout=0.01)

    await channel.send('kept')
    assert await channel.receive(0) == 'kept'
