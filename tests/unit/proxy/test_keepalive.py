"""
Tests unitaires du keep-alive SSE.

La boucle est simulée: chaque tick planifié est déclenché à la main.
"""
import asyncio

import pytest

from relay_proxy.proxy.keepalive import start_keep_alive
from relay_proxy.proxy.sse import SSEWriter


class FakeHandle:

    def __init__(self, delay, callback):
        self.delay = delay
        self.callback = callback
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class FakeLoop:
    """Enregistre les call_later sans jamais attendre."""

    def __init__(self):
        self.scheduled = []

    def call_later(self, delay, callback):
        handle = FakeHandle(delay, callback)
        self.scheduled.append(handle)
        return handle

    def fire(self):
        handle = self.scheduled[-1]
        assert not handle.cancelled
        handle.callback()


class TestKeepAlive:

    def test_pings_at_interval(self, recording_transport):
        loop = FakeLoop()
        writer = SSEWriter(recording_transport)
        start_keep_alive(writer, interval_ms=15000, loop=loop)

        assert loop.scheduled[0].delay == 15.0
        loop.fire()
        loop.fire()

        assert recording_transport.body == ": ping\n\n: ping\n\n"
        assert len(loop.scheduled) == 3

    def test_stops_when_writer_closes(self, recording_transport):
        loop = FakeLoop()
        writer = SSEWriter(recording_transport)
        start_keep_alive(writer, interval_ms=100, loop=loop)

        loop.fire()
        writer.close()
        loop.fire()

        assert recording_transport.body == ": ping\n\ndata: [DONE]\n\n"
        assert len(loop.scheduled) == 2

    def test_stops_when_ping_is_rejected(self, make_transport):
        loop = FakeLoop()
        transport = make_transport(accept_writes=0)
        writer = SSEWriter(transport)
        start_keep_alive(writer, interval_ms=100, loop=loop)

        loop.fire()
        assert not writer.is_open()
        loop.fire()

        assert transport.write_calls == 1
        assert len(loop.scheduled) == 2

    def test_cancel(self, recording_transport):
        loop = FakeLoop()
        writer = SSEWriter(recording_transport)
        cancel = start_keep_alive(writer, interval_ms=100, loop=loop)

        cancel()
        cancel()

        assert loop.scheduled[0].cancelled
        assert recording_transport.writes == []

    def test_ping_error_is_contained(self, recording_transport):
        loop = FakeLoop()
        writer = SSEWriter(recording_transport)
        writer.comment = lambda text: 1 / 0
        start_keep_alive(writer, interval_ms=100, loop=loop)

        loop.fire()
        assert len(loop.scheduled) == 1

    @pytest.mark.anyio
    async def test_real_event_loop(self, recording_transport):
        writer = SSEWriter(recording_transport)
        cancel = start_keep_alive(writer, interval_ms=5)

        await asyncio.sleep(0.05)
        cancel()
        pings = recording_transport.body.count(": ping")
        await asyncio.sleep(0.02)

        assert pings >= 1
        assert recording_transport.body.count(": ping") == pings
