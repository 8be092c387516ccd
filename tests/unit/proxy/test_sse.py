"""
Tests unitaires du SSEWriter et de la sérialisation SSE.
"""
import pytest

from relay_proxy.core.constants import SSE_RESPONSE_HEADERS
from relay_proxy.core.models import SSEMessage
from relay_proxy.proxy.sse import SSEWriter, serialize_sse_message
from relay_proxy.proxy.transport import QueueTransport


class TestSerialize:

    def test_data_only_json(self):
        assert serialize_sse_message(SSEMessage(data={"a": 1})) == 'data: {"a": 1}\n\n'

    def test_string_payload_is_not_json_encoded(self):
        assert serialize_sse_message(SSEMessage(data="[DONE]")) == "data: [DONE]\n\n"

    def test_field_order(self):
        message = SSEMessage(data="x", event="error", id="7", retry=3000)
        assert serialize_sse_message(message) == (
            "event: error\nid: 7\nretry: 3000\ndata: x\n\n"
        )

    def test_multiline_payload(self):
        assert serialize_sse_message(SSEMessage(data="a\nb")) == "data: a\ndata: b\n\n"

    def test_unicode_is_kept(self):
        assert serialize_sse_message(SSEMessage(data={"t": "é"})) == 'data: {"t": "é"}\n\n'


class TestSSEWriter:

    def test_headers_written_once(self, recording_transport):
        SSEWriter(recording_transport)
        assert recording_transport.status_code == 200
        assert recording_transport.headers == SSE_RESPONSE_HEADERS
        with pytest.raises(RuntimeError):
            SSEWriter(recording_transport)

    def test_write_and_write_data(self, recording_transport):
        writer = SSEWriter(recording_transport)
        assert writer.write(SSEMessage(data={"n": 1}))
        assert writer.write_data("plain")
        assert recording_transport.body == 'data: {"n": 1}\n\ndata: plain\n\n'

    def test_comment(self, recording_transport):
        writer = SSEWriter(recording_transport)
        assert writer.comment("ping")
        assert recording_transport.body == ": ping\n\n"

    def test_write_after_close_makes_no_transport_call(self, recording_transport):
        writer = SSEWriter(recording_transport)
        writer.close()
        calls = recording_transport.write_calls

        assert writer.write(SSEMessage(data="late")) is False
        assert writer.comment("ping") is False
        assert recording_transport.write_calls == calls

    def test_close_is_idempotent(self, recording_transport):
        writer = SSEWriter(recording_transport)
        writer.close()
        writer.close()

        assert recording_transport.body.count("data: [DONE]") == 1
        assert recording_transport.ended == 1
        assert not writer.is_open()

    def test_rejected_write_closes_writer(self, make_transport):
        transport = make_transport(accept_writes=1)
        writer = SSEWriter(transport)

        assert writer.write_data("one")
        assert writer.write_data("two") is False
        assert not writer.is_open()
        assert transport.write_calls == 2

    def test_transport_error_closes_writer(self, recording_transport):
        def broken(data):
            raise BrokenPipeError("gone")

        writer = SSEWriter(recording_transport)
        recording_transport.write = broken
        assert writer.write_data("x") is False
        assert not writer.is_open()

    def test_peer_disconnect_closes_writer(self, recording_transport):
        writer = SSEWriter(recording_transport)
        recording_transport.disconnect()

        assert not writer.is_open()
        assert writer.write_data("x") is False
        assert recording_transport.write_calls == 0


class TestQueueTransport:

    @pytest.mark.anyio
    async def test_body_ends_with_done(self):
        transport = QueueTransport()
        writer = SSEWriter(transport)
        writer.write_data({"n": 1})
        writer.close()

        body = b"".join([chunk async for chunk in transport.iter_body()])
        assert body == b'data: {"n": 1}\n\ndata: [DONE]\n\n'
        assert not transport.disconnected

    @pytest.mark.anyio
    async def test_consumer_leaving_closes_writer(self):
        transport = QueueTransport()
        writer = SSEWriter(transport)
        writer.write_data("first")

        body = transport.iter_body()
        assert await body.__anext__() == b"data: first\n\n"
        await body.aclose()

        assert transport.disconnected
        assert not writer.is_open()
        assert transport.write(b"x") is False

    def test_write_after_end_is_rejected(self):
        transport = QueueTransport()
        transport.write_head(200, {})
        transport.end()
        assert transport.write(b"x") is False

    @pytest.mark.anyio
    async def test_slow_consumer_is_cut_off(self):
        transport = QueueTransport(max_buffered_bytes=64)
        writer = SSEWriter(transport)

        assert writer.write_data("a" * 10) is True
        assert writer.write_data("b" * 60) is False
        assert transport.disconnected
        assert not writer.is_open()

        body = b"".join([chunk async for chunk in transport.iter_body()])
        assert body == b"data: " + b"a" * 10 + b"\n\n"

    @pytest.mark.anyio
    async def test_consumed_bytes_free_the_buffer(self):
        transport = QueueTransport(max_buffered_bytes=32)
        transport.write_head(200, {})

        assert transport.write(b"x" * 20) is True
        body = transport.iter_body()
        assert await body.__anext__() == b"x" * 20

        assert transport.write(b"y" * 20) is True
        assert await body.__anext__() == b"y" * 20
        transport.end()
        await body.aclose()
        assert not transport.disconnected
