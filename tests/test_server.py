import asyncio
import re

from tracker_proxy.device_simulator import TrackerDeviceSimulator
from tracker_proxy.server import TrackerTCPServer

from conftest import RecordingEventSink, make_settings

ACK_PATTERN = re.compile(r"^\*HQ,123456789012345,R12,\d{6}#$")


async def run_with_server(server, scenario):
    serve_task = asyncio.create_task(server.start(install_signal_handlers=False))
    await asyncio.wait_for(server.wait_started(), 5)
    try:
        return await scenario(server.port)
    finally:
        await server.shutdown()
        await asyncio.wait_for(serve_task, 5)


def test_end_to_end_ack(sample_frame):
    sink = RecordingEventSink()
    server = TrackerTCPServer(make_settings(), sink=sink)

    async def scenario(port):
        return await TrackerDeviceSimulator("127.0.0.1", port, timeout=5).send_frame(sample_frame)

    reply = asyncio.run(run_with_server(server, scenario))

    assert ACK_PATTERN.match(reply)
    assert server.stats["records_parsed"] == 1
    assert server.stats["acks_sent"] == 1
    assert "parsed" in sink.kinds()
    assert sink.of_kind("ack")[0]["ack"] == reply


def test_split_delivery_and_concurrent_clients():
    sink = RecordingEventSink()
    server = TrackerTCPServer(make_settings(), sink=sink)

    async def client(port, imei):
        reader, writer = await asyncio.open_connection("127.0.0.1", port)
        frame = f"*HQ,{imei},V1,123456,V,4045.1234,N,07359.5678,E,1,2#".encode()
        for i in range(0, len(frame), 7):
            writer.write(frame[i:i + 7])
            await writer.drain()
            await asyncio.sleep(0.01)
        reply = await asyncio.wait_for(reader.readuntil(b"#"), 5)
        writer.close()
        await writer.wait_closed()
        return reply.decode()

    async def scenario(port):
        return await asyncio.gather(client(port, "111"), client(port, "222"))

    replies = asyncio.run(run_with_server(server, scenario))

    assert replies[0].startswith("*HQ,111,R12,")
    assert replies[1].startswith("*HQ,222,R12,")
    assert sorted(e["imei"] for e in sink.of_kind("parsed")) == ["111", "222"]


def test_unparsed_frame_gets_no_reply():
    sink = RecordingEventSink()
    server = TrackerTCPServer(make_settings(), sink=sink)

    async def scenario(port):
        reader, writer = await asyncio.open_connection("127.0.0.1", port)
        writer.write(b"HQ,123,V1#")
        await writer.drain()
        writer.write_eof()
        data = await asyncio.wait_for(reader.read(), 5)
        writer.close()
        await writer.wait_closed()
        return data

    data = asyncio.run(run_with_server(server, scenario))

    assert data == b""
    assert sink.of_kind("unparsed")[0]["frame"] == "HQ,123,V1#"


def test_status_and_shutdown():
    server = TrackerTCPServer(make_settings(), sink=RecordingEventSink())

    async def scenario(port):
        status = server.get_status()
        assert status["running"] is True
        assert status["port"] == port
        assert status["active_connections"] == 0
        return status

    status = asyncio.run(run_with_server(server, scenario))

    assert status["uptime"] is not None
    assert server.get_status()["running"] is False
