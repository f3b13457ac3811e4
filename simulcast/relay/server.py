"""Relay server entrypoint: `python -m simulcast.relay.server`."""

import asyncio
import signal

from loguru import logger
from websockets.asyncio.server import Server, ServerConnection, serve

from simulcast.app_config import get_app_environ_config
from simulcast.shared.api.utils import init_logger

from .connection import RelayConnection
from .transcoder import build_ffmpeg_command

MAX_FRAME_BYTES = 8 * 1024 * 1024


class RelayServer:
    def __init__(
        self,
        host: str | None = None,
        port: int | None = None,
        *,
        ffmpeg_path: str | None = None,
        heartbeat_seconds: float | None = None,
        queue_frames: int | None = None,
        kill_timeout: float | None = None,
        command_factory=build_ffmpeg_command,
    ):
        config = get_app_environ_config()
        self.host = host if host is not None else config.RELAY_HOST
        self.port = port if port is not None else config.RELAY_PORT
        self.ffmpeg_path = ffmpeg_path or config.FFMPEG_PATH
        self.heartbeat_seconds = heartbeat_seconds or config.RELAY_HEARTBEAT_SECONDS
        self.queue_frames = queue_frames or config.RELAY_INPUT_QUEUE_FRAMES
        self.kill_timeout = kill_timeout or config.RELAY_KILL_TIMEOUT_SECONDS
        self.command_factory = command_factory

        self.connections: set[RelayConnection] = set()
        self.server: Server | None = None

    @property
    def bound_port(self) -> int | None:
        if not self.server:
            return None
        return self.server.sockets[0].getsockname()[1]

    def create_connection(self, websocket: ServerConnection) -> RelayConnection:
        return RelayConnection(
            websocket,
            ffmpeg_path=self.ffmpeg_path,
            heartbeat_seconds=self.heartbeat_seconds,
            queue_frames=self.queue_frames,
            kill_timeout=self.kill_timeout,
            command_factory=self.command_factory,
        )

    async def handler(self, websocket: ServerConnection) -> None:
        connection = self.create_connection(websocket)
        self.connections.add(connection)
        try:
            await connection.run()
        finally:
            self.connections.discard(connection)

    async def start(self) -> None:
        # Keep-alive pings are sent by each connection while streaming.
        self.server = await serve(
            self.handler,
            self.host,
            self.port,
            ping_interval=None,
            max_size=MAX_FRAME_BYTES,
        )
        logger.info(f"🎥 WebSocket relay listening on {self.host}:{self.bound_port}")

    async def close(self) -> None:
        if self.connections:
            logger.info(f"Tearing down {len(self.connections)} live relay connection(s)")
            await asyncio.gather(*(c.teardown() for c in list(self.connections)))
        if self.server:
            self.server.close()
            await self.server.wait_closed()
            self.server = None
        logger.info("Relay stopped")

    async def serve_forever(self) -> None:
        loop = asyncio.get_running_loop()
        stop = loop.create_future()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, lambda: stop.done() or stop.set_result(None))
            except NotImplementedError:
                pass

        await self.start()
        try:
            await stop
        finally:
            logger.info("Shutting down relay")
            await self.close()


def main() -> None:
    init_logger()
    asyncio.run(RelayServer().serve_forever())


if __name__ == "__main__":
    main()
