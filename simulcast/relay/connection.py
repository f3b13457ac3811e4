"""Per-socket relay session.

Each `RelayConnection` owns at most one transcoder together with its input
queue, writer task and heartbeat. Every exit path (stop frame, socket close,
socket error, transcoder exit, server shutdown) goes through `teardown()`.
"""

import asyncio
from enum import Enum
from typing import Callable
from uuid import uuid4

from loguru import logger
from websockets.asyncio.server import ServerConnection
from websockets.exceptions import ConnectionClosed

from simulcast.shared.api.utils import mask_url

from .protocol import (
    INGEST_URL_MISSING,
    StopFrame,
    error_frame,
    parse_control_frame,
    relay_ready_frame,
    transcoder_exit_frame,
)
from .transcoder import Transcoder, build_ffmpeg_command


class RelayState(str, Enum):
    IDLE = "idle"
    STREAMING = "streaming"
    CLOSED = "closed"


class RelayConnection:
    def __init__(
        self,
        websocket: ServerConnection,
        *,
        ffmpeg_path: str = "ffmpeg",
        heartbeat_seconds: float = 15.0,
        queue_frames: int = 256,
        kill_timeout: float = 5.0,
        command_factory: Callable[[str, str], list[str]] = build_ffmpeg_command,
    ):
        self.id = uuid4().hex[:8]
        self.websocket = websocket
        self.ffmpeg_path = ffmpeg_path
        self.heartbeat_seconds = heartbeat_seconds
        self.kill_timeout = kill_timeout
        self.command_factory = command_factory

        self.state = RelayState.IDLE
        self.transcoder: Transcoder | None = None
        self._queue: asyncio.Queue[bytes] = asyncio.Queue(maxsize=queue_frames)
        self._writer_task: asyncio.Task | None = None
        self._heartbeat_task: asyncio.Task | None = None
        self._exit_task: asyncio.Task | None = None
        self._teardown_task: asyncio.Task | None = None

    def __repr__(self) -> str:
        return f"RelayConnection(id={self.id}, state={self.state.value})"

    @property
    def closing(self) -> bool:
        return self._teardown_task is not None

    async def run(self) -> None:
        logger.info(f"[relay {self.id}] client connected from {self.websocket.remote_address}")
        try:
            async for message in self.websocket:
                if isinstance(message, str):
                    await self._handle_control(message)
                else:
                    await self._handle_media(message)
        except ConnectionClosed as e:
            logger.info(f"[relay {self.id}] connection closed: {e}")
        finally:
            await self.teardown()
            if self._exit_task is not None:
                await asyncio.gather(self._exit_task, return_exceptions=True)
            logger.info(f"[relay {self.id}] client disconnected")

    # ------------------------------------------------------------------
    # Frames
    # ------------------------------------------------------------------

    async def _handle_control(self, text: str) -> None:
        frame = parse_control_frame(text)
        if frame is None:
            logger.warning(f"[relay {self.id}] ignoring malformed control frame: {text[:120]!r}")
            return

        if isinstance(frame, StopFrame):
            logger.info(f"[relay {self.id}] stop requested")
            await self.teardown()
            await self.websocket.close()
            return

        if self.state is not RelayState.IDLE:
            logger.debug(f"[relay {self.id}] start ignored in state {self.state.value}")
            return

        ingest_url = frame.ingest.resolve_url()
        if not ingest_url:
            await self._send(error_frame(INGEST_URL_MISSING))
            await self.teardown()
            await self.websocket.close()
            return

        await self._start(ingest_url)

    async def _handle_media(self, data: bytes) -> None:
        if self.state is not RelayState.STREAMING:
            return
        # Blocks while the queue is full, which stops reading from the socket.
        await self._queue.put(data)

    # ------------------------------------------------------------------
    # Streaming
    # ------------------------------------------------------------------

    async def _start(self, ingest_url: str) -> None:
        self.state = RelayState.STREAMING
        transcoder = Transcoder(
            self.command_factory(self.ffmpeg_path, ingest_url),
            kill_timeout=self.kill_timeout,
            label=f"ffmpeg {self.id}",
        )
        self.transcoder = transcoder
        try:
            await transcoder.start()
        except OSError as e:
            logger.error(f"[relay {self.id}] unable to start transcoder: {e}")
            await self._send(error_frame(str(e)))
            await self.teardown()
            await self.websocket.close()
            return

        if self.closing:
            # Torn down while the process was spawning.
            await transcoder.stop()
            return

        self._writer_task = asyncio.create_task(self._pump_input())
        self._exit_task = asyncio.create_task(self._watch_exit())
        self._heartbeat_task = asyncio.create_task(self._heartbeat())
        logger.info(f"[relay {self.id}] streaming to {mask_url(ingest_url)}")
        await self._send(relay_ready_frame())

    async def _pump_input(self) -> None:
        while True:
            chunk = await self._queue.get()
            try:
                await self.transcoder.write(chunk)
            except (BrokenPipeError, ConnectionResetError) as e:
                logger.warning(f"[relay {self.id}] transcoder input closed: {e}")
                return

    async def _heartbeat(self) -> None:
        while True:
            await asyncio.sleep(self.heartbeat_seconds)
            try:
                await self.websocket.ping()
            except ConnectionClosed:
                return

    async def _watch_exit(self) -> None:
        returncode = await self.transcoder.wait()
        if self.closing:
            return
        logger.warning(f"[relay {self.id}] transcoder exited unexpectedly returncode={returncode}")
        await self._send(transcoder_exit_frame(returncode))
        await self.teardown()
        await self.websocket.close()

    async def _send(self, frame: str) -> None:
        try:
            await self.websocket.send(frame)
        except ConnectionClosed:
            logger.debug(f"[relay {self.id}] dropped frame, socket already closed")

    # ------------------------------------------------------------------
    # Teardown
    # ------------------------------------------------------------------

    async def teardown(self) -> None:
        """Release the transcoder and every per-connection task. Safe to call repeatedly."""
        if self._teardown_task is None:
            self._teardown_task = asyncio.create_task(self._teardown())
        await asyncio.shield(self._teardown_task)

    async def _teardown(self) -> None:
        previous = self.state
        self.state = RelayState.CLOSED

        tasks = [t for t in (self._heartbeat_task, self._writer_task) if t is not None]
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

        # Unblock a reader waiting on a full queue; queued media is discarded.
        while not self._queue.empty():
            self._queue.get_nowait()

        if self.transcoder is not None:
            await self.transcoder.stop()

        if previous is not RelayState.CLOSED:
            logger.info(f"[relay {self.id}] resources released ({previous.value} -> closed)")
