"""ffmpeg child process fed through stdin."""

import asyncio
import signal

from loguru import logger

from simulcast.shared.api.utils import mask_url


def build_ffmpeg_command(ffmpeg_path: str, ingest_url: str) -> list[str]:
    return [
        ffmpeg_path,
        "-re",
        "-i", "pipe:0",
        "-c:v", "libx264",
        "-preset", "veryfast",
        "-tune", "zerolatency",
        "-pix_fmt", "yuv420p",
        "-c:a", "aac",
        "-ar", "44100",
        "-b:a", "160k",
        "-f", "flv",
        ingest_url,
    ]  # fmt: skip


class Transcoder:
    """One transcoder process.

    `stop()` is idempotent and returns only once the process has been reaped.
    """

    def __init__(self, command: list[str], kill_timeout: float = 5.0, label: str = "ffmpeg"):
        self.command = command
        self.kill_timeout = kill_timeout
        self.label = label
        self.process: asyncio.subprocess.Process | None = None
        self._stderr_task: asyncio.Task | None = None

    @property
    def pid(self) -> int | None:
        return self.process.pid if self.process else None

    @property
    def running(self) -> bool:
        return self.process is not None and self.process.returncode is None

    @property
    def returncode(self) -> int | None:
        return self.process.returncode if self.process else None

    async def start(self) -> None:
        if self.process is not None:
            raise RuntimeError("Transcoder already started")

        logger.info(f"[{self.label}] starting: {self.command[0]} ... {mask_url(self.command[-1])}")
        self.process = await asyncio.create_subprocess_exec(
            *self.command,
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.PIPE,
        )
        self._stderr_task = asyncio.create_task(self._read_logs())
        logger.info(f"[{self.label}] started pid={self.process.pid}")

    async def write(self, data: bytes) -> None:
        """Feed bytes to stdin, waiting while the pipe is full."""
        if not self.process or not self.process.stdin or self.process.stdin.is_closing():
            raise BrokenPipeError("transcoder input is closed")
        self.process.stdin.write(data)
        await self.process.stdin.drain()

    async def wait(self) -> int:
        if not self.process:
            raise RuntimeError("Transcoder not started")
        return await self.process.wait()

    def close_input(self) -> None:
        if self.process and self.process.stdin and not self.process.stdin.is_closing():
            self.process.stdin.close()

    async def stop(self) -> None:
        if not self.process:
            return

        self.close_input()
        if self.process.returncode is None:
            try:
                self.process.send_signal(signal.SIGINT)
                await asyncio.wait_for(self.process.wait(), timeout=self.kill_timeout)
            except asyncio.TimeoutError:
                logger.warning(f"[{self.label}] did not exit after SIGINT, killing pid={self.process.pid}")
                self.process.kill()
                await self.process.wait()
            except ProcessLookupError:
                await self.process.wait()

        if self._stderr_task:
            await asyncio.gather(self._stderr_task, return_exceptions=True)
            self._stderr_task = None
        logger.info(f"[{self.label}] stopped pid={self.process.pid} returncode={self.process.returncode}")

    async def _read_logs(self) -> None:
        if not self.process or not self.process.stderr:
            return
        while True:
            line = await self.process.stderr.readline()
            if not line:
                break
            text = line.decode(errors="replace").strip()
            if not text:
                continue
            lowered = text.lower()
            if "error" in lowered:
                logger.warning(f"[{self.label}] {text}")
            else:
                logger.debug(f"[{self.label}] {text}")
