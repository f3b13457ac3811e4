"""Tests for the transcoder process wrapper, using a Python child in place of ffmpeg."""

import asyncio
import signal
import sys

import pytest

from simulcast.relay.transcoder import Transcoder

SLEEPER = (
    "import pathlib, signal, sys, time\n"
    "signal.signal(signal.SIGINT, signal.SIG_IGN)\n"
    "pathlib.Path(sys.argv[1]).touch()\n"
    "time.sleep(30)\n"
)
CAT_TO_FILE = (
    "import sys\n"
    "with open(sys.argv[1], 'wb') as out:\n"
    "    out.write(sys.stdin.buffer.read())\n"
)


class TestTranscoder:
    async def test_stop_sends_sigint_and_reaps(self):
        transcoder = Transcoder([sys.executable, "-c", "import time\ntime.sleep(30)\n"], kill_timeout=5)
        await transcoder.start()
        assert transcoder.running

        await transcoder.stop()

        assert not transcoder.running
        assert transcoder.returncode is not None

    async def test_stop_kills_when_sigint_is_ignored(self, tmp_path):
        ready = tmp_path / "ready"
        transcoder = Transcoder([sys.executable, "-c", SLEEPER, str(ready)], kill_timeout=0.5)
        await transcoder.start()
        for _ in range(250):
            if ready.exists():
                break
            await asyncio.sleep(0.02)

        await transcoder.stop()

        assert transcoder.returncode == -signal.SIGKILL

    async def test_stop_is_idempotent(self):
        transcoder = Transcoder([sys.executable, "-c", "pass"])
        await transcoder.start()
        await transcoder.wait()

        await transcoder.stop()
        await transcoder.stop()

        assert transcoder.returncode == 0

    async def test_stop_before_start_is_a_no_op(self):
        await Transcoder(["ffmpeg"]).stop()

    async def test_written_bytes_reach_stdin(self, tmp_path):
        out = tmp_path / "received.bin"
        transcoder = Transcoder([sys.executable, "-c", CAT_TO_FILE, str(out)])
        await transcoder.start()

        await transcoder.write(b"abc")
        await transcoder.write(b"def")
        transcoder.close_input()
        assert await transcoder.wait() == 0
        await transcoder.stop()

        assert out.read_bytes() == b"abcdef"

    async def test_write_after_close_raises(self):
        transcoder = Transcoder([sys.executable, "-c", "pass"])
        await transcoder.start()
        await transcoder.stop()

        with pytest.raises(BrokenPipeError):
            await transcoder.write(b"x")

    async def test_missing_binary_raises_oserror(self):
        transcoder = Transcoder(["/nonexistent/ffmpeg-binary", "-i", "pipe:0"])

        with pytest.raises(OSError):
            await transcoder.start()
