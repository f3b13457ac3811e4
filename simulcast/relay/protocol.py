"""Relay wire protocol.

Text frames carry JSON control messages, binary frames carry raw media bytes.

Client -> server:
    {"type": "start", "ingest": {"url": "rtmp://...", "streamKey": "..."}}
    {"type": "stop"}

Server -> client:
    {"type": "relay-ready"}
    {"type": "error", "error": "INGEST_URL_MISSING" | <spawn error>}
    {"type": "ffmpeg-exit", "code": int | null, "signal": str | null}
"""

import signal
from typing import Annotated, Literal, Union

import orjson
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

INGEST_URL_MISSING = "INGEST_URL_MISSING"


class IngestDescriptor(BaseModel):
    url: str = ""
    stream_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("stream_key", "streamKey"),
    )

    model_config = ConfigDict(populate_by_name=True)

    def resolve_url(self) -> str | None:
        """Base ingest URL with the stream key appended as a path segment."""
        url = (self.url or "").strip()
        if not url:
            return None
        if self.stream_key:
            return url.removesuffix("/") + "/" + self.stream_key
        return url


class StartFrame(BaseModel):
    type: Literal["start"]
    ingest: IngestDescriptor = Field(default_factory=IngestDescriptor)


class StopFrame(BaseModel):
    type: Literal["stop"]


ControlFrame = Annotated[Union[StartFrame, StopFrame], Field(discriminator="type")]
_control_adapter: TypeAdapter[ControlFrame] = TypeAdapter(ControlFrame)


def parse_control_frame(text: str | bytes) -> StartFrame | StopFrame | None:
    """Parse a control frame, returning None for anything unrecognised."""
    try:
        return _control_adapter.validate_json(text)
    except ValidationError:
        return None


def _dump(payload: dict) -> str:
    return orjson.dumps(payload).decode("utf-8")


def relay_ready_frame() -> str:
    return _dump({"type": "relay-ready"})


def error_frame(error: str) -> str:
    return _dump({"type": "error", "error": error})


def transcoder_exit_frame(returncode: int | None) -> str:
    """Exit notice; negative return codes are reported as the signal name."""
    code: int | None = returncode
    signal_name: str | None = None
    if returncode is not None and returncode < 0:
        code = None
        try:
            signal_name = signal.Signals(-returncode).name
        except ValueError:
            signal_name = str(-returncode)
    return _dump({"type": "ffmpeg-exit", "code": code, "signal": signal_name})
