"""Application error types shared by domain services and routers."""

import inspect
from enum import Enum, IntEnum
from typing import Any
from uuid import uuid4


class HttpStatusCode(IntEnum):
    BAD_REQUEST = 400
    UNAUTHORIZED = 401
    FORBIDDEN = 403
    NOT_FOUND = 404
    METHOD_NOT_ALLOWED = 405
    CONFLICT = 409
    UNPROCESSABLE_ENTITY = 422
    TOO_MANY_REQUESTS = 429
    INTERNAL_SERVER_ERROR = 500
    BAD_GATEWAY = 502
    SERVICE_UNAVAILABLE = 503
    GATEWAY_TIMEOUT = 504


class AppErrorCode(str, Enum):
    E_INTERNAL_ERROR = "E_INTERNAL_ERROR"
    E_INVALID_REQUEST = "E_INVALID_REQUEST"
    E_INVALID_PARAMS = "E_INVALID_PARAMS"

    # Configuration-class errors (missing env / platform credentials)
    E_CONFIGURATION = "E_CONFIGURATION"

    # Authentication
    E_BAD_TOKEN = "E_BAD_TOKEN"

    # Platform connections
    E_NOT_CONNECTED = "E_NOT_CONNECTED"
    E_MISSING_REFRESH_TOKEN = "E_MISSING_REFRESH_TOKEN"
    E_UNSUPPORTED_PROVIDER = "E_UNSUPPORTED_PROVIDER"
    E_INVALID_STATE = "E_INVALID_STATE"
    E_TOKEN_EXCHANGE_FAILED = "E_TOKEN_EXCHANGE_FAILED"

    # Upstream platform APIs
    E_UPSTREAM = "E_UPSTREAM"
    E_YOUTUBE_INGESTION_MISSING = "E_YOUTUBE_INGESTION_MISSING"
    E_YOUTUBE_BROADCAST_MISSING = "E_YOUTUBE_BROADCAST_MISSING"
    E_TRANSITION_FAILED = "E_TRANSITION_FAILED"

    # Storage
    E_QUOTA_EXCEEDED = "E_QUOTA_EXCEEDED"

    def __str__(self) -> str:
        return self.value


class AppError(Exception):
    """Error raised by domain code and rendered by the API error handlers.

    The caller location is captured at construction time so logs point at the
    raise site rather than at the exception handler.
    """

    def __init__(
        self,
        errcode: AppErrorCode | str = AppErrorCode.E_INTERNAL_ERROR,
        errmesg: str = "We are sorry, an error occurred.",
        status_code: int = HttpStatusCode.BAD_REQUEST,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(errmesg)
        self.errcode = errcode.value if isinstance(errcode, AppErrorCode) else str(errcode)
        self.errmesg = errmesg
        self.status_code = int(status_code)
        self.details = details
        self.erresid = uuid4().hex[:10]

        # Skip frames of this module so subclasses report their raise site too.
        stack = inspect.stack()
        caller_frame = stack[1]
        for frame_info in stack[1:]:
            caller_frame = frame_info
            frame_module = inspect.getmodule(frame_info.frame)
            if not frame_module or frame_module.__name__ != __name__:
                break
        module = inspect.getmodule(caller_frame.frame)
        module_name = (
            module.__name__ if module and getattr(module, "__name__", None) else caller_frame.filename
        )
        self.caller_info = f"{module_name}:{caller_frame.function}:{caller_frame.lineno}"

    def __repr__(self) -> str:
        return f"AppError(errcode={self.errcode!r}, status_code={self.status_code}, errmesg={self.errmesg!r})"


class NotConnectedError(AppError):
    """No stored connection exists for the user and platform."""

    def __init__(self, platform: str):
        super().__init__(
            errcode=AppErrorCode.E_NOT_CONNECTED,
            errmesg=f"{platform} is not connected for this user.",
            status_code=HttpStatusCode.NOT_FOUND,
        )
        self.platform = platform


class MissingTokenError(AppError):
    """A connection record exists but cannot be used without reconnecting."""

    def __init__(self, platform: str):
        super().__init__(
            errcode=AppErrorCode.E_MISSING_REFRESH_TOKEN,
            errmesg=f"{platform} OAuth refresh token is missing. Ask the user to reconnect.",
            status_code=HttpStatusCode.BAD_REQUEST,
        )
        self.platform = platform


class ConfigurationError(AppError):
    def __init__(self, errmesg: str, errcode: AppErrorCode = AppErrorCode.E_CONFIGURATION):
        super().__init__(
            errcode=errcode,
            errmesg=errmesg,
            status_code=HttpStatusCode.INTERNAL_SERVER_ERROR,
        )
