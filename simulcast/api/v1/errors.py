from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger

from simulcast.services.integrations.youtube_client import YouTubeApiError
from simulcast.shared.api.utils import E_INVALID_PARAMS, ApiFailure, api_failure, make_response
from simulcast.utils.app_errors import AppError, AppErrorCode, HttpStatusCode


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """
    Convert AppError to ApiFailure.

    The log line carries the caller info captured when the error was raised.
    """
    log_msg = f"{exc.errcode} {exc.erresid} msg={exc.errmesg} caller={exc.caller_info}"
    if exc.status_code >= 500:
        logger.error(log_msg)
    else:
        logger.warning(log_msg)

    failure = ApiFailure(
        errcode=exc.errcode,
        errmesg=exc.errmesg,
        erresid=exc.erresid,
        details=exc.details,
    )
    return make_response(failure, status_code=exc.status_code)


async def youtube_api_error_handler(request: Request, exc: YouTubeApiError) -> JSONResponse:
    """
    Surface a YouTube Data API failure with its reason code.

    The upstream HTTP status is mirrored; transport failures map to 502.
    """
    status_code = exc.status_code or HttpStatusCode.BAD_GATEWAY
    log_msg = f"YouTubeApiError: status={exc.status_code} reason={exc.reason} msg={exc.message}"
    if status_code >= 500:
        logger.error(log_msg)
    else:
        logger.warning(log_msg)

    failure = ApiFailure(
        errcode=AppErrorCode.E_UPSTREAM.value,
        errmesg=exc.message,
        details={"reason": exc.reason, "upstream_status": exc.status_code},
    )
    return make_response(failure, status_code=status_code)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()

    logger.warning(
        "Validation error: path={} method={} errors={}",
        request.url.path,
        request.method,
        errors,
    )

    failure = api_failure(E_INVALID_PARAMS, errmesg=str(errors))
    return make_response(failure, status_code=HttpStatusCode.UNPROCESSABLE_ENTITY)
