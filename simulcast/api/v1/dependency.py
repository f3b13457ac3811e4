from typing import Annotated

from fastapi import Depends, Request
from loguru import logger
from pydantic import BaseModel

from simulcast.shared.domain.auth.verify_token import verify_token
from simulcast.utils.app_errors import AppError, AppErrorCode, HttpStatusCode


class User(BaseModel):
    user_id: str


async def get_current_user(request: Request) -> User:
    # Do not log request headers here (may include the bearer token).
    user_info = await verify_token(request)
    if not user_info:
        raise AppError(
            errcode=AppErrorCode.E_BAD_TOKEN,
            errmesg="Invalid authentication token.",
            status_code=HttpStatusCode.UNAUTHORIZED,
        )

    logger.debug("Authenticated user_id: {}", user_info["user_id"])
    return User(user_id=user_info["user_id"])


CurrentUser = Annotated[User, Depends(get_current_user)]
