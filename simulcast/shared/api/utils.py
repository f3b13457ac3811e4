import inspect
from functools import lru_cache
from importlib import import_module
from os import environ
from pathlib import Path
from typing import Any, Literal
from uuid import uuid4

from fastapi import FastAPI
from fastapi.responses import ORJSONResponse
from loguru import logger
from pydantic import BaseModel, Field

from simulcast.utils.app_errors import AppErrorCode

E_INTERNAL = AppErrorCode.E_INTERNAL_ERROR.value
E_INVALID_PARAMS = AppErrorCode.E_INVALID_PARAMS.value


def format_error(ex: BaseException) -> str:
    from traceback import TracebackException

    return "".join(TracebackException.from_exception(ex).format())


class ApiResponse(BaseModel):
    version: str | None = Field(default_factory=lambda: environ.get("BUILD_COMMIT", "dev"))


class ApiSuccess(ApiResponse):
    success: Literal[True] = True
    results: Any = "OK"


class ApiFailure(ApiResponse):
    success: Literal[False] = False
    errcode: str = E_INTERNAL
    erresid: str = Field(default_factory=lambda: uuid4().hex[:10])
    errmesg: str = "We are sorry, an error occurred."
    details: dict[str, Any] | None = None


def api_failure(
    errcode: str | None = None,
    errmesg: Exception | str | None = None,
    *,
    details: dict[str, Any] | None = None,
    trace: Any = None,
) -> ApiFailure:
    """Build an ApiFailure and log it together with the caller location."""
    if not errcode:
        errcode = str(ApiFailure.model_fields["errcode"].default)

    if isinstance(errmesg, Exception):
        errmesg = format_error(errmesg)

    if not errmesg:
        errmesg = str(ApiFailure.model_fields["errmesg"].default)

    failure = ApiFailure(errcode=errcode, errmesg=errmesg, details=details)

    caller_frame = inspect.stack()[1]
    module = inspect.getmodule(caller_frame.frame)
    module_name = (
        module.__name__ if module and getattr(module, "__name__", None) else caller_frame.filename
    )
    caller_info = f"{module_name}:{caller_frame.function}:{caller_frame.lineno}"

    logger.warning(
        f"{failure.errcode} {failure.erresid}\n{failure.errmesg} caller={caller_info} trace={trace}"
    )

    return failure


def make_response(results: Any, *, status_code: int | None = None) -> ORJSONResponse:
    if isinstance(results, Exception):
        response: Any = api_failure(errmesg=results)
        if status_code is None:
            status_code = 500
    elif isinstance(results, ApiFailure):
        response = results
        if status_code is None:
            status_code = 500 if results.errcode == E_INTERNAL else 400
    else:
        response = results
        if status_code is None:
            status_code = 200

    return ORJSONResponse(
        status_code=status_code,
        content=response.model_dump() if hasattr(response, "model_dump") else response,
    )


def load_routes(app: FastAPI, prefix: str, folder: Path | None = None):
    """Include every `router` found in modules under the api routers folder."""
    from simulcast.shared.config import config

    if folder is None:
        folder = Path(__file__).parent.parent.parent / "api" / "v1" / "routers"

    disabled_routes = [x.strip() for x in config.get("API_DISABLED", "").split(",") if x.strip()]
    logger.debug("disabled routes: {}", disabled_routes)

    package_root = Path(__file__).parent.parent.parent
    for x in sorted(folder.rglob("*.py")):
        if x.name == "__init__.py":
            continue

        relative_path = x.relative_to(package_root.parent)
        name = ".".join(relative_path.with_suffix("").parts)
        if any(f".{disabled}" in name for disabled in disabled_routes):
            logger.warning("disabled route module {}", name)
            continue

        module = import_module(name)
        if hasattr(module, "router"):
            app.include_router(module.router, prefix=prefix)
            logger.info("Added routes in {}", name)

    for route_info in get_all_routes_info(app):
        methods = ",".join(sorted(route_info["methods"]))
        logger.info(
            "Loaded route: {:<12} {:<60} {}", methods, route_info["path"], route_info["endpoint"]
        )


def get_all_routes_info(app: FastAPI):
    routes_info = []

    for route in app.routes:
        if hasattr(route, "methods"):
            endpoint = getattr(route, "endpoint", None)
            endpoint_name = getattr(endpoint, "__name__", str(endpoint))
            routes_info.append(
                {
                    "methods": sorted(route.methods),  # type: ignore[attr-defined]
                    "path": route.path,  # type: ignore[attr-defined]
                    "name": route.name,  # type: ignore[attr-defined]
                    "endpoint": endpoint_name,
                }
            )

    return routes_info


@lru_cache
def get_worker_info():
    project_root = Path(__file__).parent.parent.parent.parent
    worker_name = environ.get("WORKER_NAME", project_root.name)

    parts = environ.get("BUILD_COMMIT", "").split("-")
    commit_id = parts[1] if len(parts) > 1 else "dev"

    return worker_name, commit_id, uuid4().hex[:8]


def init_logger():
    import logging
    import sys

    from simulcast.shared.config import config

    for name in ("websockets", "websockets.server", "httpx", "httpcore"):
        logging.getLogger(name).setLevel(logging.WARNING)

    logger.remove()

    worker_name, commit_id, _ = get_worker_info()

    if str(config.get("DEBUG", "false")).lower() == "true":
        logger_level = "DEBUG"
        logger_format = (
            f"<yellow>{worker_name}:{commit_id}</yellow> | "
            "<green>{time:MM-DD HH:mm:ss.SSS}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
            "<level>{message}</level>"
        )
    else:
        logger_level = "INFO"
        logger_format = (
            f"{worker_name}:{commit_id} | "
            "{time:MM-DD HH:mm:ss.SSS} | "
            "{level: <8} | "
            "{name}:{function}:{line} | "
            "{message}"
        )
    logger.add(sys.stderr, level=logger_level, format=logger_format)


def mask_url(url: str) -> str:
    """Hide the path of an ingest URL; the path usually carries the stream key."""
    if "://" not in url:
        return "***"
    scheme, rest = url.split("://", 1)
    host = rest.split("/", 1)[0]
    return f"{scheme}://{host}/***"
