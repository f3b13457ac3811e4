from fastapi import APIRouter, Response

from simulcast.api.v1.schemas.base import ApiOut
from simulcast.api.v1.schemas.connection import RuntimeConfigOut
from simulcast.app_config import get_app_environ_config

router = APIRouter()


@router.get("/runtime_config")
async def runtime_config(response: Response) -> ApiOut[RuntimeConfigOut]:
    """Relay and app URLs for the dashboard; never cached."""
    config = get_app_environ_config()
    response.headers["Cache-Control"] = "no-store"
    return ApiOut[RuntimeConfigOut](
        results=RuntimeConfigOut(relay_url=config.STREAM_RELAY_URL, app_base_url=config.APP_BASE_URL)
    )
