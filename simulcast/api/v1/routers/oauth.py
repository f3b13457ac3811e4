from fastapi import APIRouter, Depends, Query
from fastapi.responses import RedirectResponse

from simulcast.api.v1.dependency import CurrentUser
from simulcast.api.v1.schemas.base import ApiOut
from simulcast.api.v1.schemas.connection import (
    ConnectionsStatusOut,
    ConnectionStatusOut,
    DisconnectIn,
    DisconnectOut,
    OAuthStartOut,
)
from simulcast.domain.connections.connection_domain import ConnectionService, get_connection_service

router = APIRouter(prefix="/oauth")


@router.post("/disconnect")
async def disconnect(
    body: DisconnectIn,
    user: CurrentUser,
    service: ConnectionService = Depends(get_connection_service),
) -> ApiOut[DisconnectOut]:
    """Revoke upstream tokens (best effort) and delete the stored records."""
    result = await service.disconnect(user.user_id, body.provider)
    return ApiOut[DisconnectOut](results=DisconnectOut(**result))


@router.get("/status")
async def connection_status(
    user: CurrentUser,
    service: ConnectionService = Depends(get_connection_service),
) -> ApiOut[ConnectionsStatusOut]:
    destinations = await service.status(user.user_id)
    return ApiOut[ConnectionsStatusOut](
        results=ConnectionsStatusOut(
            destinations={k: ConnectionStatusOut(**v) for k, v in destinations.items()}
        )
    )


@router.post("/{provider}/start")
async def oauth_start(
    provider: str,
    user: CurrentUser,
    service: ConnectionService = Depends(get_connection_service),
) -> ApiOut[OAuthStartOut]:
    url = service.authorization_url(user.user_id, provider)
    return ApiOut[OAuthStartOut](results=OAuthStartOut(authorization_url=url))


@router.get("/{provider}/callback")
async def oauth_callback(
    provider: str,
    code: str | None = Query(None),
    state: str | None = Query(None),
    error: str | None = Query(None),
    service: ConnectionService = Depends(get_connection_service),
) -> RedirectResponse:
    """Provider redirect target; always answers with a redirect to the dashboard."""
    location = await service.complete_authorization(provider, code, state, error)
    return RedirectResponse(location, status_code=302)
