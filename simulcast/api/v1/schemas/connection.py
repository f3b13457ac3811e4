from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class OAuthStartOut(BaseModel):
    authorization_url: str


class DisconnectIn(BaseModel):
    provider: str = Field(min_length=1, description="youtube or twitch")


class DisconnectOut(BaseModel):
    disconnected: bool
    provider: str


class ConnectionStatusOut(BaseModel):
    channel: dict[str, Any] = Field(default_factory=dict)
    scope: str | None = None
    updated_at: datetime | None = None


class ConnectionsStatusOut(BaseModel):
    destinations: dict[str, ConnectionStatusOut]


class RuntimeConfigOut(BaseModel):
    relay_url: str
    app_base_url: str
