from pydantic import BaseModel, Field
from datetime import datetime

from signage_fleet.services.edition import DeviceStatus
from signage_fleet.services.user_agent import DeviceModel


class PlayerOut(BaseModel):
    id: int
    uuid: str
    owner_id: int
    status: DeviceStatus
    licence_id: int | None = None
    last_seen_at: datetime | None = None
    playlist_id: int = 0
    refresh: int
    api_endpoint: str | None = None
    is_intranet: bool = False
    commands: list = Field(default_factory=list)
    reports: list = Field(default_factory=list)
    location_data: dict = Field(default_factory=dict)
    location_longitude: str = ""
    location_latitude: str = ""
    categories: list = Field(default_factory=list)
    properties: dict = Field(default_factory=dict)
    remote_administration: dict = Field(default_factory=dict)
    screen_times: dict = Field(default_factory=dict)

    class Config:
        from_attributes = True


class CheckInOut(PlayerOut):
    name: str
    firmware: str
    model: DeviceModel


class StoredPlayerOut(PlayerOut):
    player_name: str
    firmware: str
    model: str
    created_at: datetime | None = None
