from dataclasses import dataclass
from datetime import datetime

from signage_fleet.services.device_store import DeviceRecord
from signage_fleet.services.edition import DeviceStatus
from signage_fleet.services.user_agent import DeviceDescriptor, DeviceModel


@dataclass(frozen=True)
class DeviceEntity:
    id: int
    uuid: str
    owner_id: int
    status: DeviceStatus
    licence_id: int | None
    last_seen_at: datetime | None
    playlist_id: int
    refresh: int
    api_endpoint: str | None
    is_intranet: bool
    commands: list
    reports: list
    location_data: dict
    location_longitude: str
    location_latitude: str
    categories: list
    properties: dict
    remote_administration: dict
    screen_times: dict
    # Live values from the check-in, not the stored registration snapshot.
    name: str
    firmware: str
    model: DeviceModel

    @property
    def is_provisioned(self) -> bool:
        return self.status is DeviceStatus.PROVISIONED


def assemble(record: DeviceRecord, descriptor: DeviceDescriptor) -> DeviceEntity:
    return DeviceEntity(
        id=record.id,
        uuid=record.uuid,
        owner_id=record.owner_id,
        status=record.status,
        licence_id=record.licence_id,
        last_seen_at=record.last_seen_at,
        playlist_id=record.playlist_id,
        refresh=record.refresh,
        api_endpoint=record.api_endpoint,
        is_intranet=record.is_intranet,
        commands=list(record.commands),
        reports=list(record.reports),
        location_data=dict(record.location_data),
        location_longitude=record.location_longitude,
        location_latitude=record.location_latitude,
        categories=list(record.categories),
        properties=dict(record.properties),
        remote_administration=dict(record.remote_administration),
        screen_times=dict(record.screen_times),
        name=descriptor.display_name,
        firmware=descriptor.firmware_version,
        model=descriptor.model,
    )
