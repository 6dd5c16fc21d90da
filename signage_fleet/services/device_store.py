import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, TypeVar

from sqlalchemy import or_, select, update
from sqlalchemy.exc import DisconnectionError, IntegrityError, InterfaceError, OperationalError
from sqlalchemy.orm import Session

from signage_fleet.models.device import Player, utcnow
from signage_fleet.services.edition import DeviceStatus
from signage_fleet.services.errors import StoreUnavailableError

logger = logging.getLogger(__name__)

_UNAVAILABLE = (OperationalError, InterfaceError, DisconnectionError)

T = TypeVar("T")


@dataclass(frozen=True)
class DeviceRecord:
    id: int
    uuid: str
    owner_id: int
    status: DeviceStatus
    licence_id: int | None
    last_seen_at: datetime | None
    player_name: str
    firmware: str
    model: str
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
    created_at: datetime | None = None


@dataclass(frozen=True)
class Created:
    id: int


@dataclass(frozen=True)
class Conflict:
    detail: str = ""


def _record_from_row(row: Player) -> DeviceRecord:
    return DeviceRecord(
        id=int(row.id),
        uuid=row.uuid,
        owner_id=int(row.owner_id),
        status=DeviceStatus(row.status),
        licence_id=row.licence_id,
        last_seen_at=row.last_seen_at,
        player_name=row.player_name,
        firmware=row.firmware or "",
        model=row.model,
        playlist_id=int(row.playlist_id or 0),
        refresh=int(row.refresh or 0),
        api_endpoint=row.api_endpoint,
        is_intranet=bool(row.is_intranet),
        commands=list(row.commands or []),
        reports=list(row.reports or []),
        location_data=dict(row.location_data or {}),
        location_longitude=row.location_longitude or "",
        location_latitude=row.location_latitude or "",
        categories=list(row.categories or []),
        properties=dict(row.properties or {}),
        remote_administration=dict(row.remote_administration or {}),
        screen_times=dict(row.screen_times or {}),
        created_at=row.created_at,
    )


class DeviceStore:
    """Player rows behind one request-scoped session.

    Every write commits or rolls back before returning, so a cancelled
    check-in never leaves a half-written player behind.
    """

    def __init__(self, db: Session):
        self._db = db

    def _guard(self, op: Callable[[], T]) -> T:
        try:
            return op()
        except _UNAVAILABLE as exc:
            self._db.rollback()
            logger.warning("player store unavailable: %s", exc)
            raise StoreUnavailableError(f"player store unavailable: {exc}") from exc

    def _find_one(self, *criteria: Any) -> DeviceRecord | None:
        stmt = select(Player).where(*criteria).execution_options(populate_existing=True)
        row = self._guard(lambda: self._db.execute(stmt).scalar_one_or_none())
        return _record_from_row(row) if row is not None else None

    def find_by_id(self, player_id: int) -> DeviceRecord | None:
        return self._find_one(Player.id == player_id)

    def find_by_unique_id(self, uuid: str) -> DeviceRecord | None:
        return self._find_one(Player.uuid == uuid)

    def insert(self, values: dict[str, Any]) -> Created | Conflict:
        row = Player(**values)

        def _write() -> int:
            self._db.add(row)
            self._db.flush()
            player_id = int(row.id)
            self._db.commit()
            return player_id

        try:
            return Created(id=self._guard(_write))
        except IntegrityError as exc:
            self._db.rollback()
            return Conflict(detail=str(exc.orig))

    def touch_last_seen(self, player_id: int) -> datetime:
        now = utcnow()
        stmt = (
            update(Player)
            .where(Player.id == player_id)
            .where(or_(Player.last_seen_at.is_(None), Player.last_seen_at < now))
            .values(last_seen_at=now)
            .execution_options(synchronize_session=False)
        )

        def _write() -> None:
            self._db.execute(stmt)
            self._db.commit()

        self._guard(_write)
        return now
