"""Turn a player check-in into exactly one durable player row.

No locks and no in-process caching: the unique index on ``player.uuid`` (and
the primary key for the local player) decides every race, and the losing
check-in falls back to a single read of the winner's row.
"""

import logging
import os
from dataclasses import replace
from typing import Any, Callable

from signage_fleet.models.device import utcnow
from signage_fleet.services.device_entity import DeviceEntity, assemble
from signage_fleet.services.device_store import Conflict, DeviceRecord, DeviceStore
from signage_fleet.services.edition import DEFAULT_LICENCE_ID, DeviceStatus, current_edition, defaults_for
from signage_fleet.services.errors import DescriptorRejectedError, IdentityIntegrityError, StoreUnavailableError
from signage_fleet.services.user_agent import DeviceDescriptor, parse_user_agent

logger = logging.getLogger(__name__)

LOCAL_PLAYER_ID = 1
LOCAL_OWNER_ID = 1
LOCAL_API_ENDPOINT = os.getenv("SIGNAGE_LOCAL_API_ENDPOINT", "http://localhost:8080/v2")
DEFAULT_REFRESH_SEC = int(os.getenv("SIGNAGE_DEFAULT_REFRESH_SEC", "900"))


def _registration_values(descriptor: DeviceDescriptor, owner_id: int) -> dict[str, Any]:
    return {
        "uuid": descriptor.unique_id,
        "player_name": descriptor.display_name,
        "firmware": descriptor.firmware_version,
        "model": descriptor.model.value,
        "owner_id": owner_id,
        "status": DeviceStatus.UNPROVISIONED.value,
        "licence_id": None,
        "last_seen_at": utcnow(),
        "playlist_id": 0,
        "refresh": DEFAULT_REFRESH_SEC,
        "api_endpoint": None,
        "is_intranet": False,
        "commands": [],
        "reports": [],
        "location_data": {},
        "location_longitude": "",
        "location_latitude": "",
        "categories": [],
        "properties": {},
        "remote_administration": {},
        "screen_times": {},
    }


class IdentityResolver:
    def __init__(self, store: DeviceStore, edition_provider: Callable[[], str] = current_edition):
        self._store = store
        self._edition_provider = edition_provider

    def resolve(self, raw: str | None, owner_id: int, *, local: bool = False) -> DeviceEntity:
        """Resolve one check-in.

        Raises DescriptorRejectedError before any store access when the user
        agent is not a known player, IdentityIntegrityError when the local
        player slot belongs to another uuid, and StoreUnavailableError when
        the store fails (the caller may retry the whole call).
        """
        descriptor, ok = parse_user_agent(raw)
        if not ok:
            raise DescriptorRejectedError(f"unrecognized player user agent: {(raw or '')[:120]!r}")

        if local:
            record = self.resolve_local_device(descriptor)
        else:
            record = self.register_or_fetch(descriptor, owner_id, self._edition_provider())
        return assemble(record, descriptor)

    def resolve_local_device(self, descriptor: DeviceDescriptor) -> DeviceRecord:
        record = self._store.find_by_id(LOCAL_PLAYER_ID)
        if record is None:
            values = _registration_values(descriptor, LOCAL_OWNER_ID)
            values.update(
                id=LOCAL_PLAYER_ID,
                status=DeviceStatus.PROVISIONED.value,
                licence_id=DEFAULT_LICENCE_ID,
                api_endpoint=LOCAL_API_ENDPOINT,
                is_intranet=True,
            )
            result = self._store.insert(values)
            if not isinstance(result, Conflict):
                logger.info("bootstrapped local player %s (uuid=%s)", result.id, descriptor.unique_id)
                return self._reread(result.id)

            logger.info("local player bootstrap raced, re-reading id %s", LOCAL_PLAYER_ID)
            record = self._store.find_by_id(LOCAL_PLAYER_ID)
            if record is None:
                # The conflict was on the uuid, not on id 1.
                logger.error("local player uuid %s is already a regular player", descriptor.unique_id)
                raise IdentityIntegrityError(
                    f"uuid {descriptor.unique_id} is registered as a regular player, not as the local player"
                )

        if record.uuid != descriptor.unique_id:
            logger.error(
                "local player uuid mismatch: stored=%s agent=%s", record.uuid, descriptor.unique_id
            )
            raise IdentityIntegrityError(
                f"wrong uuid for local player: {record.uuid} != {descriptor.unique_id}"
            )
        return replace(record, last_seen_at=self._store.touch_last_seen(record.id))

    def register_or_fetch(self, descriptor: DeviceDescriptor, owner_id: int, edition: str) -> DeviceRecord:
        existing = self._store.find_by_unique_id(descriptor.unique_id)
        if existing is not None:
            if existing.owner_id != owner_id:
                # Reassignment is an admin operation; check-ins never move players.
                logger.warning(
                    "player %s checked in for owner %s but belongs to owner %s",
                    existing.id,
                    owner_id,
                    existing.owner_id,
                )
            return replace(existing, last_seen_at=self._store.touch_last_seen(existing.id))

        defaults = defaults_for(edition)
        values = _registration_values(descriptor, owner_id)
        values.update(status=defaults.status.value, licence_id=defaults.licence_id)

        result = self._store.insert(values)
        if isinstance(result, Conflict):
            logger.info("concurrent registration of uuid %s lost the race, using winner", descriptor.unique_id)
            winner = self._store.find_by_unique_id(descriptor.unique_id)
            if winner is None:
                raise StoreUnavailableError(
                    f"insert of uuid {descriptor.unique_id} conflicted but no row was found"
                )
            return winner

        logger.info(
            "registered player %s (uuid=%s, owner=%s, edition=%s, status=%s)",
            result.id,
            descriptor.unique_id,
            owner_id,
            edition,
            defaults.status.value,
        )
        return self._reread(result.id)

    def _reread(self, player_id: int) -> DeviceRecord:
        record = self._store.find_by_id(player_id)
        if record is None:
            raise StoreUnavailableError(f"player {player_id} missing right after insert")
        return record
