import os
from dataclasses import dataclass
from enum import Enum

EDITION_EDGE = "edge"
EDITION_CORE = "core"
EDITION_ENTERPRISE = "enterprise"

DEFAULT_LICENCE_ID = int(os.getenv("SIGNAGE_DEFAULT_LICENCE_ID", "1"))


class DeviceStatus(str, Enum):
    UNPROVISIONED = "unprovisioned"
    PROVISIONED = "provisioned"


@dataclass(frozen=True)
class ProvisioningDefaults:
    status: DeviceStatus
    licence_id: int | None


def current_edition() -> str:
    """Edition flag, read from the environment on every call."""
    return (os.getenv("SIGNAGE_PLATFORM_EDITION", EDITION_CORE) or EDITION_CORE).strip().lower()


def defaults_for(edition: str | None) -> ProvisioningDefaults:
    # Edge: new players are provisioned and licensed on first check-in.
    if (edition or "").strip().lower() == EDITION_EDGE:
        return ProvisioningDefaults(status=DeviceStatus.PROVISIONED, licence_id=DEFAULT_LICENCE_ID)
    return ProvisioningDefaults(status=DeviceStatus.UNPROVISIONED, licence_id=None)
