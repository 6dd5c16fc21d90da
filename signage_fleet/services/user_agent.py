"""Player user-agent parsing.

Players identify themselves on every check-in with one of two strings:

    ModelX/1.2.3 uid=ABC123 name=Lobby-Screen
    ADAPI/2.0 (UUID:a8294bat-c28f; NAME:Lobby) SK8855-ADAPI/2.0.5 (MODEL:XMP-330)

Anything else is treated as an unknown peer.
"""

import re
from dataclasses import dataclass
from enum import Enum


class DeviceModel(str, Enum):
    GARLIC = "garlic"
    IADEA_XMP1X0 = "iadea_xmp1x0"
    IADEA_XMP2X00 = "iadea_xmp2x00"
    IADEA_XMP3X0 = "iadea_xmp3x0"
    QBIC = "qbic"
    SCREENLITE = "screenlite"
    COMPATIBLE = "compatible"
    MODEL_X = "modelx"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class DeviceDescriptor:
    unique_id: str
    model: DeviceModel
    firmware_version: str
    display_name: str


UNKNOWN_DESCRIPTOR = DeviceDescriptor(
    unique_id="",
    model=DeviceModel.UNKNOWN,
    firmware_version="",
    display_name="",
)

# Longer agents are rejected without parsing.
MAX_USER_AGENT_LENGTH = 512

_SIGNATURES: dict[str, DeviceModel] = {
    "garlic": DeviceModel.GARLIC,
    "xmp-120": DeviceModel.IADEA_XMP1X0,
    "xmp-130": DeviceModel.IADEA_XMP1X0,
    "xmp-2200": DeviceModel.IADEA_XMP2X00,
    "xmp-320": DeviceModel.IADEA_XMP3X0,
    "xmp-330": DeviceModel.IADEA_XMP3X0,
    "xmp-340": DeviceModel.IADEA_XMP3X0,
    "td1050": DeviceModel.QBIC,
    "td1060": DeviceModel.QBIC,
    "screenliteweb": DeviceModel.SCREENLITE,
    "modelx": DeviceModel.MODEL_X,
    "compatible": DeviceModel.COMPATIBLE,
    "ntv": DeviceModel.COMPATIBLE,
}

_PLAYER_API_RE = re.compile(
    r"^\s*(?:GAPI|ADAPI)/[\d.]+\s*"
    r"\(\s*UUID:(?P<uid>[^;)]*);\s*NAME:(?P<name>[^)]*)\)\s*"
    r"(?P<firmware>[^\s(]+)\s*"
    r"\(\s*MODEL:(?P<model>[^)]*)\)",
    re.IGNORECASE,
)
_SHORT_RE = re.compile(r"^\s*(?P<model>[A-Za-z0-9][\w.-]*)/(?P<firmware>\S+)(?P<rest>.*)$")
_UID_RE = re.compile(r"(?:^|\s)uid=(?P<uid>\S+)")
_NAME_RE = re.compile(r"(?:^|\s)name=(?P<name>\S+(?:[ \t]+(?!uid=)\S+)*)")


def _model_for(token: str) -> DeviceModel:
    return _SIGNATURES.get((token or "").strip().lower(), DeviceModel.UNKNOWN)


def _build(model_token: str, firmware: str, uid: str, name: str) -> tuple[DeviceDescriptor, bool]:
    model = _model_for(model_token)
    uid = (uid or "").strip()
    if model is DeviceModel.UNKNOWN or not uid:
        return UNKNOWN_DESCRIPTOR, False
    descriptor = DeviceDescriptor(
        unique_id=uid,
        model=model,
        firmware_version=(firmware or "").strip(),
        display_name=(name or "").strip() or uid,
    )
    return descriptor, True


def parse_user_agent(raw: str | None) -> tuple[DeviceDescriptor, bool]:
    """Parse a player user agent.

    Returns the descriptor and whether it is usable. Malformed input never
    raises; it comes back as ``(UNKNOWN_DESCRIPTOR, False)``.
    """
    if not isinstance(raw, str) or len(raw) > MAX_USER_AGENT_LENGTH or not raw.strip():
        return UNKNOWN_DESCRIPTOR, False

    match = _PLAYER_API_RE.match(raw)
    if match is not None:
        return _build(match.group("model"), match.group("firmware"), match.group("uid"), match.group("name"))

    match = _SHORT_RE.match(raw)
    if match is None:
        return UNKNOWN_DESCRIPTOR, False
    rest = match.group("rest")
    uid_match = _UID_RE.search(rest)
    name_match = _NAME_RE.search(rest)
    return _build(
        match.group("model"),
        match.group("firmware"),
        uid_match.group("uid") if uid_match else "",
        name_match.group("name") if name_match else "",
    )
