import ipaddress
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session
from signage_fleet.db import SessionLocal
from signage_fleet.schemas.device import CheckInOut, StoredPlayerOut
from signage_fleet.services.device_store import DeviceStore
from signage_fleet.services.errors import DescriptorRejectedError, IdentityIntegrityError, StoreUnavailableError
from signage_fleet.services.identity import IdentityResolver

router = APIRouter(prefix="/players", tags=["players"])
DEFAULT_OWNER_ID = 1


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _resolve_owner_id(request: Request, explicit: int | None = None) -> int:
    if explicit is not None:
        return explicit
    header_account = (request.headers.get("X-Account-ID") or "").strip()
    if not header_account:
        return DEFAULT_OWNER_ID
    if not header_account.isdigit():
        raise HTTPException(status_code=422, detail="X-Account-ID must be a numeric account id")
    return int(header_account)


def _is_loopback_client(request: Request) -> bool:
    # Only the socket peer counts; forwarded headers are client-controlled.
    host = request.client.host if request.client else ""
    if host == "localhost":
        return True
    try:
        return ipaddress.ip_address(host).is_loopback
    except ValueError:
        return False


@router.get("/index", response_model=CheckInOut)
def player_index(
    request: Request,
    account_id: int | None = None,
    db: Session = Depends(get_db),
):
    resolver = IdentityResolver(DeviceStore(db))
    try:
        entity = resolver.resolve(
            request.headers.get("User-Agent"),
            _resolve_owner_id(request, account_id),
            local=_is_loopback_client(request),
        )
    except DescriptorRejectedError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except IdentityIntegrityError as exc:
        raise HTTPException(status_code=500, detail=str(exc))
    except StoreUnavailableError:
        raise HTTPException(status_code=503, detail="Player store unavailable, retry later")
    return CheckInOut.model_validate(entity)


@router.get("/{player_id}", response_model=StoredPlayerOut)
def get_player(player_id: int, db: Session = Depends(get_db)):
    try:
        record = DeviceStore(db).find_by_id(player_id)
    except StoreUnavailableError:
        raise HTTPException(status_code=503, detail="Player store unavailable, retry later")
    if record is None:
        raise HTTPException(status_code=404, detail="Player not found")
    return StoredPlayerOut.model_validate(record)
