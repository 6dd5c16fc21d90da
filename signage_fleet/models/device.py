from datetime import datetime, timezone
from sqlalchemy import DDL, JSON, Boolean, Column, DateTime, Index, Integer, Sequence, String, event
from signage_fleet.db import Base

# Store-assigned ids start at 2; id 1 is only ever written explicitly for the local player.
RESERVE_LOCAL_PLAYER_ID_SQLITE = (
    "INSERT INTO sqlite_sequence (name, seq) SELECT 'player', 1 "
    "WHERE NOT EXISTS (SELECT 1 FROM sqlite_sequence WHERE name = 'player')"
)


def utcnow() -> datetime:
    # Naive UTC wall clock; SQLite DateTime columns carry no tzinfo.
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Player(Base):
    __tablename__ = "player"
    __table_args__ = (
        Index("ux_player_uuid", "uuid", unique=True),
        {"sqlite_autoincrement": True},
    )

    id = Column(Integer, Sequence("player_id_seq", start=2), primary_key=True, autoincrement=True)
    uuid = Column(String(128), nullable=False)
    owner_id = Column(Integer, nullable=False, default=1)
    status = Column(String(32), nullable=False, default="unprovisioned")
    licence_id = Column(Integer, nullable=True)
    last_seen_at = Column(DateTime, nullable=True)

    player_name = Column(String, nullable=False)
    firmware = Column(String, nullable=False, default="")
    model = Column(String(32), nullable=False)

    playlist_id = Column(Integer, nullable=False, default=0)
    refresh = Column(Integer, nullable=False, default=900)
    api_endpoint = Column(String, nullable=True)
    is_intranet = Column(Boolean, nullable=False, default=False)

    commands = Column(JSON, nullable=False, default=list)
    reports = Column(JSON, nullable=False, default=list)
    location_data = Column(JSON, nullable=False, default=dict)
    location_longitude = Column(String, nullable=False, default="")
    location_latitude = Column(String, nullable=False, default="")
    categories = Column(JSON, nullable=False, default=list)
    properties = Column(JSON, nullable=False, default=dict)
    remote_administration = Column(JSON, nullable=False, default=dict)
    screen_times = Column(JSON, nullable=False, default=dict)

    created_at = Column(DateTime, nullable=False, default=utcnow)


event.listen(
    Player.__table__,
    "after_create",
    DDL(RESERVE_LOCAL_PLAYER_ID_SQLITE).execute_if(dialect="sqlite"),
)
