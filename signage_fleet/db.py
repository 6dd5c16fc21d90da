from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy import text
import os

DATABASE_URL = os.getenv("SIGNAGE_DATABASE_URL", "sqlite:///./signage.db")
DB_TIMEOUT_SEC = int(os.getenv("SIGNAGE_DB_TIMEOUT_SEC", "30"))


def _connect_args(url: str) -> dict:
    if url.startswith("sqlite"):
        return {"check_same_thread": False, "timeout": DB_TIMEOUT_SEC}
    return {}


engine = create_engine(DATABASE_URL, connect_args=_connect_args(DATABASE_URL))
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)

Base = declarative_base()

# Columns added after the first player table shipped; (name, DDL type + default).
_PLAYER_LATE_COLUMNS = (
    ("api_endpoint", "VARCHAR"),
    ("is_intranet", "BOOLEAN DEFAULT 0"),
    ("location_longitude", "VARCHAR DEFAULT ''"),
    ("location_latitude", "VARCHAR DEFAULT ''"),
    ("remote_administration", "JSON"),
    ("screen_times", "JSON"),
)


def ensure_sqlite_schema(bind=None):
    """
    Lightweight runtime schema patching for SQLite.

    `Base.metadata.create_all()` won't add new columns to existing tables,
    and old player tables were created without the unique uuid index that
    check-in registration depends on.
    """
    bind = bind if bind is not None else engine
    if bind.dialect.name != "sqlite":
        return

    with bind.begin() as conn:
        cols = conn.execute(text("PRAGMA table_info(player)")).fetchall()
        if not cols:
            return
        col_names = {row[1] for row in cols}  # (cid, name, type, notnull, dflt_value, pk)
        for name, ddl in _PLAYER_LATE_COLUMNS:
            if name not in col_names:
                conn.execute(text(f"ALTER TABLE player ADD COLUMN {name} {ddl}"))

        for container in ("remote_administration", "screen_times"):
            conn.execute(text(f"UPDATE player SET {container}='{{}}' WHERE {container} IS NULL"))

        table_sql = conn.execute(
            text("SELECT sql FROM sqlite_master WHERE type='table' AND name='player'")
        ).scalar_one_or_none() or ""
        if "AUTOINCREMENT" in table_sql.upper():
            # Keeps store-assigned ids off the local player's slot.
            conn.execute(
                text(
                    "INSERT INTO sqlite_sequence (name, seq) SELECT 'player', 1 "
                    "WHERE NOT EXISTS (SELECT 1 FROM sqlite_sequence WHERE name = 'player')"
                )
            )

        # Duplicate uuids make this fail; they have to be merged by hand.
        conn.execute(
            text("CREATE UNIQUE INDEX IF NOT EXISTS ux_player_uuid ON player(uuid)")
        )
