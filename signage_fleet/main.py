import os
import logging
from datetime import datetime, timezone
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from signage_fleet.db import Base, engine, ensure_sqlite_schema
from signage_fleet.api import device
from signage_fleet.models.device import Player  # noqa: F401  registers the player table
from signage_fleet.services.edition import current_edition

Base.metadata.create_all(bind=engine)
ensure_sqlite_schema()

API_KEY = os.getenv("SIGNAGE_API_KEY", "").strip()
QUIET_ACCESS_LOG = os.getenv("SIGNAGE_QUIET_ACCESS_LOG", "1").strip().lower() in {"1", "true", "yes", "on"}

if QUIET_ACCESS_LOG:
    # Players poll constantly; keep warning/error lines only.
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

app = FastAPI()
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
def root():
    return {
        "ok": True,
        "service": "signage-fleet",
        "time_utc": datetime.now(timezone.utc).isoformat(),
        "docs": "/docs",
    }


@app.get("/healthz")
def healthz():
    return {"ok": True, "edition": current_edition()}


@app.middleware("http")
async def api_key_middleware(request: Request, call_next):
    if not API_KEY:
        return await call_next(request)
    path = request.url.path
    # Player polls are identified by their user agent, not an API key.
    if path.startswith("/docs") or path.startswith("/openapi.json") or path.startswith("/redoc") or path == "/players/index":
        return await call_next(request)
    if request.headers.get("X-API-Key") != API_KEY:
        return JSONResponse({"detail": "Unauthorized"}, status_code=401)
    return await call_next(request)


app.include_router(device.router)
