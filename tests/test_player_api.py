from types import SimpleNamespace

import pytest

import signage_fleet.api.device as player_api
from signage_fleet.services.device_store import DeviceStore
from signage_fleet.services.errors import StoreUnavailableError

LOBBY_AGENT = "ModelX/1.2.3 uid=ABC123 name=Lobby-Screen"


def test_check_in_registers_then_returns_same_player(client) -> None:
    resp = client.get("/players/index", headers={"User-Agent": LOBBY_AGENT, "X-Account-ID": "7"})
    assert resp.status_code == 200
    first = resp.json()
    assert first["status"] == "unprovisioned"
    assert first["owner_id"] == 7
    assert first["licence_id"] is None
    assert first["name"] == "Lobby-Screen"
    assert first["firmware"] == "1.2.3"
    assert first["model"] == "modelx"

    resp = client.get("/players/index", headers={"User-Agent": LOBBY_AGENT, "X-Account-ID": "7"})
    assert resp.status_code == 200
    assert resp.json()["id"] == first["id"]


def test_live_firmware_is_reported_but_not_stored(client) -> None:
    resp = client.get("/players/index", headers={"User-Agent": LOBBY_AGENT})
    player_id = resp.json()["id"]
    assert resp.json()["owner_id"] == 1

    resp = client.get("/players/index", headers={"User-Agent": "ModelX/1.3.0 uid=ABC123 name=Lobby-Screen"})
    assert resp.json()["firmware"] == "1.3.0"

    stored = client.get(f"/players/{player_id}").json()
    assert stored["firmware"] == "1.2.3"
    assert stored["player_name"] == "Lobby-Screen"
    assert stored["uuid"] == "ABC123"


def test_unknown_agent_is_a_client_error(client) -> None:
    resp = client.get("/players/index", headers={"User-Agent": "??unrecognized-device-string"})

    assert resp.status_code == 400
    assert client.get("/players/1").status_code == 404


def test_edge_edition_provisions_on_first_check_in(client, monkeypatch) -> None:
    monkeypatch.setenv("SIGNAGE_PLATFORM_EDITION", "edge")

    resp = client.get("/players/index", headers={"User-Agent": LOBBY_AGENT, "X-Account-ID": "3"})

    assert resp.status_code == 200
    assert resp.json()["status"] == "provisioned"
    assert resp.json()["licence_id"] is not None


def test_local_player_check_in_and_integrity_failure(client, monkeypatch) -> None:
    monkeypatch.setattr(player_api, "_is_loopback_client", lambda request: True)
    local_agent = "GAPI/1.0 (UUID:local-0001; NAME:Admin Preview) garlic-linux/v0.6.0.745 (MODEL:Garlic)"

    resp = client.get("/players/index", headers={"User-Agent": local_agent})
    assert resp.status_code == 200
    body = resp.json()
    assert body["id"] == 1
    assert body["status"] == "provisioned"
    assert body["is_intranet"] is True

    resp = client.get(
        "/players/index",
        headers={"User-Agent": "GAPI/1.0 (UUID:swapped; NAME:Admin Preview) garlic-linux/v0.6.0.745 (MODEL:Garlic)"},
    )
    assert resp.status_code == 500
    assert "Retry-After" not in resp.headers
    assert client.get("/players/1").json()["uuid"] == "local-0001"


def test_store_outage_is_service_unavailable(client, monkeypatch) -> None:
    def _down(self, uuid):
        raise StoreUnavailableError("down")

    monkeypatch.setattr(DeviceStore, "find_by_unique_id", _down)

    resp = client.get("/players/index", headers={"User-Agent": LOBBY_AGENT})

    assert resp.status_code == 503


def test_non_numeric_account_header_is_rejected(client) -> None:
    resp = client.get("/players/index", headers={"User-Agent": LOBBY_AGENT, "X-Account-ID": "acme"})

    assert resp.status_code == 422


def test_account_query_parameter_wins_over_header(client) -> None:
    resp = client.get(
        "/players/index",
        params={"account_id": 11},
        headers={"User-Agent": LOBBY_AGENT, "X-Account-ID": "7"},
    )

    assert resp.json()["owner_id"] == 11


@pytest.mark.parametrize(
    ("host", "expected"),
    [("127.0.0.1", True), ("::1", True), ("localhost", True), ("10.0.0.5", False), ("testclient", False), ("", False)],
)
def test_loopback_detection_uses_socket_peer(host, expected) -> None:
    request = SimpleNamespace(client=SimpleNamespace(host=host), headers={"X-Forwarded-For": "127.0.0.1"})

    assert player_api._is_loopback_client(request) is expected


def test_loopback_detection_without_client() -> None:
    assert player_api._is_loopback_client(SimpleNamespace(client=None)) is False


def test_healthz_reports_edition(client) -> None:
    resp = client.get("/healthz")

    assert resp.status_code == 200
    assert resp.json() == {"ok": True, "edition": "core"}
