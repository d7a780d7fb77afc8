import pytest
from httpx import AsyncClient

from config import ApplicationConfig

from tests.utils.json_compare import VOLATILE_SESSION_KEYS, exclude_keys

PASSWORD = "SecurePass123!"
CHROME_ON_WINDOWS = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0 Safari/537.36"
)


async def login(client: AsyncClient, email: str = "jane@bank.com", **headers) -> dict:
    response = await client.post(
        "/api/auth/login", json={"email": email, "password": PASSWORD}, headers=headers
    )
    return response.json()


@pytest.mark.asyncio
async def test_list_sessions(client: AsyncClient, create_user, auth_headers):
    await create_user()
    current = await login(client, **{"User-Agent": CHROME_ON_WINDOWS})
    await login(client)

    response = await client.get("/api/sessions", headers=auth_headers(current))

    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 2
    mine = next(s for s in data["sessions"] if s["session_id"] == current["session_id"])
    assert exclude_keys(mine, VOLATILE_SESSION_KEYS) == {
        "ip_address": "10.0.0.1",
        "user_agent": CHROME_ON_WINDOWS,
        "device_info": {"browser": "Chrome", "os": "Windows", "is_mobile": False},
        "country": None,
        "city": None,
        "is_suspicious": False,
        "mfa_verified": True,
        "is_expiring_soon": False,
        "is_current": True,
    }
    assert "access_token" not in mine


@pytest.mark.asyncio
async def test_terminate_own_session(client: AsyncClient, create_user, auth_headers):
    await create_user()
    current = await login(client)
    other = await login(client)

    response = await client.delete(
        f"/api/sessions/{other['session_id']}", headers=auth_headers(current)
    )

    assert response.status_code == 200
    assert response.json()["sessions_terminated"] == 1
    assert (await client.get("/api/sessions", headers=auth_headers(other))).status_code == 401


@pytest.mark.asyncio
async def test_cannot_terminate_someone_elses_session(client: AsyncClient, create_user, auth_headers):
    await create_user()
    await create_user(email="john@bank.com")
    jane = await login(client)
    john = await login(client, email="john@bank.com")

    response = await client.delete(
        f"/api/sessions/{john['session_id']}", headers=auth_headers(jane)
    )

    assert response.status_code == 404
    assert (await client.get("/api/sessions", headers=auth_headers(john))).status_code == 200


@pytest.mark.asyncio
async def test_terminate_others(client: AsyncClient, create_user, auth_headers):
    await create_user()
    current = await login(client)
    await login(client)
    await login(client)

    response = await client.post("/api/sessions/terminate-others", headers=auth_headers(current))

    assert response.status_code == 200
    assert response.json()["sessions_terminated"] == 2
    listed = await client.get("/api/sessions", headers=auth_headers(current))
    assert listed.json()["total"] == 1


@pytest.mark.asyncio
async def test_ip_change_flags_session(client: AsyncClient, create_user, auth_headers, monkeypatch):
    monkeypatch.setattr(ApplicationConfig, "TRUSTED_PROXIES", ["10.0.0.0/8"])
    await create_user()
    current = await login(client)
    headers = {**auth_headers(current), "X-Forwarded-For": "203.0.113.7"}

    response = await client.get("/api/sessions", headers=headers)

    assert response.status_code == 200
    assert response.json()["sessions"][0]["is_suspicious"] is True


@pytest.mark.asyncio
async def test_forwarded_for_from_untrusted_peer_is_ignored(
    client: AsyncClient, create_user, auth_headers, monkeypatch
):
    monkeypatch.setattr(ApplicationConfig, "TRUSTED_PROXIES", ["192.0.2.1"])
    await create_user()
    current = await login(client, **{"X-Forwarded-For": "198.51.100.4"})
    headers = {**auth_headers(current), "X-Forwarded-For": "203.0.113.7"}

    response = await client.get("/api/sessions", headers=headers)

    session = response.json()["sessions"][0]
    assert session["ip_address"] == "10.0.0.1"
    assert session["is_suspicious"] is False


@pytest.mark.asyncio
async def test_session_id_must_match_token(client: AsyncClient, create_user, auth_headers):
    await create_user()
    await create_user(email="john@bank.com")
    jane = await login(client)
    john = await login(client, email="john@bank.com")

    response = await client.get(
        "/api/sessions",
        headers={
            "Authorization": f"Bearer {jane['access_token']}",
            "X-Session-ID": john["session_id"],
        },
    )

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_sessions_require_session_header(client: AsyncClient, create_user):
    await create_user()
    jane = await login(client)

    response = await client.get(
        "/api/sessions", headers={"Authorization": f"Bearer {jane['access_token']}"}
    )

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "SESSION_NOT_FOUND"
