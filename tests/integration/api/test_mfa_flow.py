import pytest
from httpx import AsyncClient
from sqlmodel import select

from bank_auth.domain.entities import Session

PASSWORD = "SecurePass123!"


async def start_login(client: AsyncClient) -> dict:
    response = await client.post(
        "/api/auth/login", json={"email": "jane@bank.com", "password": PASSWORD}
    )
    assert response.status_code == 200
    return response.json()


@pytest.mark.asyncio
async def test_login_with_mfa_then_verify(client: AsyncClient, create_user, sender, auth_headers):
    await create_user(mfa_enabled=True)

    pending = await start_login(client)

    assert pending["requires_mfa"] is True
    assert pending["masked_email"] == "ja***@bank.com"
    assert pending["mfa_expires_in"] == 600
    assert "access_token" not in pending

    verified = await client.post(
        "/api/auth/mfa/verify",
        json={"session_id": pending["session_id"], "code": sender.last_code("jane@bank.com")},
    )

    assert verified.status_code == 200
    data = verified.json()
    assert data["session_id"] == pending["session_id"]
    assert data["user"]["mfa_enabled"] is True

    listed = await client.get("/api/sessions", headers=auth_headers(data))
    assert listed.status_code == 200


@pytest.mark.asyncio
async def test_code_cannot_be_replayed(client: AsyncClient, create_user, sender):
    await create_user(mfa_enabled=True)
    pending = await start_login(client)
    payload = {"session_id": pending["session_id"], "code": sender.last_code("jane@bank.com")}

    first = await client.post("/api/auth/mfa/verify", json=payload)
    second = await client.post("/api/auth/mfa/verify", json=payload)

    assert first.status_code == 200
    assert second.status_code == 400
    assert second.json()["error"]["code"] == "CODE_EXPIRED_OR_NOT_FOUND"


@pytest.mark.asyncio
async def test_wrong_code_format_is_rejected(client: AsyncClient, create_user):
    await create_user(mfa_enabled=True)
    pending = await start_login(client)

    response = await client.post(
        "/api/auth/mfa/verify", json={"session_id": pending["session_id"], "code": "12ab"}
    )

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INVALID_CODE_FORMAT"


@pytest.mark.asyncio
async def test_repeated_wrong_codes_lock_verification(client: AsyncClient, create_user, sender):
    await create_user(mfa_enabled=True)
    pending = await start_login(client)
    real = sender.last_code("jane@bank.com")
    wrong = "000000" if real != "000000" else "111111"

    codes = []
    for _ in range(5):
        response = await client.post(
            "/api/auth/mfa/verify", json={"session_id": pending["session_id"], "code": wrong}
        )
        codes.append(response.status_code)

    assert codes == [400, 400, 400, 400, 429]

    locked = await client.post(
        "/api/auth/mfa/verify", json={"session_id": pending["session_id"], "code": real}
    )
    assert locked.status_code == 429


@pytest.mark.asyncio
async def test_pending_session_cannot_authorize(client: AsyncClient, create_user, db_session):
    await create_user(mfa_enabled=True)
    pending = await start_login(client)
    stored = (
        await db_session.exec(select(Session).where(Session.session_id == pending["session_id"]))
    ).one()

    response = await client.get(
        "/api/sessions",
        headers={
            "Authorization": f"Bearer {stored.access_token}",
            "X-Session-ID": pending["session_id"],
        },
    )

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "MFA_NOT_VERIFIED"


@pytest.mark.asyncio
async def test_resend_replaces_code_and_is_rate_limited(client: AsyncClient, create_user, sender):
    await create_user(mfa_enabled=True)
    pending = await start_login(client)
    first_code = sender.last_code("jane@bank.com")
    body = {"session_id": pending["session_id"]}

    statuses = [(await client.post("/api/auth/mfa/resend", json=body)).status_code for _ in range(4)]

    assert statuses == [200, 200, 200, 429]
    latest = sender.last_code("jane@bank.com")
    if latest != first_code:
        stale = await client.post(
            "/api/auth/mfa/verify", json={"session_id": pending["session_id"], "code": first_code}
        )
        assert stale.status_code == 400

    response = await client.post(
        "/api/auth/mfa/verify", json={"session_id": pending["session_id"], "code": latest}
    )
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_resend_for_unknown_session(client: AsyncClient):
    response = await client.post("/api/auth/mfa/resend", json={"session_id": "0" * 64})

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "SESSION_NOT_FOUND"
