"""Signup/login, bearer auth, watchlist and alert routes."""

from __future__ import annotations

import uuid
from datetime import timedelta

import pytest

from app.exceptions import AuthenticationError
from app.models import User, WatchlistItem
from app.services import user_service
from app.services.auth_service import (
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)

CREDS = {"email": "Trader@Example.com", "password": "hunter22"}


async def _signup(client, creds=CREDS) -> dict:
    response = await client.post("/api/auth/signup", json=creds)
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['token']}"}


# ---------------------------------------------------------------------------
# Token / password helpers
# ---------------------------------------------------------------------------


def test_password_hash_roundtrip():
    hashed = hash_password("s3cret")
    assert hashed != "s3cret"
    assert verify_password("s3cret", hashed)
    assert not verify_password("wrong", hashed)


def test_verify_against_garbage_hash():
    assert verify_password("s3cret", "not-a-bcrypt-hash") is False


def test_token_carries_user_id():
    user_id = uuid.uuid4()
    assert decode_access_token(create_access_token(user_id)) == user_id


def test_expired_token_rejected():
    token = create_access_token(uuid.uuid4(), expires_delta=timedelta(seconds=-5))
    with pytest.raises(AuthenticationError):
        decode_access_token(token)


def test_tampered_token_rejected():
    token = create_access_token(uuid.uuid4())
    with pytest.raises(AuthenticationError):
        decode_access_token(token[:-2] + ("AA" if token[-2:] != "AA" else "BB"))


# ---------------------------------------------------------------------------
# Signup / login
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_signup_then_login(client):
    await _signup(client)
    response = await client.post(
        "/api/auth/login", json={"email": "trader@example.com", "password": "hunter22"}
    )
    assert response.status_code == 200
    assert response.json()["token"]


@pytest.mark.asyncio
async def test_duplicate_signup_rejected(client):
    await _signup(client)
    response = await client.post("/api/auth/signup", json=CREDS)
    assert response.status_code == 400
    assert response.json() == {"msg": "User already exists"}


@pytest.mark.asyncio
async def test_login_wrong_password(client):
    await _signup(client)
    response = await client.post(
        "/api/auth/login", json={"email": CREDS["email"], "password": "nope"}
    )
    assert response.status_code == 400
    assert response.json() == {"msg": "Invalid credentials"}


@pytest.mark.asyncio
async def test_login_unknown_email(client):
    response = await client.post(
        "/api/auth/login", json={"email": "ghost@example.com", "password": "x"}
    )
    assert response.status_code == 400
    assert response.json() == {"msg": "Invalid credentials"}


# ---------------------------------------------------------------------------
# Protected routes
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_watchlist_requires_token(client):
    response = await client.get("/api/user/watchlist")
    assert response.status_code == 401
    assert response.json() == {"msg": "No token, authorization denied"}


@pytest.mark.asyncio
async def test_watchlist_rejects_bad_token(client):
    response = await client.get(
        "/api/user/watchlist", headers={"Authorization": "Bearer not.a.token"}
    )
    assert response.status_code == 401
    assert response.json() == {"msg": "Token is not valid"}


@pytest.mark.asyncio
async def test_token_for_deleted_user_rejected(client):
    headers = {"Authorization": f"Bearer {create_access_token(uuid.uuid4())}"}
    response = await client.get("/api/user/watchlist", headers=headers)
    assert response.status_code == 401
    assert response.json() == {"msg": "Token is not valid"}


@pytest.mark.asyncio
async def test_watchlist_add_is_idempotent_and_uppercased(client):
    headers = await _signup(client)

    assert (await client.get("/api/user/watchlist", headers=headers)).json() == {"watchlist": []}

    await client.post("/api/user/watchlist/add", json={"ticker": "aapl"}, headers=headers)
    await client.post("/api/user/watchlist/add", json={"ticker": "TSLA"}, headers=headers)
    response = await client.post(
        "/api/user/watchlist/add", json={"ticker": "Aapl"}, headers=headers
    )
    assert response.json() == {"watchlist": ["AAPL", "TSLA"]}

    listed = await client.get("/api/user/watchlist", headers=headers)
    assert listed.json() == {"watchlist": ["AAPL", "TSLA"]}


@pytest.mark.asyncio
async def test_watchlists_are_per_user(client):
    alice = await _signup(client, {"email": "alice@example.com", "password": "pw-alice"})
    bob = await _signup(client, {"email": "bob@example.com", "password": "pw-bob"})

    await client.post("/api/user/watchlist/add", json={"ticker": "NVDA"}, headers=alice)
    assert (await client.get("/api/user/watchlist", headers=bob)).json() == {"watchlist": []}


@pytest.mark.asyncio
async def test_set_and_list_alerts(client):
    headers = await _signup(client)

    response = await client.post(
        "/api/alerts/set", json={"ticker": "tsla", "threshold": 200}, headers=headers
    )
    assert response.status_code == 200
    assert response.json() == {"msg": "Alert set successfully"}

    await client.post(
        "/api/alerts/set",
        json={"ticker": "AAPL", "threshold": 150.5, "type": "below"},
        headers=headers,
    )

    alerts = (await client.get("/api/alerts", headers=headers)).json()["alerts"]
    assert alerts == [
        {"ticker": "TSLA", "threshold": 200.0, "type": "above"},
        {"ticker": "AAPL", "threshold": 150.5, "type": "below"},
    ]


@pytest.mark.asyncio
async def test_alert_type_validated(client):
    headers = await _signup(client)
    response = await client.post(
        "/api/alerts/set",
        json={"ticker": "TSLA", "threshold": 1, "type": "sideways"},
        headers=headers,
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_password_over_72_bytes_rejected(client):
    # 72 characters, 144 bytes
    response = await client.post(
        "/api/auth/signup", json={"email": "multi@example.com", "password": "é" * 72}
    )
    assert response.status_code == 400
    assert "72 bytes" in response.json()["msg"]


@pytest.mark.asyncio
async def test_password_of_exactly_72_bytes_accepted(client):
    creds = {"email": "multi@example.com", "password": "é" * 36}
    await _signup(client, creds)
    response = await client.post("/api/auth/login", json=creds)
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_watchlist_add_survives_concurrent_insert(session, monkeypatch):
    user = User(email="racer@example.com", password_hash="x")
    session.add(user)
    await session.commit()
    # another request already stored AAPL after this one read the list
    session.add(WatchlistItem(user_id=user.id, ticker="AAPL"))
    await session.commit()

    real = user_service._watchlist_tickers
    reads = []

    async def stale_first_read(sess, user_id):
        reads.append(user_id)
        if len(reads) == 1:
            return []
        return await real(sess, user_id)

    monkeypatch.setattr(user_service, "_watchlist_tickers", stale_first_read)

    assert await user_service.add_to_watchlist(session, user, "aapl") == ["AAPL"]
    assert len(reads) == 2
