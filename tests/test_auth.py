"""
Bearer token authentication against the real dependency (no login override).
"""

import uuid

import pytest

from app.core.security import create_access_token, decode_access_token, user_id_from_claims
from app.models.user import User, UserRole


def _bearer(subject) -> dict:
    return {"Authorization": f"Bearer {create_access_token({'sub': str(subject)})}"}


def test_token_round_trip_keeps_user_id():
    user_id = uuid.uuid4()
    claims = decode_access_token(create_access_token({"user_id": str(user_id), "role": "STAFF"}))

    assert user_id_from_claims(claims) == user_id


def test_claims_without_usable_id():
    assert user_id_from_claims({}) is None
    assert user_id_from_claims({"sub": "not-a-uuid"}) is None


@pytest.mark.asyncio
async def test_valid_token_reaches_protected_route(test_client, admin_user):
    response = await test_client.get("/api/v1/bills", headers=_bearer(admin_user.id))

    assert response.status_code == 200
    assert response.json() == {"items": [], "total": 0}


@pytest.mark.asyncio
async def test_garbage_token_is_rejected(test_client):
    response = await test_client.get("/api/v1/bills", headers={"Authorization": "Bearer not.a.jwt"})

    assert response.status_code == 401
    assert response.json()["error"]["message"] == "Invalid authentication token"


@pytest.mark.asyncio
async def test_token_for_unknown_user(test_client):
    response = await test_client.get("/api/v1/bills", headers=_bearer(uuid.uuid4()))

    assert response.status_code == 401
    assert response.json()["error"]["message"] == "User not found"


@pytest.mark.asyncio
async def test_inactive_user_is_forbidden(test_client, test_db_session):
    user = User(name="Gone Staff", email="gone@example.com", role=UserRole.STAFF, is_active=False)
    test_db_session.add(user)
    await test_db_session.commit()

    response = await test_client.get("/api/v1/proposals", headers=_bearer(user.id))

    assert response.status_code == 403
    assert response.json()["error"]["message"] == "User account is not active"
