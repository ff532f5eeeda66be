"""Tests for bearer token authentication."""

import uuid
from datetime import timedelta

import jwt
import pytest

from app.core.auth import (
    UserRole,
    create_access_token,
    decode_access_token,
)
from app.core.config import settings


class TestTokens:
    def test_round_trip(self):
        user_id = uuid.uuid4()
        user = decode_access_token(create_access_token(user_id, UserRole.STAFF))
        assert user.id == user_id
        assert user.is_staff

    def test_expired(self):
        token = create_access_token(uuid.uuid4(), expires_in=timedelta(seconds=-1))
        with pytest.raises(jwt.ExpiredSignatureError):
            decode_access_token(token)


class TestAuthDependency:
    def test_missing_header(self, client):
        response = client.get("/v1/payments/")
        assert response.status_code == 401
        assert response.json() == {"success": False, "error": "Missing authorization header"}

    def test_wrong_scheme(self, client):
        response = client.get("/v1/payments/", headers={"Authorization": "Basic abc"})
        assert response.json()["error"] == "Invalid authorization header format"

    def test_bad_signature(self, client):
        token = jwt.encode(
            {"sub": str(uuid.uuid4())}, "not-the-secret", algorithm=settings.AUTH_JWT_ALGORITHM
        )
        response = client.get("/v1/payments/", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401
        assert response.json()["error"] == "User not authenticated"

    def test_expired_token(self, client):
        token = create_access_token(uuid.uuid4(), expires_in=timedelta(seconds=-1))
        response = client.get("/v1/payments/", headers={"Authorization": f"Bearer {token}"})
        assert response.json()["error"] == "Token has expired"

    def test_valid_token(self, client, resident_headers):
        assert client.get("/v1/payments/", headers=resident_headers).status_code == 200


def test_root(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["status"] == "running"
