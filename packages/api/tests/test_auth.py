"""Tests for authentication middleware."""

from __future__ import annotations

import time

from jose import jwt

from staffdir_shared.config import settings

from staffdir_api.middleware.auth import _validate_jwt
from tests.conftest import USER_ID, make_supabase


def make_token(sub=USER_ID, *, secret=None, audience="authenticated", expires_in=3600, **claims):
    payload = {
        "sub": sub,
        "aud": audience,
        "exp": int(time.time()) + expires_in,
        "email": "pat@acmestaffing.com",
        **claims,
    }
    return jwt.encode(payload, secret or settings.jwt_secret, algorithm="HS256")


def auth_header(token):
    return {"Authorization": f"Bearer {token}"}


def test_validate_jwt_accepts_supabase_token():
    claims = _validate_jwt(make_token())
    assert claims["sub"] == USER_ID


def test_validate_jwt_rejects_wrong_secret():
    assert _validate_jwt(make_token(secret="not-the-secret")) is None


def test_validate_jwt_rejects_wrong_audience():
    assert _validate_jwt(make_token(audience="anon")) is None


def test_validate_jwt_rejects_expired_token():
    assert _validate_jwt(make_token(expires_in=-60)) is None


def test_no_credentials_is_401_on_user_endpoint(client):
    response = client.get("/api/claims/my-requests")
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "UNAUTHORIZED"


def test_invalid_token_is_401(client):
    response = client.get("/api/claims/my-requests", headers=auth_header("not-a-jwt"))
    assert response.status_code == 401
    assert response.json()["error"]["message"] == "Invalid or expired token"


def test_public_endpoint_allows_anonymous(client):
    response = client.get("/api/agencies")
    assert response.status_code == 200


def test_valid_token_loads_profile(client, use_supabase):
    use_supabase(make_supabase({
        "profiles": ([{"id": USER_ID, "role": "user", "email": "pat@acmestaffing.com"}], 1),
    }))
    response = client.get("/api/claims/my-requests", headers=auth_header(make_token()))
    assert response.status_code == 200
    assert response.json() == {"data": []}


def test_non_admin_gets_403_regardless_of_body(client, use_supabase):
    use_supabase(make_supabase({
        "profiles": ([{"id": USER_ID, "role": "agency_owner", "email": "o@x.com"}], 1),
    }))
    response = client.post(
        "/api/admin/agencies",
        headers=auth_header(make_token()),
        content=b"{not json",
    )
    assert response.status_code == 403
    assert response.json() == {
        "error": {"code": "FORBIDDEN", "message": "Admin access required"}
    }


def test_missing_profile_is_not_admin(client):
    response = client.get("/api/admin/claims", headers=auth_header(make_token()))
    assert response.status_code == 403


def test_admin_profile_passes_guard(client, use_supabase):
    use_supabase(make_supabase({
        "profiles": ([{"id": USER_ID, "role": "admin", "email": "admin@staffdir.test"}], 1),
    }))
    response = client.get("/api/admin/claims", headers=auth_header(make_token()))
    assert response.status_code == 200
    assert response.json()["pagination"]["total"] == 0
