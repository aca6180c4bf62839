"""Tests for signup, login and bearer-token resolution."""
import pytest
from httpx import AsyncClient

SIGNUP_URL = "/api/v1/auth/signup"
LOGIN_URL = "/api/v1/auth/login"
ME_URL = "/api/v1/auth/me"


async def _signup(client: AsyncClient, email: str = "linus@example.com", password: str = "s3cret-pass") -> dict:
    response = await client.post(SIGNUP_URL, json={"email": email, "password": password, "name": "Linus"})
    assert response.status_code == 201
    return response.json()


@pytest.mark.asyncio
async def test_signup_returns_usable_token(client: AsyncClient):
    token = await _signup(client)

    assert token["token_type"] == "bearer"
    assert token["expires_in"] > 0
    me = await client.get(ME_URL, headers={"Authorization": f"Bearer {token['access_token']}"})
    assert me.status_code == 200
    assert me.json()["email"] == "linus@example.com"
    assert me.json()["full_name"] == "Linus"


@pytest.mark.asyncio
async def test_duplicate_signup_conflicts(client: AsyncClient):
    await _signup(client)

    response = await client.post(SIGNUP_URL, json={"email": "Linus@Example.com", "password": "another-pass"})

    assert response.status_code == 409


@pytest.mark.asyncio
async def test_login(client: AsyncClient):
    await _signup(client)

    ok = await client.post(LOGIN_URL, json={"email": "linus@example.com", "password": "s3cret-pass"})
    wrong = await client.post(LOGIN_URL, json={"email": "linus@example.com", "password": "nope-nope"})
    unknown = await client.post(LOGIN_URL, json={"email": "nobody@example.com", "password": "s3cret-pass"})

    assert ok.status_code == 200
    assert ok.json()["access_token"]
    assert wrong.status_code == 401
    assert unknown.status_code == 401


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "headers",
    [{}, {"Authorization": "Bearer not-a-jwt"}, {"Authorization": "Basic abc"}],
)
async def test_me_rejects_missing_or_bad_credentials(client: AsyncClient, headers):
    response = await client.get(ME_URL, headers=headers)

    assert response.status_code == 401
