from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from common.config.settings import settings
from common.exceptions.base_exception import UnauthorizedException
from common.security.jwt.auth import authenticate_token
from common.security.jwt.decode import decode_token
from common.security.jwt.tokens import generate_access_token


def _sign(claims: dict, secret: str = None) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": "ana",
        "jti": "jti-1",
        "aud": settings.TOKEN_AUDIENCE,
        "token_type": "access",
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(minutes=5)).timestamp()),
        **claims,
    }
    return jwt.encode(payload, secret or settings.ACCESS_SECRET, algorithm=settings.ALGORITHM)


def test_generated_token_round_trips():
    token = generate_access_token("ana", name="Ana", email="ana@example.com", session_id="s-1")

    payload = decode_token(token)
    assert payload.sub == "ana"
    assert payload.name == "Ana"
    assert payload.session_id == "s-1"
    assert payload.admin is False


def test_authenticate_maps_admin_claims():
    assert authenticate_token(generate_access_token("root", admin=True)).is_admin is True
    assert authenticate_token(_sign({"sub": "boss", "role": "admin"})).is_admin is True
    owner = authenticate_token(generate_access_token("founder", owner=True))
    assert owner.is_owner is True
    assert owner.is_admin is False


@pytest.mark.parametrize(
    "token",
    [
        pytest.param(_sign({}, secret="not-the-secret"), id="wrong-secret"),
        pytest.param(_sign({"token_type": "refresh"}), id="wrong-type"),
        pytest.param(_sign({"jti": ""}), id="missing-jti"),
        pytest.param(_sign({"aud": "someone-else"}), id="wrong-audience"),
        pytest.param(_sign({"sub": ""}), id="empty-subject"),
        pytest.param("not-a-jwt", id="garbage"),
    ],
)
def test_rejected_tokens(token):
    with pytest.raises(UnauthorizedException) as exc_info:
        decode_token(token)
    assert exc_info.value.status_code == 401


def test_expired_token():
    token = generate_access_token("ana", expires_in_minutes=-1)

    with pytest.raises(UnauthorizedException) as exc_info:
        decode_token(token)
    assert exc_info.value.detail == "Token expired"
