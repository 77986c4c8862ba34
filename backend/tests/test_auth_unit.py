"""Unit tests for token helpers and the REST auth dependency."""

from __future__ import annotations

from datetime import timedelta

import pytest
from fastapi import HTTPException

from app.api.deps import get_user_from_token
from app.core.security import create_access_token, decode_access_token, subject_from_token
from app.models import User


@pytest.fixture()
def user(db_session):
    db_user = User(full_name="Ada Lovelace", email="ada@bytelearn.test")
    db_session.add(db_user)
    db_session.commit()
    return db_user


def test_access_token_round_trip_keeps_subject():
    token = create_access_token({"sub": "42"})

    assert decode_access_token(token)["sub"] == "42"
    assert subject_from_token(token) == 42


def test_expired_token_is_rejected():
    token = create_access_token({"sub": "1"}, expires_delta=timedelta(seconds=-5))

    with pytest.raises(HTTPException) as exc:
        decode_access_token(token)

    assert exc.value.status_code == 401
    assert exc.value.detail == "Token has expired"


def test_tampered_token_is_rejected():
    token = create_access_token({"sub": "1"})

    with pytest.raises(HTTPException) as exc:
        decode_access_token(token[:-2] + ("aa" if not token.endswith("aa") else "bb"))

    assert exc.value.status_code == 401


@pytest.mark.parametrize("claims", [{}, {"sub": "not-a-number"}])
def test_subject_must_be_an_account_id(claims):
    token = create_access_token(claims)

    with pytest.raises(HTTPException) as exc:
        subject_from_token(token)

    assert exc.value.status_code == 401


def test_get_user_from_token(db_session, user):
    """Tokens should resolve to existing users."""

    token = create_access_token({"sub": str(user.id)})
    resolved = get_user_from_token(token, db_session)

    assert resolved.id == user.id
    assert resolved.full_name == "Ada Lovelace"


def test_get_user_from_token_unknown_account(db_session):
    token = create_access_token({"sub": "999"})

    with pytest.raises(HTTPException) as exc:
        get_user_from_token(token, db_session)

    assert exc.value.status_code == 401
