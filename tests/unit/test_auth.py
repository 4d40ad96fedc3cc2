"""
Bearer token verification.
"""
import uuid
from datetime import timedelta

from jose import jwt

from roadside.config import settings
from roadside.services.auth_service import AuthService


def test_round_trip_account_id():
    account_id = uuid.uuid4()
    assert AuthService.account_id_from_token(AuthService.issue_token(account_id)) == account_id


def test_expired_token_rejected():
    token = AuthService.issue_token(uuid.uuid4(), expires_delta=timedelta(seconds=-5))
    assert AuthService.account_id_from_token(token) is None


def test_wrong_token_type_rejected():
    token = jwt.encode({"sub": str(uuid.uuid4()), "type": "refresh"}, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    assert AuthService.account_id_from_token(token) is None


def test_malformed_subject_rejected():
    token = jwt.encode({"sub": "not-a-uuid", "type": "access"}, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    assert AuthService.account_id_from_token(token) is None


def test_garbage_token_rejected():
    assert AuthService.account_id_from_token("not-a-jwt") is None
