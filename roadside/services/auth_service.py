from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import JWTError, jwt
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from roadside.config import settings
from roadside.models import User
from uuid import UUID

class AuthService:
    """
    Bearer token handling. Accounts are issued tokens elsewhere; this service
    verifies them and resolves the account they name. ``issue_token`` exists
    for seeding and tests.
    """

    @staticmethod
    def issue_token(account_id: UUID, expires_delta: Optional[timedelta] = None) -> str:
        """Access token whose ``sub`` is the account id"""
        lifetime = expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
        claims = {
            "sub": str(account_id),
            "type": "access",
            "exp": datetime.now(timezone.utc) + lifetime,
        }
        return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

    @staticmethod
    def read_claims(token: str) -> Optional[dict]:
        try:
            return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        except JWTError:
            return None

    @staticmethod
    def account_id_from_token(token: str) -> Optional[UUID]:
        """Account id named by a valid access token, else None"""
        claims = AuthService.read_claims(token)
        if not claims or claims.get("type") != "access":
            return None
        try:
            return UUID(str(claims.get("sub")))
        except ValueError:
            return None

    @staticmethod
    async def get_current_user(db: AsyncSession, token: str) -> Optional[User]:
        """Active account for the token; None when the token or account is not usable"""
        account_id = AuthService.account_id_from_token(token)
        if account_id is None:
            return None

        result = await db.execute(
            select(User).where(User.id == account_id, User.is_active.is_(True))
        )
        return result.scalar_one_or_none()
