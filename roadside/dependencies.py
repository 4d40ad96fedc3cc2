from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from roadside.database import get_db
from roadside.services.auth_service import AuthService
from roadside.services.geocoding_service import Geocoder
from roadside.services.image_store import ImageStore
from roadside.services.notification_service import Notifier
from roadside.models import User, UserRole

security = HTTPBearer()

async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> User:
    """Get current authenticated user from JWT token"""
    token = credentials.credentials
    user = await AuthService.get_current_user(db, token)

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return user

async def get_current_provider_account(
    current_user: User = Depends(get_current_user)
) -> User:
    """Ensure current user is a fuel station or mechanic"""
    if current_user.role not in (UserRole.FUEL_STATION, UserRole.MECHANIC):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not authorized. Provider access required."
        )
    return current_user

# Collaborators are built once in the app lifespan and kept on app.state
def get_notifier(request: Request) -> Notifier:
    return request.app.state.notifier

def get_geocoder(request: Request) -> Geocoder:
    return request.app.state.geocoder

def get_image_store(request: Request) -> ImageStore:
    return request.app.state.image_store
