from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from roadside.database import get_db
from roadside.dependencies import get_current_user
from roadside.schemas.notification import NotificationResponse, UnreadCount
from roadside.services.notification_service import NotificationService
from roadside.models import User
from typing import List
from uuid import UUID

router = APIRouter(prefix="/notifications", tags=["Notifications"])

@router.get("", response_model=List[NotificationResponse])
async def list_notifications(
    limit: int = Query(10, ge=1, le=100),
    unread_only: bool = False,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    notification_service = NotificationService(db)
    return await notification_service.list_for_user(current_user.id, limit=limit, unread_only=unread_only)

@router.get("/unread-count", response_model=UnreadCount)
async def get_unread_count(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    notification_service = NotificationService(db)
    return UnreadCount(count=await notification_service.unread_count(current_user.id))

@router.put("/read-all")
async def mark_all_read(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    notification_service = NotificationService(db)
    updated = await notification_service.mark_all_read(current_user.id)
    return {"success": True, "updated": updated}

@router.put("/{notification_id}/read", response_model=NotificationResponse)
async def mark_read(
    notification_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    notification_service = NotificationService(db)
    return await notification_service.mark_read(current_user.id, notification_id)
