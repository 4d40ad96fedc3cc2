from pydantic import BaseModel
from typing import Optional, Dict, Any
from datetime import datetime
from uuid import UUID
from roadside.models.notification import NotificationType

class NotificationResponse(BaseModel):
    id: UUID
    title: str
    body: str
    type: Optional[NotificationType]
    data: Optional[Dict[str, Any]]
    is_read: bool
    created_at: datetime

    class Config:
        from_attributes = True

class UnreadCount(BaseModel):
    count: int
