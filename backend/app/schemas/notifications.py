from typing import Optional, Dict, Any, List
from datetime import datetime
from pydantic import BaseModel, Field

from backend.app.models.models import NotificationType, NotificationPriority, ReferenceType

# An alert draft: built by the alert service, persisted by the notification service
class NotificationCreate(BaseModel):
    type: NotificationType
    title: str
    message: str
    priority: NotificationPriority = NotificationPriority.MEDIUM
    reference_type: ReferenceType = ReferenceType.NONE
    reference_id: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)

class NotificationResponse(BaseModel):
    id: str
    user_id: str
    type: NotificationType
    title: str
    message: str
    priority: NotificationPriority
    reference_type: ReferenceType
    reference_id: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict, validation_alias="notification_metadata")
    is_read: bool
    read_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True

class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int

class NotificationPage(BaseModel):
    items: List[NotificationResponse]
    pagination: Pagination
    unread_count: int

class UnreadCountResponse(BaseModel):
    count: int

class BulkUpdateResponse(BaseModel):
    count: int
