from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Dict, Optional

from backend.app.database import get_db_session
from backend.app.schemas.notifications import (
    NotificationResponse, NotificationPage, UnreadCountResponse, BulkUpdateResponse
)
from backend.app.services.notification_service import (
    get_notifications, get_unread_count, mark_as_read, mark_as_unread,
    mark_all_as_read, delete_notification, clear_notifications
)

router = APIRouter()

@router.get("/", response_model=NotificationPage)
def list_notifications(
    user_id: str = Query(..., description="ID of the user"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    is_read: Optional[bool] = Query(None, description="Filter by read state"),
    db: Session = Depends(get_db_session)
):
    """
    List notifications, newest first, with pagination and the unread count
    """
    return get_notifications(db, user_id, page=page, limit=limit, is_read=is_read)

@router.get("/unread-count", response_model=UnreadCountResponse)
def unread_count(
    user_id: str = Query(..., description="ID of the user"),
    db: Session = Depends(get_db_session)
):
    return {"count": get_unread_count(db, user_id)}

@router.put("/read-all", response_model=BulkUpdateResponse)
def read_all(
    user_id: str = Query(..., description="ID of the user"),
    db: Session = Depends(get_db_session)
):
    return {"count": mark_all_as_read(db, user_id)}

@router.put("/{notification_id}/read", response_model=NotificationResponse)
def read_notification(
    notification_id: str,
    user_id: str = Query(..., description="ID of the user"),
    db: Session = Depends(get_db_session)
):
    return mark_as_read(db, user_id, notification_id)

@router.put("/{notification_id}/unread", response_model=NotificationResponse)
def unread_notification(
    notification_id: str,
    user_id: str = Query(..., description="ID of the user"),
    db: Session = Depends(get_db_session)
):
    return mark_as_unread(db, user_id, notification_id)

@router.delete("/{notification_id}", response_model=Dict[str, bool])
def remove_notification(
    notification_id: str,
    user_id: str = Query(..., description="ID of the user"),
    db: Session = Depends(get_db_session)
):
    return delete_notification(db, user_id, notification_id)

@router.delete("/", response_model=BulkUpdateResponse)
def clear_all_notifications(
    user_id: str = Query(..., description="ID of the user"),
    db: Session = Depends(get_db_session)
):
    """
    Delete all of the user's notifications
    """
    return {"count": clear_notifications(db, user_id)}
