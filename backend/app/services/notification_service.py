import logging
import math
from datetime import datetime
from typing import Dict, Any, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.app.exceptions import NotFoundError, TransientDependencyError
from backend.app.models.models import Notification
from backend.app.schemas.notifications import NotificationCreate

logger = logging.getLogger(__name__)


def create_notification(db: Session, user_id: str, notification: NotificationCreate) -> Notification:
    """Persist a notification for a user.

    Database failures are rolled back and re-raised as TransientDependencyError
    so callers in the alerting path can log and carry on.
    """
    db_notification = Notification(
        user_id=user_id,
        type=notification.type.value,
        title=notification.title,
        message=notification.message,
        priority=notification.priority.value,
        reference_type=notification.reference_type.value,
        reference_id=notification.reference_id,
        notification_metadata=notification.metadata
    )
    try:
        db.add(db_notification)
        db.commit()
        db.refresh(db_notification)
    except SQLAlchemyError as e:
        db.rollback()
        raise TransientDependencyError(f"Could not store {notification.type.value} notification: {e}") from e

    logger.info("Created %s notification %s for user %s",
                db_notification.type, db_notification.id, user_id)
    return db_notification


def get_unread_count(db: Session, user_id: str) -> int:
    return db.query(Notification).filter(
        Notification.user_id == user_id,
        Notification.is_read.is_(False)
    ).count()


def get_notifications(db: Session, user_id: str, page: int = 1, limit: int = 20,
                      is_read: Optional[bool] = None) -> Dict[str, Any]:
    """Get a page of notifications for a user, newest first"""
    page = max(page, 1)
    limit = max(limit, 1)

    query = db.query(Notification).filter(Notification.user_id == user_id)
    if is_read is not None:
        query = query.filter(Notification.is_read.is_(is_read))

    total = query.count()
    items = query.order_by(Notification.created_at.desc())\
        .offset((page - 1) * limit).limit(limit).all()

    return {
        "items": items,
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "pages": math.ceil(total / limit)
        },
        "unread_count": get_unread_count(db, user_id)
    }


def get_notification(db: Session, user_id: str, notification_id: str) -> Notification:
    notification = db.query(Notification).filter(
        Notification.id == notification_id,
        Notification.user_id == user_id
    ).first()
    if not notification:
        raise NotFoundError("Notification not found")
    return notification


def mark_as_read(db: Session, user_id: str, notification_id: str) -> Notification:
    notification = get_notification(db, user_id, notification_id)
    if not notification.is_read:
        notification.is_read = True
        notification.read_at = datetime.utcnow()
        db.commit()
        db.refresh(notification)
    return notification


def mark_as_unread(db: Session, user_id: str, notification_id: str) -> Notification:
    notification = get_notification(db, user_id, notification_id)
    notification.is_read = False
    notification.read_at = None
    db.commit()
    db.refresh(notification)
    return notification


def mark_all_as_read(db: Session, user_id: str) -> int:
    """Mark every unread notification as read, returning how many changed"""
    modified = db.query(Notification).filter(
        Notification.user_id == user_id,
        Notification.is_read.is_(False)
    ).update({"is_read": True, "read_at": datetime.utcnow()}, synchronize_session=False)
    db.commit()
    return modified


def delete_notification(db: Session, user_id: str, notification_id: str) -> Dict[str, bool]:
    notification = get_notification(db, user_id, notification_id)
    db.delete(notification)
    db.commit()
    return {"success": True}


def clear_notifications(db: Session, user_id: str) -> int:
    """Delete all of a user's notifications, returning how many were removed"""
    deleted = db.query(Notification).filter(Notification.user_id == user_id)\
        .delete(synchronize_session=False)
    db.commit()
    return deleted
