import logging
from typing import Dict

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.app.models.models import NotificationPreference, NotificationType, CONFIGURABLE_NOTIFICATION_TYPES

logger = logging.getLogger(__name__)


def is_notification_enabled(db: Session, user_id: str, notification_type: NotificationType) -> bool:
    """Whether the user wants notifications of this type. Defaults to enabled."""
    try:
        preference = db.query(NotificationPreference).filter(
            NotificationPreference.user_id == user_id,
            NotificationPreference.notification_type == NotificationType(notification_type).value
        ).first()
    except SQLAlchemyError as e:
        logger.error("Error checking notification preference for user %s: %s", user_id, e)
        return True

    if preference is None:
        return True
    return preference.is_enabled


def get_notification_preferences(db: Session, user_id: str) -> Dict[str, bool]:
    """Get the full preference map for a user, filling unset types with True"""
    rows = db.query(NotificationPreference).filter(NotificationPreference.user_id == user_id).all()
    stored = {row.notification_type: row.is_enabled for row in rows}

    return {
        notification_type.value: stored.get(notification_type.value, True)
        for notification_type in CONFIGURABLE_NOTIFICATION_TYPES
    }


def set_notification_preferences(db: Session, user_id: str, preferences: Dict[str, bool]) -> Dict[str, bool]:
    """Upsert preferences for known notification types; unknown keys are ignored"""
    known_types = {notification_type.value for notification_type in CONFIGURABLE_NOTIFICATION_TYPES}

    for notification_type, is_enabled in preferences.items():
        if notification_type not in known_types:
            logger.debug("Ignoring unknown notification type %r for user %s", notification_type, user_id)
            continue

        preference = db.query(NotificationPreference).filter(
            NotificationPreference.user_id == user_id,
            NotificationPreference.notification_type == notification_type
        ).first()
        if preference is None:
            preference = NotificationPreference(user_id=user_id, notification_type=notification_type)
            db.add(preference)
        preference.is_enabled = bool(is_enabled)

    db.commit()
    logger.info("User %s updated notification preferences", user_id)

    return get_notification_preferences(db, user_id)
