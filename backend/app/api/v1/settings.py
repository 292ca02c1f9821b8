from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Dict

from backend.app.database import get_db_session
from backend.app.schemas.settings import NotificationPreferencesUpdate
from backend.app.services.preference_service import get_notification_preferences, set_notification_preferences

router = APIRouter()

@router.get("/notifications", response_model=Dict[str, bool])
def get_preferences(
    user_id: str = Query(..., description="ID of the user"),
    db: Session = Depends(get_db_session)
):
    """
    Get notification preferences; types never set are reported as enabled
    """
    return get_notification_preferences(db, user_id)

@router.put("/notifications", response_model=Dict[str, bool])
def update_preferences(
    update: NotificationPreferencesUpdate,
    user_id: str = Query(..., description="ID of the user"),
    db: Session = Depends(get_db_session)
):
    """
    Update notification preferences

    - Unknown notification types are ignored
    - Returns the full preference map after the update
    """
    return set_notification_preferences(db, user_id, update.preferences)
