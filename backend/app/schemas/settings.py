from typing import Dict
from pydantic import BaseModel

class NotificationPreferencesUpdate(BaseModel):
    # Keys are notification type names; unknown keys are ignored by the service
    preferences: Dict[str, bool]
