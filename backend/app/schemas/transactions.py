from pydantic import BaseModel
from typing import Optional
from datetime import datetime
from datetime import date as date_type
from decimal import Decimal

from backend.app.models.models import TransactionType

# Fields are named "date", so the type is imported under another name
class TransactionCreate(BaseModel):
    user_id: str
    amount: Decimal
    type: TransactionType
    category_id: str
    description: Optional[str] = None
    date: date_type

class TransactionUpdate(BaseModel):
    amount: Optional[Decimal] = None
    type: Optional[TransactionType] = None
    category_id: Optional[str] = None
    description: Optional[str] = None
    date: Optional[date_type] = None

class TransactionResponse(BaseModel):
    id: str
    user_id: str
    amount: float
    type: TransactionType
    category_id: str
    description: Optional[str] = None
    date: date_type
    created_at: datetime

    class Config:
        from_attributes = True
