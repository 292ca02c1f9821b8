from typing import Optional, List, Dict
from datetime import date, datetime
from decimal import Decimal
from pydantic import BaseModel, Field

from backend.app.models.models import BudgetStatus

class BudgetBase(BaseModel):
    name: str
    amount: Decimal
    period: str  # daily, weekly, monthly, yearly or custom
    start_date: date
    end_date: date
    category_ids: List[str] = Field(default_factory=list)
    alert_threshold: Decimal = Decimal("80")
    alert_enabled: bool = True
    repeat_automatically: bool = False

class BudgetCreate(BudgetBase):
    user_id: str

class BudgetUpdate(BaseModel):
    name: Optional[str] = None
    amount: Optional[Decimal] = None
    period: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    category_ids: Optional[List[str]] = None
    alert_threshold: Optional[Decimal] = None
    alert_enabled: Optional[bool] = None
    repeat_automatically: Optional[bool] = None
    is_active: Optional[bool] = None

class BudgetSpend(BaseModel):
    """Result of recomputing a budget against the ledger"""
    spent: Decimal
    remaining: Decimal
    percentage_used: Decimal
    status: BudgetStatus

class BudgetInDB(BaseModel):
    id: str
    user_id: str
    name: str
    amount: float
    period: str
    start_date: date
    end_date: date
    category_ids: List[str]
    alert_threshold: float
    alert_enabled: bool
    is_active: bool
    repeat_automatically: bool
    spent: float
    remaining: float
    percentage_used: float
    status: BudgetStatus
    needs_alert: bool
    last_calculated_at: Optional[datetime] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class BudgetStatusCounts(BaseModel):
    total: int
    ok: int
    warning: int
    exceeded: int

class BudgetStatusSummary(BaseModel):
    summary: BudgetStatusCounts
    budgets: Dict[BudgetStatus, List[BudgetInDB]]

class RefreshAllResponse(BaseModel):
    count: int
