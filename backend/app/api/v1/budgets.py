from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Dict, Optional
from datetime import date

from backend.app.database import get_db_session
from backend.app.schemas.budgets import (
    BudgetCreate, BudgetInDB, BudgetUpdate, BudgetStatusSummary, RefreshAllResponse
)
from backend.app.services.budget_service import (
    create_budget, get_budgets, get_active_budgets, get_budget, get_budget_status_summary,
    update_budget, delete_budget, refresh_budget, refresh_all_budgets, roll_over_recurring_budgets
)

router = APIRouter()

@router.post("/", response_model=BudgetInDB, status_code=status.HTTP_201_CREATED)
def create_budget_endpoint(
    budget_data: BudgetCreate,
    db: Session = Depends(get_db_session)
):
    """
    Create a new budget

    - Computes the initial spend from the ledger
    - May emit a budget alert, subject to notification preferences
    """
    return create_budget(db, budget_data)

@router.get("/", response_model=List[BudgetInDB])
def get_budgets_endpoint(
    user_id: str = Query(..., description="ID of the budget owner"),
    period: Optional[str] = Query(None, description="Filter by period"),
    active: Optional[bool] = Query(True, description="Filter by active flag"),
    category_id: Optional[str] = Query(None, description="Only budgets scoped to this category"),
    db: Session = Depends(get_db_session)
):
    """
    Get a user's budgets
    """
    return get_budgets(db, user_id, period=period, active=active, category_id=category_id)

@router.get("/active", response_model=List[BudgetInDB])
def get_active_budgets_endpoint(
    user_id: str = Query(..., description="ID of the budget owner"),
    db: Session = Depends(get_db_session)
):
    """
    Get active budgets whose period contains today
    """
    return get_active_budgets(db, user_id, on_date=date.today())

@router.get("/status", response_model=BudgetStatusSummary)
def get_budget_status_endpoint(
    user_id: str = Query(..., description="ID of the budget owner"),
    db: Session = Depends(get_db_session)
):
    """
    Get active budgets grouped into ok / warning / exceeded
    """
    return get_budget_status_summary(db, user_id)

@router.post("/refresh-all", response_model=RefreshAllResponse)
def refresh_all_budgets_endpoint(
    user_id: str = Query(..., description="ID of the budget owner"),
    db: Session = Depends(get_db_session)
):
    """
    Recompute spend for every active budget
    """
    return {"count": refresh_all_budgets(db, user_id)}

@router.post("/roll-over", response_model=List[BudgetInDB])
def roll_over_budgets_endpoint(
    user_id: str = Query(..., description="ID of the budget owner"),
    db: Session = Depends(get_db_session)
):
    """
    Create next-period budgets for expired budgets set to repeat automatically
    """
    return roll_over_recurring_budgets(db, user_id)

@router.get("/{budget_id}", response_model=BudgetInDB)
def get_budget_endpoint(
    budget_id: str,
    user_id: str = Query(..., description="ID of the budget owner"),
    db: Session = Depends(get_db_session)
):
    """
    Get a single budget
    """
    return get_budget(db, user_id, budget_id)

@router.put("/{budget_id}", response_model=BudgetInDB)
def update_budget_endpoint(
    budget_id: str,
    budget_update: BudgetUpdate,
    user_id: str = Query(..., description="ID of the budget owner"),
    db: Session = Depends(get_db_session)
):
    """
    Update an existing budget

    - Only fields present in the body are changed
    - Spend is recomputed and alerts re-evaluated
    """
    return update_budget(db, user_id, budget_id, budget_update)

@router.delete("/{budget_id}", response_model=Dict[str, bool])
def delete_budget_endpoint(
    budget_id: str,
    user_id: str = Query(..., description="ID of the budget owner"),
    hard: bool = Query(False, description="Remove the budget permanently"),
    db: Session = Depends(get_db_session)
):
    """
    Delete a budget (deactivates it unless hard is set)
    """
    return delete_budget(db, user_id, budget_id, hard=hard)

@router.post("/{budget_id}/refresh", response_model=BudgetInDB)
def refresh_budget_endpoint(
    budget_id: str,
    user_id: str = Query(..., description="ID of the budget owner"),
    db: Session = Depends(get_db_session)
):
    """
    Recompute spend for one budget
    """
    return refresh_budget(db, user_id, budget_id)
