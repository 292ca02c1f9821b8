from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Dict

from backend.app.database import get_db_session
from backend.app.schemas.transactions import TransactionCreate, TransactionUpdate, TransactionResponse
from backend.app.services.transaction_service import create_transaction, update_transaction, delete_transaction

router = APIRouter()

@router.post("/", response_model=TransactionResponse, status_code=status.HTTP_201_CREATED)
def create_transaction_endpoint(
    transaction: TransactionCreate,
    db: Session = Depends(get_db_session)
):
    """
    Record a transaction

    - Large transactions may raise a LARGE_TRANSACTION notification
    - Expenses trigger a recompute of the affected budgets
    """
    return create_transaction(db, transaction)

@router.put("/{transaction_id}", response_model=TransactionResponse)
def update_transaction_endpoint(
    transaction_id: str,
    transaction_update: TransactionUpdate,
    user_id: str = Query(..., description="ID of the transaction owner"),
    db: Session = Depends(get_db_session)
):
    return update_transaction(db, user_id, transaction_id, transaction_update)

@router.delete("/{transaction_id}", response_model=Dict[str, bool])
def delete_transaction_endpoint(
    transaction_id: str,
    user_id: str = Query(..., description="ID of the transaction owner"),
    db: Session = Depends(get_db_session)
):
    return delete_transaction(db, user_id, transaction_id)
