import logging
from datetime import date
from decimal import Decimal
from typing import List, Optional, Sequence

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.app.exceptions import TransientDependencyError
from backend.app.models.models import Transaction, TransactionType

logger = logging.getLogger(__name__)


def _expense_query(query, user_id: str, category_ids: Optional[Sequence[str]],
                   start_date: date, end_date: date):
    query = query.filter(
        Transaction.user_id == user_id,
        Transaction.type == TransactionType.EXPENSE,
        Transaction.date >= start_date,
        Transaction.date <= end_date,
    )
    # An empty scope covers all of the user's expense categories. Ids that no
    # longer resolve to a category simply match nothing.
    if category_ids:
        query = query.filter(Transaction.category_id.in_(list(category_ids)))
    return query


def sum_expenses(db: Session, user_id: str, category_ids: Optional[Sequence[str]],
                 start_date: date, end_date: date) -> Decimal:
    """Total of expense transactions in [start_date, end_date] within the category scope"""
    try:
        total = _expense_query(
            db.query(func.sum(Transaction.amount)), user_id, category_ids, start_date, end_date
        ).scalar()
    except SQLAlchemyError as e:
        logger.warning("Ledger aggregation failed for user %s: %s", user_id, e)
        raise TransientDependencyError(f"Ledger aggregation failed: {e}") from e

    if total is None:
        return Decimal("0")
    return Decimal(str(total))


def list_expenses(db: Session, user_id: str, category_ids: Optional[Sequence[str]],
                  start_date: date, end_date: date) -> List[Transaction]:
    """Expense transactions behind sum_expenses, newest first"""
    try:
        return _expense_query(
            db.query(Transaction), user_id, category_ids, start_date, end_date
        ).order_by(Transaction.date.desc(), Transaction.created_at.desc()).all()
    except SQLAlchemyError as e:
        logger.warning("Ledger listing failed for user %s: %s", user_id, e)
        raise TransientDependencyError(f"Ledger listing failed: {e}") from e
