import logging
from decimal import Decimal, InvalidOperation
from typing import Dict, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.app.exceptions import ValidationError, NotFoundError, TransientDependencyError
from backend.app.models.models import Transaction, Category, TransactionType, NotificationType, Notification
from backend.app.schemas.transactions import TransactionCreate, TransactionUpdate
from backend.app.services.alert_service import build_large_transaction_alert
from backend.app.services.budget_service import notify_expense_written
from backend.app.services.notification_service import create_notification
from backend.app.services.preference_service import is_notification_enabled

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


def _get_user_category(db: Session, user_id: str, category_id: str) -> Category:
    category = db.query(Category).filter(
        Category.id == category_id,
        Category.user_id == user_id
    ).first()
    if not category:
        raise NotFoundError("Category not found or does not belong to you")
    return category


def _validate_transaction(amount: Decimal, transaction_type: TransactionType, category: Category) -> None:
    if amount is None or amount <= 0:
        raise ValidationError("Transaction amount must be greater than 0")
    try:
        sub_cent = amount != amount.quantize(CENT)
    except InvalidOperation:
        raise ValidationError("Transaction amount is too large")
    if sub_cent:
        raise ValidationError("Transaction amount cannot have more than 2 decimal places")
    if TransactionType(category.type) != transaction_type:
        raise ValidationError(
            f"Category type ({TransactionType(category.type).value}) does not match "
            f"transaction type ({transaction_type.value})"
        )


def _notify_large_transaction(db: Session, transaction: Transaction, category: Category) -> Optional[Notification]:
    draft = build_large_transaction_alert(transaction, category)
    if draft is None:
        return None

    try:
        if not is_notification_enabled(db, transaction.user_id, NotificationType.LARGE_TRANSACTION):
            logger.info("Large transaction notification skipped for %s (disabled by user)", transaction.id)
            return None
        return create_notification(db, transaction.user_id, draft)
    except TransientDependencyError as e:
        logger.warning("Large transaction notification for %s not delivered: %s", transaction.id, e)
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Error creating large transaction notification for %s", transaction.id)
    return None


def create_transaction(db: Session, transaction: TransactionCreate) -> Transaction:
    """Record a transaction, then run the large-transaction rule and the budget hooks"""
    category = _get_user_category(db, transaction.user_id, transaction.category_id)
    _validate_transaction(transaction.amount, transaction.type, category)

    db_transaction = Transaction(
        user_id=transaction.user_id,
        amount=transaction.amount,
        type=transaction.type,
        category_id=transaction.category_id,
        description=transaction.description,
        date=transaction.date
    )
    db.add(db_transaction)
    db.commit()
    db.refresh(db_transaction)

    # Only fires on creation, never on update
    _notify_large_transaction(db, db_transaction, category)

    if transaction.type == TransactionType.EXPENSE:
        notify_expense_written(db, transaction.user_id, transaction.category_id)

    return db_transaction


def get_transaction(db: Session, user_id: str, transaction_id: str) -> Transaction:
    transaction = db.query(Transaction).filter(
        Transaction.id == transaction_id,
        Transaction.user_id == user_id
    ).first()
    if not transaction:
        raise NotFoundError(f"Transaction with id {transaction_id} not found")
    return transaction


def update_transaction(db: Session, user_id: str, transaction_id: str,
                       transaction_update: TransactionUpdate) -> Transaction:
    """Update a transaction and recompute the budgets on both sides of the change"""
    transaction = get_transaction(db, user_id, transaction_id)

    before = (TransactionType(transaction.type), transaction.category_id)
    patch = {
        key: value for key, value in transaction_update.model_dump(exclude_unset=True).items()
        if value is not None
    }

    new_type = patch.get("type", before[0])
    new_category_id = patch.get("category_id", before[1])
    category = _get_user_category(db, user_id, new_category_id)
    _validate_transaction(patch.get("amount", transaction.amount), new_type, category)

    for key, value in patch.items():
        setattr(transaction, key, value)
    db.commit()
    db.refresh(transaction)

    affected = {category_id for tx_type, category_id in (before, (new_type, new_category_id))
                if tx_type == TransactionType.EXPENSE}
    for category_id in affected:
        notify_expense_written(db, user_id, category_id)

    return transaction


def delete_transaction(db: Session, user_id: str, transaction_id: str) -> Dict[str, bool]:
    transaction = get_transaction(db, user_id, transaction_id)
    transaction_type = TransactionType(transaction.type)
    category_id = transaction.category_id

    db.delete(transaction)
    db.commit()

    if transaction_type == TransactionType.EXPENSE:
        notify_expense_written(db, user_id, category_id)

    return {"success": True}
