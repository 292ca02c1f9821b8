import calendar
import logging
import threading
import weakref
from datetime import datetime, date, timedelta
from decimal import Decimal, InvalidOperation
from typing import List, Dict, Any, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.app.config import get_settings
from backend.app.exceptions import ValidationError, NotFoundError, TransientDependencyError
from backend.app.models.models import Budget, BudgetPeriod, BudgetStatus, Notification
from backend.app.schemas.budgets import BudgetCreate, BudgetUpdate, BudgetSpend
from backend.app.services.alert_service import evaluate_budget_alert
from backend.app.services.notification_service import create_notification
from backend.app.services.preference_service import is_notification_enabled
from backend.app.services.spend_calculator import compute_budget_spend

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 100
CENT = Decimal("0.01")

# Changing any of these invalidates the alert already sent for the current status
ALERT_RESET_FIELDS = ("amount", "start_date", "end_date", "alert_threshold", "category_ids")

# Recompute -> persist -> alert is serialized per budget id within this process.
# Entries live only while some caller holds the lock object.
_budget_locks: "weakref.WeakValueDictionary[str, threading.Lock]" = weakref.WeakValueDictionary()
_budget_locks_guard = threading.Lock()


def _lock_for(budget_id: str) -> threading.Lock:
    with _budget_locks_guard:
        lock = _budget_locks.get(budget_id)
        if lock is None:
            lock = _budget_locks[budget_id] = threading.Lock()
        return lock


def _validate_budget_fields(values: Dict[str, Any]) -> Dict[str, Any]:
    """Check a complete set of budget fields, returning them normalized"""
    name = values.get("name")
    if name is None or not str(name).strip():
        raise ValidationError("Budget name is required")
    name = str(name).strip()
    if len(name) > MAX_NAME_LENGTH:
        raise ValidationError(f"Budget name cannot exceed {MAX_NAME_LENGTH} characters")

    if values.get("amount") is None:
        raise ValidationError("Budget amount is required")
    try:
        amount = Decimal(str(values["amount"]))
    except InvalidOperation:
        raise ValidationError("Budget amount must be a number")
    if not amount.is_finite() or amount <= 0:
        raise ValidationError("Budget amount must be greater than 0")
    try:
        sub_cent = amount != amount.quantize(CENT)
    except InvalidOperation:
        raise ValidationError("Budget amount is too large")
    # Stored as Numeric(15, 2); anything finer would be rounded away on write
    if sub_cent:
        raise ValidationError("Budget amount cannot have more than 2 decimal places")

    period = values.get("period")
    valid_periods = [p.value for p in BudgetPeriod]
    if period not in valid_periods:
        raise ValidationError(f"Invalid period. Must be one of: {', '.join(valid_periods)}")

    start_date = values.get("start_date")
    end_date = values.get("end_date")
    if start_date is None or end_date is None:
        raise ValidationError("Start date and end date are required")
    if end_date <= start_date:
        raise ValidationError("End date must be after start date")

    alert_threshold = Decimal(str(values.get("alert_threshold", 80)))
    if alert_threshold < 0 or alert_threshold > 100:
        raise ValidationError("Alert threshold must be between 0 and 100")

    category_ids = values.get("category_ids") or []

    return {
        **values,
        "name": name,
        "amount": amount,
        "period": period,
        "alert_threshold": alert_threshold,
        "category_ids": [str(category_id) for category_id in category_ids]
    }


def _apply_spend(budget: Budget, spend: BudgetSpend) -> None:
    budget.spent = spend.spent
    budget.remaining = spend.remaining
    budget.percentage_used = spend.percentage_used
    budget.status = spend.status.value
    budget.last_calculated_at = datetime.utcnow()


def _recompute(db: Session, budget: Budget) -> Optional[BudgetSpend]:
    """Recompute and persist a budget's spend snapshot.

    Returns None when the ledger or the database fails; the failure is logged
    and the previously stored snapshot stays in place.
    """
    try:
        spend = compute_budget_spend(db, budget)
        _apply_spend(budget, spend)
        db.commit()
    except TransientDependencyError as e:
        logger.warning("Skipping recompute of budget %s: %s", budget.id, e)
        return None
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Could not persist spend snapshot for budget %s", budget.id)
        return None

    logger.debug("Budget %s recomputed: spent=%s (%.1f%%) status=%s",
                 budget.id, spend.spent, spend.percentage_used, spend.status.value)
    return spend


def _emit_budget_alert(db: Session, budget: Budget, spend: BudgetSpend) -> Optional[Notification]:
    """Run the evaluator, then the dedup and preference gates, then emit"""
    draft = evaluate_budget_alert(budget, spend)
    if draft is None:
        if budget.last_alert_type is not None:
            budget.last_alert_type = None
            db.commit()
        return None

    if get_settings().alert_dedup_enabled and budget.last_alert_type == draft.type.value:
        logger.debug("%s already sent for budget %s", draft.type.value, budget.id)
        return None

    if not is_notification_enabled(db, budget.user_id, draft.type):
        logger.info("%s notification skipped for budget %s (disabled by user)", draft.type.value, budget.id)
        return None

    notification = create_notification(db, budget.user_id, draft)
    budget.last_alert_type = draft.type.value
    db.commit()
    return notification


def _sync_budget(db: Session, budget: Budget, alert: bool = True) -> Budget:
    """Bring a budget's snapshot in line with the ledger and optionally alert.

    Failures in this tail never propagate: the write that triggered it has
    already been committed.
    """
    with _lock_for(budget.id):
        spend = _recompute(db, budget)
        if spend is None or not alert:
            return budget

        try:
            _emit_budget_alert(db, budget, spend)
        except TransientDependencyError as e:
            logger.warning("Budget alert for %s not delivered: %s", budget.id, e)
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Error creating budget notification for %s", budget.id)

    return budget


def create_budget(db: Session, budget_data: BudgetCreate) -> Budget:
    """Create a budget, compute its initial spend and check for alerts"""
    values = _validate_budget_fields(budget_data.model_dump())

    db_budget = Budget(
        user_id=values["user_id"],
        name=values["name"],
        amount=values["amount"],
        period=values["period"],
        start_date=values["start_date"],
        end_date=values["end_date"],
        category_ids=values["category_ids"],
        alert_threshold=values["alert_threshold"],
        alert_enabled=values["alert_enabled"],
        repeat_automatically=values["repeat_automatically"]
    )
    db.add(db_budget)
    db.commit()
    db.refresh(db_budget)

    logger.info("Created budget %s (%s) for user %s", db_budget.id, db_budget.name, db_budget.user_id)

    return _sync_budget(db, db_budget)


def get_budgets(db: Session, user_id: str, period: Optional[str] = None,
                active: Optional[bool] = True, category_id: Optional[str] = None) -> List[Budget]:
    """Get a user's budgets, newest period first. Only active budgets unless asked otherwise."""
    query = db.query(Budget).filter(Budget.user_id == user_id)

    if active is not None:
        query = query.filter(Budget.is_active.is_(active))
    if period:
        query = query.filter(Budget.period == period)

    budgets = query.order_by(Budget.start_date.desc(), Budget.created_at.desc()).all()

    # Category scope lives in a JSON column, so membership is checked here
    if category_id:
        budgets = [budget for budget in budgets if category_id in (budget.category_ids or [])]

    return budgets


def get_active_budgets(db: Session, user_id: str, on_date: Optional[date] = None) -> List[Budget]:
    """Active budgets, optionally only those whose period contains on_date"""
    query = db.query(Budget).filter(Budget.user_id == user_id, Budget.is_active.is_(True))
    if on_date is not None:
        query = query.filter(Budget.start_date <= on_date, Budget.end_date >= on_date)
    return query.order_by(Budget.created_at.desc()).all()


def get_budget(db: Session, user_id: str, budget_id: str) -> Budget:
    budget = db.query(Budget).filter(Budget.id == budget_id, Budget.user_id == user_id).first()
    if not budget:
        raise NotFoundError("Budget not found")
    return budget


def update_budget(db: Session, user_id: str, budget_id: str, budget_update: BudgetUpdate) -> Budget:
    """Apply a partial update, re-validate the merged budget, then recompute and re-alert"""
    budget = get_budget(db, user_id, budget_id)

    patch = {
        key: value for key, value in budget_update.model_dump(exclude_unset=True).items()
        if value is not None
    }

    current = {
        "name": budget.name,
        "amount": budget.amount,
        "period": budget.period,
        "start_date": budget.start_date,
        "end_date": budget.end_date,
        "category_ids": list(budget.category_ids or []),
        "alert_threshold": budget.alert_threshold,
        "alert_enabled": budget.alert_enabled,
        "repeat_automatically": budget.repeat_automatically,
        "is_active": budget.is_active
    }
    merged = _validate_budget_fields({**current, **patch})

    reset_alert = any(
        key in patch and merged[key] != current[key] for key in ALERT_RESET_FIELDS
    )

    for key in patch:
        setattr(budget, key, merged[key])
    if reset_alert:
        budget.last_alert_type = None

    db.commit()
    db.refresh(budget)

    logger.info("Updated budget %s (%s)", budget.id, ", ".join(sorted(patch)) or "no changes")

    return _sync_budget(db, budget, alert=budget.is_active)


def delete_budget(db: Session, user_id: str, budget_id: str, hard: bool = False) -> Dict[str, bool]:
    """Soft delete (deactivate) a budget, or remove it entirely when hard is set"""
    budget = get_budget(db, user_id, budget_id)

    if hard:
        db.delete(budget)
        logger.info("Permanently deleted budget %s", budget_id)
    else:
        budget.is_active = False
        logger.info("Deactivated budget %s", budget_id)

    db.commit()
    return {"success": True}


def refresh_budget(db: Session, user_id: str, budget_id: str) -> Budget:
    budget = get_budget(db, user_id, budget_id)
    return _sync_budget(db, budget, alert=budget.is_active)


def refresh_all_budgets(db: Session, user_id: str) -> int:
    """Recompute every active budget of a user, returning how many were refreshed"""
    budgets = get_active_budgets(db, user_id)
    for budget in budgets:
        _sync_budget(db, budget)
    return len(budgets)


def get_budget_status_summary(db: Session, user_id: str) -> Dict[str, Any]:
    """Group a user's active budgets by status after recomputing their spend"""
    budgets = get_active_budgets(db, user_id)

    grouped = {status: [] for status in BudgetStatus}
    for budget in budgets:
        _sync_budget(db, budget, alert=False)
        grouped[BudgetStatus(budget.status)].append(budget)

    return {
        "summary": {
            "total": len(budgets),
            "ok": len(grouped[BudgetStatus.OK]),
            "warning": len(grouped[BudgetStatus.WARNING]),
            "exceeded": len(grouped[BudgetStatus.EXCEEDED])
        },
        "budgets": grouped
    }


def notify_expense_written(db: Session, user_id: str, category_id: str) -> int:
    """Recompute and re-alert every active budget an expense in category_id counts toward.

    Called after expense writes. Never raises: a failure here must not fail
    the transaction write that triggered it. Returns the number of budgets
    touched.
    """
    try:
        budgets = [
            budget for budget in get_active_budgets(db, user_id)
            if not budget.category_ids or category_id in budget.category_ids
        ]
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Could not load budgets for user %s after expense write", user_id)
        return 0

    logger.debug("Expense in category %s affects %d budget(s) for user %s",
                 category_id, len(budgets), user_id)

    for budget in budgets:
        _sync_budget(db, budget)
    return len(budgets)


def _shift_months(value: date, months: int) -> date:
    """Move a date by whole months. Month-end dates stay on the month end."""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    if value.day == calendar.monthrange(value.year, value.month)[1]:
        return date(year, month, last_day)
    day = min(value.day, last_day)
    return date(year, month, day)


def next_period_dates(budget: Budget) -> Optional[tuple]:
    """Start and end dates of the period following a budget's, or None for custom periods"""
    period = BudgetPeriod(budget.period)
    if period == BudgetPeriod.DAILY:
        delta = timedelta(days=1)
        return budget.start_date + delta, budget.end_date + delta
    if period == BudgetPeriod.WEEKLY:
        delta = timedelta(days=7)
        return budget.start_date + delta, budget.end_date + delta
    if period == BudgetPeriod.MONTHLY:
        return _shift_months(budget.start_date, 1), _shift_months(budget.end_date, 1)
    if period == BudgetPeriod.YEARLY:
        return _shift_months(budget.start_date, 12), _shift_months(budget.end_date, 12)
    return None


def roll_over_recurring_budgets(db: Session, user_id: str, today: Optional[date] = None) -> List[Budget]:
    """Create next-period copies of a user's expired budgets marked repeat_automatically"""
    today = today or date.today()

    expired = db.query(Budget).filter(
        Budget.user_id == user_id,
        Budget.is_active.is_(True),
        Budget.repeat_automatically.is_(True),
        Budget.end_date < today
    ).all()

    created = []
    for budget in expired:
        dates = next_period_dates(budget)
        if dates is None:
            continue

        successor = Budget(
            user_id=budget.user_id,
            name=budget.name,
            amount=budget.amount,
            period=budget.period,
            start_date=dates[0],
            end_date=dates[1],
            category_ids=list(budget.category_ids or []),
            alert_threshold=budget.alert_threshold,
            alert_enabled=budget.alert_enabled,
            repeat_automatically=True
        )
        db.add(successor)
        # The successor carries the flag forward; the expired budget is done repeating
        budget.repeat_automatically = False
        created.append(successor)

    db.commit()

    for successor in created:
        db.refresh(successor)
        logger.info("Rolled budget %s over to %s - %s", successor.name, successor.start_date, successor.end_date)
        _sync_budget(db, successor)

    return created
