from decimal import Decimal
from typing import Optional

from backend.app.config import get_settings
from backend.app.models.models import (
    Budget, Category, Transaction, TransactionType,
    NotificationType, NotificationPriority, ReferenceType
)
from backend.app.schemas.budgets import BudgetSpend
from backend.app.schemas.notifications import NotificationCreate
from backend.app.services.spend_calculator import HUNDRED


def format_amount(amount) -> str:
    return f"{Decimal(amount):,.2f}"


def _budget_metadata(budget: Budget, spent: Decimal, percentage_used: Decimal) -> dict:
    return {
        "budgetName": budget.name,
        "budgetAmount": float(budget.amount),
        "spent": float(spent),
        "percentageUsed": f"{percentage_used:.1f}"
    }


def evaluate_budget_alert(budget: Budget, spend: Optional[BudgetSpend] = None) -> Optional[NotificationCreate]:
    """Decide which alert, if any, a budget's current spend calls for.

    Bands are checked in order: exceeded (>= 100%), warning (>= alert
    threshold), on track (< on_track_ceiling, 50% by default). Anything in
    between produces no alert. Stateless: the same budget and spend always
    yield the same draft. Uses the budget's stored snapshot when no fresh
    spend is given.
    """
    if not budget.alert_enabled:
        return None

    if spend is None:
        spent = Decimal(budget.spent)
        percentage_used = Decimal(budget.percentage_used)
    else:
        spent = spend.spent
        percentage_used = spend.percentage_used

    amount = Decimal(budget.amount)
    alert_threshold = Decimal(budget.alert_threshold)
    on_track_ceiling = Decimal(str(get_settings().on_track_ceiling))
    metadata = _budget_metadata(budget, spent, percentage_used)

    if percentage_used >= HUNDRED:
        over_amount = spent - amount
        metadata["overAmount"] = float(over_amount)
        return NotificationCreate(
            type=NotificationType.BUDGET_EXCEEDED,
            title=f"{budget.name} budget exceeded",
            message=f"You've exceeded your {budget.name} budget by {format_amount(over_amount)}",
            priority=NotificationPriority.HIGH,
            reference_type=ReferenceType.BUDGET,
            reference_id=budget.id,
            metadata=metadata
        )

    if percentage_used >= alert_threshold:
        metadata["alertThreshold"] = float(alert_threshold)
        return NotificationCreate(
            type=NotificationType.BUDGET_WARNING,
            title=f"{budget.name} budget warning",
            message=(
                f"You've used {percentage_used:.0f}% of your {budget.name} budget "
                f"({format_amount(spent)}/{format_amount(amount)})"
            ),
            priority=NotificationPriority.MEDIUM,
            reference_type=ReferenceType.BUDGET,
            reference_id=budget.id,
            metadata=metadata
        )

    if percentage_used < on_track_ceiling:
        return NotificationCreate(
            type=NotificationType.BUDGET_ON_TRACK,
            title=f"{budget.name} budget on track",
            message=f"Great job! You've only used {percentage_used:.0f}% of your {budget.name} budget",
            priority=NotificationPriority.LOW,
            reference_type=ReferenceType.BUDGET,
            reference_id=budget.id,
            metadata=metadata
        )

    return None


def build_large_transaction_alert(transaction: Transaction, category: Category) -> Optional[NotificationCreate]:
    """Draft a LARGE_TRANSACTION alert when the amount reaches the configured threshold"""
    threshold = Decimal(str(get_settings().large_transaction_threshold))
    amount = Decimal(transaction.amount)
    if amount < threshold:
        return None

    transaction_type = TransactionType(transaction.type)
    label = "Expense" if transaction_type == TransactionType.EXPENSE else "Income"

    return NotificationCreate(
        type=NotificationType.LARGE_TRANSACTION,
        title="Large transaction detected",
        message=f"{label} of {format_amount(amount)} on {category.name}",
        priority=NotificationPriority.MEDIUM,
        reference_type=ReferenceType.TRANSACTION,
        reference_id=transaction.id,
        metadata={
            "amount": float(amount),
            "type": transaction_type.value,
            "categoryName": category.name,
            "description": transaction.description
        }
    )
