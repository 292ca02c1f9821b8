from decimal import Decimal

from sqlalchemy.orm import Session

from backend.app.models.models import Budget, BudgetStatus
from backend.app.schemas.budgets import BudgetSpend
from backend.app.services.ledger_service import sum_expenses

HUNDRED = Decimal("100")


def classify_status(percentage_used: Decimal, alert_threshold: Decimal) -> BudgetStatus:
    if percentage_used >= HUNDRED:
        return BudgetStatus.EXCEEDED
    if percentage_used >= alert_threshold:
        return BudgetStatus.WARNING
    return BudgetStatus.OK


def summarize_spend(amount: Decimal, spent: Decimal, alert_threshold: Decimal) -> BudgetSpend:
    """Derive remaining, percentage used and status from a spent total.

    Remaining never goes negative; overspend shows up as a percentage above
    100. The percentage is left unrounded.
    """
    amount = Decimal(amount)
    spent = Decimal(spent)
    remaining = max(amount - spent, Decimal("0"))
    percentage_used = (spent / amount) * HUNDRED if amount > 0 else Decimal("0")

    return BudgetSpend(
        spent=spent,
        remaining=remaining,
        percentage_used=percentage_used,
        status=classify_status(percentage_used, Decimal(alert_threshold))
    )


def compute_budget_spend(db: Session, budget: Budget) -> BudgetSpend:
    """Recompute a budget's spend from the ledger. Does not modify the budget."""
    spent = sum_expenses(
        db,
        budget.user_id,
        budget.category_ids or [],
        budget.start_date,
        budget.end_date
    )
    return summarize_spend(budget.amount, spent, budget.alert_threshold)
