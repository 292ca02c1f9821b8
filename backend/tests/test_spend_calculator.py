import pytest
from datetime import date
from decimal import Decimal
from uuid import uuid4

from backend.app.models.models import Budget, BudgetStatus, Transaction, TransactionType
from backend.app.services.ledger_service import sum_expenses, list_expenses
from backend.app.services.spend_calculator import summarize_spend, compute_budget_spend, classify_status

OCTOBER_START = date(2025, 10, 1)
OCTOBER_END = date(2025, 10, 31)
MID_OCTOBER = date(2025, 10, 15)


def _record(db_session, user_id, category, amount, on=MID_OCTOBER):
    transaction = Transaction(
        id=str(uuid4()),
        user_id=user_id,
        amount=Decimal(str(amount)),
        type=category.type,
        category_id=category.id,
        date=on
    )
    db_session.add(transaction)
    db_session.commit()
    return transaction


def _budget(user_id, category_ids=None, amount="1000", alert_threshold="80"):
    return Budget(
        id=str(uuid4()),
        user_id=user_id,
        name="Test",
        amount=Decimal(amount),
        period="monthly",
        start_date=OCTOBER_START,
        end_date=OCTOBER_END,
        category_ids=category_ids or [],
        alert_threshold=Decimal(alert_threshold)
    )


# Pure calculations
@pytest.mark.parametrize("amount,spent,expected_remaining", [
    ("1000", "0", "1000"),
    ("1000", "250.50", "749.50"),
    ("1000", "1000", "0"),
    ("1000", "1500", "0"),
])
def test_remaining_never_negative(amount, spent, expected_remaining):
    spend = summarize_spend(Decimal(amount), Decimal(spent), Decimal("80"))
    assert spend.remaining == Decimal(expected_remaining)
    assert spend.remaining == max(Decimal(amount) - Decimal(spent), Decimal("0"))


@pytest.mark.parametrize("spent,threshold,expected", [
    ("0", "80", BudgetStatus.OK),
    ("799.99", "80", BudgetStatus.OK),
    ("800", "80", BudgetStatus.WARNING),
    ("999.99", "80", BudgetStatus.WARNING),
    ("1000", "80", BudgetStatus.EXCEEDED),
    ("1500", "80", BudgetStatus.EXCEEDED),
    ("0", "0", BudgetStatus.WARNING),
    ("999", "100", BudgetStatus.OK),
])
def test_status_bands(spent, threshold, expected):
    spend = summarize_spend(Decimal("1000"), Decimal(spent), Decimal(threshold))
    assert spend.status == expected


def test_percentage_is_unrounded():
    spend = summarize_spend(Decimal("300"), Decimal("100"), Decimal("80"))
    assert spend.percentage_used > Decimal("33.33")
    assert spend.percentage_used < Decimal("33.34")


def test_overspend_shows_as_percentage_above_100():
    spend = summarize_spend(Decimal("1000000"), Decimal("1200000"), Decimal("80"))
    assert spend.percentage_used == Decimal("120")
    assert spend.remaining == 0
    assert spend.status == BudgetStatus.EXCEEDED


def test_zero_amount_yields_zero_percentage():
    spend = summarize_spend(Decimal("0"), Decimal("10"), Decimal("80"))
    assert spend.percentage_used == 0


def test_classify_status_exceeded_takes_precedence():
    assert classify_status(Decimal("100"), Decimal("100")) == BudgetStatus.EXCEEDED


# Ledger-backed calculations
def test_only_expenses_count(db_session, test_user_id, groceries, salary):
    _record(db_session, test_user_id, groceries, 200)
    _record(db_session, test_user_id, salary, 5000)

    spend = compute_budget_spend(db_session, _budget(test_user_id))

    assert spend.spent == Decimal("200")
    assert spend.percentage_used == Decimal("20")
    assert spend.status == BudgetStatus.OK


def test_date_range_is_inclusive(db_session, test_user_id, groceries):
    _record(db_session, test_user_id, groceries, 10, on=OCTOBER_START)
    _record(db_session, test_user_id, groceries, 20, on=OCTOBER_END)
    _record(db_session, test_user_id, groceries, 40, on=date(2025, 9, 30))
    _record(db_session, test_user_id, groceries, 80, on=date(2025, 11, 1))

    assert sum_expenses(db_session, test_user_id, [], OCTOBER_START, OCTOBER_END) == Decimal("30")


def test_category_scope_filters_spend(db_session, test_user_id, groceries, dining):
    _record(db_session, test_user_id, groceries, 100)
    _record(db_session, test_user_id, dining, 900)

    scoped = compute_budget_spend(db_session, _budget(test_user_id, category_ids=[groceries.id]))
    everything = compute_budget_spend(db_session, _budget(test_user_id))

    assert scoped.spent == Decimal("100")
    assert everything.spent == Decimal("1000")


def test_unknown_category_ids_match_nothing(db_session, test_user_id, groceries):
    _record(db_session, test_user_id, groceries, 100)

    spend = compute_budget_spend(db_session, _budget(test_user_id, category_ids=["deleted-category"]))

    assert spend.spent == Decimal("0")
    assert spend.status == BudgetStatus.OK


def test_other_users_transactions_are_ignored(db_session, test_user_id, other_user_id, groceries):
    _record(db_session, other_user_id, groceries, 700)

    assert sum_expenses(db_session, test_user_id, [], OCTOBER_START, OCTOBER_END) == Decimal("0")


def test_list_expenses_matches_sum(db_session, test_user_id, groceries, salary):
    _record(db_session, test_user_id, groceries, 10, on=date(2025, 10, 2))
    _record(db_session, test_user_id, groceries, 15, on=date(2025, 10, 20))
    _record(db_session, test_user_id, salary, 1000)

    expenses = list_expenses(db_session, test_user_id, [groceries.id], OCTOBER_START, OCTOBER_END)

    assert [tx.date for tx in expenses] == [date(2025, 10, 20), date(2025, 10, 2)]
    assert all(tx.type == TransactionType.EXPENSE for tx in expenses)
    assert sum(tx.amount for tx in expenses) == sum_expenses(
        db_session, test_user_id, [groceries.id], OCTOBER_START, OCTOBER_END
    )
