from uuid import uuid4
from datetime import datetime
from decimal import Decimal
from enum import Enum

from sqlalchemy import (
    Column, String, DateTime, Numeric, Boolean, ForeignKey, Enum as PgEnum, JSON, Date, UniqueConstraint, Index
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()

# --- ENUMS ---

class BudgetPeriod(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"
    CUSTOM = "custom"

class BudgetStatus(str, Enum):
    OK = "ok"
    WARNING = "warning"
    EXCEEDED = "exceeded"

class TransactionType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"

class NotificationType(str, Enum):
    BUDGET_EXCEEDED = "BUDGET_EXCEEDED"
    BUDGET_WARNING = "BUDGET_WARNING"
    BUDGET_ON_TRACK = "BUDGET_ON_TRACK"
    RECURRING_UPCOMING = "RECURRING_UPCOMING"
    RECURRING_MISSED = "RECURRING_MISSED"
    WEEKLY_SUMMARY = "WEEKLY_SUMMARY"
    MONTHLY_SUMMARY = "MONTHLY_SUMMARY"
    GOAL_ACHIEVED = "GOAL_ACHIEVED"
    LARGE_TRANSACTION = "LARGE_TRANSACTION"
    SPENDING_SPIKE = "SPENDING_SPIKE"
    SAVINGS_TIP = "SAVINGS_TIP"
    ACHIEVEMENT = "ACHIEVEMENT"
    SYSTEM = "SYSTEM"

class NotificationPriority(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"

class ReferenceType(str, Enum):
    BUDGET = "BUDGET"
    TRANSACTION = "TRANSACTION"
    CATEGORY = "CATEGORY"
    NONE = "NONE"

# Types a user can switch on/off in notification settings
CONFIGURABLE_NOTIFICATION_TYPES = (
    NotificationType.BUDGET_EXCEEDED,
    NotificationType.BUDGET_WARNING,
    NotificationType.BUDGET_ON_TRACK,
    NotificationType.LARGE_TRANSACTION,
)

# --- SQLALCHEMY MODELS ---

class Category(Base):
    __tablename__ = "categories"

    id = Column(String, primary_key=True, default=lambda: str(uuid4()))
    user_id = Column(String, nullable=False, index=True)
    name = Column(String(50), nullable=False)
    type = Column(PgEnum(TransactionType), nullable=False)
    icon = Column(String, nullable=True)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    transactions = relationship("Transaction", back_populates="category")

class Transaction(Base):
    __tablename__ = "transactions"

    id = Column(String, primary_key=True, default=lambda: str(uuid4()))
    user_id = Column(String, nullable=False, index=True)
    amount = Column(Numeric(15, 2), nullable=False)
    type = Column(PgEnum(TransactionType), nullable=False)
    category_id = Column(String, ForeignKey("categories.id"), nullable=False)
    description = Column(String(500), nullable=True)
    date = Column(Date, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    category = relationship("Category", back_populates="transactions")

    __table_args__ = (
        Index("ix_transactions_user_type_date", "user_id", "type", "date"),
    )

class Budget(Base):
    __tablename__ = "budgets"

    id = Column(String, primary_key=True, default=lambda: str(uuid4()))
    user_id = Column(String, nullable=False, index=True)
    name = Column(String(100), nullable=False)
    amount = Column(Numeric(15, 2), nullable=False)
    period = Column(String, nullable=False, default=BudgetPeriod.MONTHLY.value)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    # Category ids are weak references; an empty list covers every expense category
    category_ids = Column(JSON, nullable=False, default=list)
    alert_threshold = Column(Numeric(5, 2), nullable=False, default=Decimal("80"))
    alert_enabled = Column(Boolean, nullable=False, default=True)
    is_active = Column(Boolean, nullable=False, default=True)
    repeat_automatically = Column(Boolean, nullable=False, default=False)

    # Spend snapshot, written only by the budget service after a recompute
    spent = Column(Numeric(15, 2), nullable=False, default=Decimal("0"))
    remaining = Column(Numeric(15, 2), nullable=False, default=Decimal("0"))
    percentage_used = Column(Numeric(12, 4), nullable=False, default=Decimal("0"))
    status = Column(String, nullable=False, default=BudgetStatus.OK.value)
    last_calculated_at = Column(DateTime, nullable=True)
    last_alert_type = Column(String, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        Index("ix_budgets_user_active", "user_id", "is_active"),
        Index("ix_budgets_user_start", "user_id", "start_date"),
    )

    @property
    def needs_alert(self) -> bool:
        if self.percentage_used is None or self.alert_threshold is None:
            return False
        return bool(self.alert_enabled) and self.percentage_used >= self.alert_threshold

class Notification(Base):
    __tablename__ = "notifications"

    id = Column(String, primary_key=True, default=lambda: str(uuid4()))
    user_id = Column(String, nullable=False, index=True)
    type = Column(String, nullable=False)
    title = Column(String, nullable=False)
    message = Column(String, nullable=False)
    priority = Column(String, nullable=False, default=NotificationPriority.MEDIUM.value)
    reference_type = Column(String, nullable=False, default=ReferenceType.NONE.value)
    reference_id = Column(String, nullable=True)
    notification_metadata = Column(JSON, nullable=False, default=dict)
    is_read = Column(Boolean, nullable=False, default=False)
    read_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    __table_args__ = (
        Index("ix_notifications_user_read", "user_id", "is_read"),
    )

class NotificationPreference(Base):
    """Per-user switch for one notification type. A missing row means enabled."""
    __tablename__ = "notification_preferences"

    id = Column(String, primary_key=True, default=lambda: str(uuid4()))
    user_id = Column(String, nullable=False, index=True)
    notification_type = Column(String(50), nullable=False)
    is_enabled = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("user_id", "notification_type", name="uq_notification_preference"),
    )
