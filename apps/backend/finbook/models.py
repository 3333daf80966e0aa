from __future__ import annotations

import uuid
import datetime as dt
from datetime import datetime
from decimal import Decimal
from zoneinfo import ZoneInfo
from enum import Enum
from typing import Any

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    JSON,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.ext.mutable import MutableList

from .core.config import settings
from .core.database import Base
from .utils.entry_kind import (
    EntryKind,
    EntryStatusColumn,
    EntryTypeColumn,
    display_status,
    from_columns,
    to_columns,
)


try:
    LOCAL_ZONE = ZoneInfo(getattr(settings, "TIMEZONE", "UTC"))
except Exception:
    LOCAL_ZONE = ZoneInfo("UTC")


def now_local_naive() -> datetime:
    """Return naive datetime normalized to configured local timezone."""
    return datetime.now(LOCAL_ZONE).replace(tzinfo=None)


def today_local() -> dt.date:
    return now_local_naive().date()


def _new_entry_id() -> str:
    return uuid.uuid4().hex


def _enum_values(enum_cls: type[Enum]) -> list[str]:
    return [member.value for member in enum_cls]


class PaymentMode(str, Enum):
    CASH = "Cash"
    BANK_TRANSFER = "Bank Transfer"
    CREDIT_CARD = "Credit Card"
    UPI = "UPI"
    CHECK = "Check"


class Plan(str, Enum):
    FREE = "Free"
    PRO = "Pro"
    ENTERPRISE = "Enterprise"

    @property
    def is_pro_tier(self) -> bool:
        return self in (Plan.PRO, Plan.ENTERPRISE)


class BillingCycle(str, Enum):
    MONTHLY = "Monthly"
    YEARLY = "Yearly"


class Currency(str, Enum):
    USD = "USD"
    INR = "INR"
    GBP = "GBP"
    KWD = "KWD"
    SAR = "SAR"
    CNY = "CNY"


CURRENCY_SYMBOLS: dict[Currency, str] = {
    Currency.USD: "$",
    Currency.INR: "₹",
    Currency.GBP: "£",
    Currency.KWD: "KD",
    Currency.SAR: "﷼",
    Currency.CNY: "¥",
}


class ReminderType(str, Enum):
    WEEKLY_REPORT = "weekly_report"
    MONTHLY_REPORT = "monthly_report"
    AUTO_REMINDER = "auto_reminder"


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(DateTime, default=now_local_naive, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=now_local_naive, onupdate=now_local_naive, nullable=False)


class User(Base, TimestampMixin):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False)
    password_hash: Mapped[str | None] = mapped_column(String(255), nullable=True)
    is_active: Mapped[bool] = mapped_column(default=True, nullable=False)

    profile: Mapped["UserProfile"] = relationship(back_populates="user", uselist=False, cascade="all, delete-orphan")
    entries: Mapped[list["Entry"]] = relationship(back_populates="user", cascade="all, delete-orphan")


class UserProfile(Base, TimestampMixin):
    __tablename__ = "profiles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    name: Mapped[str | None] = mapped_column(String(100))
    avatar: Mapped[str | None] = mapped_column(String(500))
    plan: Mapped[Plan] = mapped_column(
        SAEnum(Plan, name="plan", values_callable=_enum_values), default=Plan.FREE, nullable=False
    )
    billing_cycle: Mapped[BillingCycle] = mapped_column(
        SAEnum(BillingCycle, name="billing_cycle", values_callable=_enum_values),
        default=BillingCycle.MONTHLY,
        nullable=False,
    )
    plan_started_at: Mapped[datetime | None] = mapped_column(DateTime)
    currency: Mapped[Currency] = mapped_column(
        SAEnum(Currency, name="currency", values_callable=_enum_values), default=Currency.USD, nullable=False
    )
    receiving_accounts: Mapped[list[dict[str, Any]]] = mapped_column(
        MutableList.as_mutable(JSON), default=list, nullable=False
    )
    payment_methods: Mapped[list[dict[str, Any]]] = mapped_column(
        MutableList.as_mutable(JSON), default=list, nullable=False
    )

    user: Mapped[User] = relationship(back_populates="profile")

    @property
    def is_pro(self) -> bool:
        return Plan(self.plan).is_pro_tier


class Entry(Base, TimestampMixin):
    """A single financial record.

    ``type``/``status`` hold the canonical column pair; use :attr:`kind` to
    read or write the logical entry kind.
    """

    __tablename__ = "entries"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=_new_entry_id)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    due_date: Mapped[dt.date | None] = mapped_column(Date)
    payment_mode: Mapped[PaymentMode] = mapped_column(
        SAEnum(PaymentMode, name="payment_mode", values_callable=_enum_values), nullable=False
    )
    type: Mapped[str] = mapped_column(String(16), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False)
    client_email: Mapped[str | None] = mapped_column(String(320))
    last_manual_reminder_sent: Mapped[datetime | None] = mapped_column(DateTime)
    last_reminder_sent_at: Mapped[datetime | None] = mapped_column(DateTime)

    user: Mapped[User] = relationship(back_populates="entries")

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_entry_amount_positive"),
        CheckConstraint("type IN ('income', 'expense')", name="ck_entry_type"),
        CheckConstraint("status IN ('pending', 'completed')", name="ck_entry_status"),
        Index("ix_entries_user_date", "user_id", "date"),
        Index("ix_entries_user_created", "user_id", "created_at"),
    )

    @property
    def kind(self) -> EntryKind:
        return from_columns(self.type, self.status)

    @kind.setter
    def kind(self, value: EntryKind | str) -> None:
        type_col, status_col = to_columns(value)
        self.type = type_col.value
        self.status = status_col.value

    @property
    def display_status(self) -> str:
        return display_status(self.kind)


class ReminderLog(Base):
    """Append-only record of a report/reminder delivered for a period."""

    __tablename__ = "payment_reminders"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    type: Mapped[ReminderType] = mapped_column(
        SAEnum(ReminderType, name="reminder_type", values_callable=_enum_values), nullable=False
    )
    period_key: Mapped[str] = mapped_column(String(64), nullable=False)
    entry_id: Mapped[str | None] = mapped_column(ForeignKey("entries.id", ondelete="SET NULL"))
    sent_at: Mapped[datetime] = mapped_column(DateTime, default=now_local_naive, nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "type", "period_key", name="uq_reminder_period"),
    )


__all__ = [
    "Base",
    "BillingCycle",
    "CURRENCY_SYMBOLS",
    "Currency",
    "Entry",
    "EntryKind",
    "EntryStatusColumn",
    "EntryTypeColumn",
    "Plan",
    "PaymentMode",
    "ReminderLog",
    "ReminderType",
    "User",
    "UserProfile",
    "now_local_naive",
    "today_local",
]
