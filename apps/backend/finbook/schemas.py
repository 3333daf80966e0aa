from __future__ import annotations

import datetime as dt
from datetime import datetime
from decimal import Decimal
from typing import Any, Literal, Optional

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    field_validator,
    model_validator,
)

from .models import (
    BillingCycle,
    Currency,
    Entry,
    EntryKind,
    PaymentMode,
    Plan,
    UserProfile,
)
from .utils.entry_kind import is_pending
from .utils.validators import validate_display_name, validate_password


DUE_DATE_REQUIRED = "Due date is required for pending entries"


def _strip_or_none(value: Any) -> Any:
    if isinstance(value, str):
        trimmed = value.strip()
        return trimmed or None
    return value


# ---- Auth ---------------------------------------------------------------


class SignupRequest(BaseModel):
    email: EmailStr
    password: str
    name: str

    @field_validator("password")
    @classmethod
    def _check_password(cls, value: str) -> str:
        error = validate_password(value)
        if error:
            raise ValueError(error)
        return value

    @field_validator("name")
    @classmethod
    def _check_name(cls, value: str) -> str:
        error = validate_display_name(value)
        if error:
            raise ValueError(error)
        return value.strip()


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)


class TokenOut(BaseModel):
    access_token: str
    token_type: str = "bearer"


# ---- Entries ------------------------------------------------------------


class EntryFields(BaseModel):
    """Fields shared by the create and full-update payloads."""

    name: str = Field(min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=2000)
    amount: Decimal = Field(gt=0, max_digits=18, decimal_places=2)
    date: dt.date
    due_date: Optional[dt.date] = Field(
        default=None,
        validation_alias=AliasChoices("due_date", "dueDate"),
    )
    payment_mode: PaymentMode = Field(validation_alias=AliasChoices("payment_mode", "paymentMode"))
    kind: EntryKind = Field(validation_alias=AliasChoices("kind", "type"))
    client_email: Optional[EmailStr] = Field(
        default=None,
        validation_alias=AliasChoices("client_email", "clientEmail"),
    )

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    @field_validator("name", mode="before")
    @classmethod
    def _strip_name(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip()
        return value

    @field_validator("description", "client_email", "due_date", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        return _strip_or_none(value)

    @model_validator(mode="after")
    def _require_due_date_for_pending(self) -> "EntryFields":
        if is_pending(self.kind) and self.due_date is None:
            raise ValueError(DUE_DATE_REQUIRED)
        return self


class EntryCreate(EntryFields):
    pass


class EntryUpdate(EntryFields):
    pass


class EntryPatch(BaseModel):
    """Partial update; merged with the stored entry and re-validated as a whole."""

    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=2000)
    amount: Optional[Decimal] = Field(default=None, gt=0, max_digits=18, decimal_places=2)
    date: Optional[dt.date] = None
    due_date: Optional[dt.date] = Field(default=None, validation_alias=AliasChoices("due_date", "dueDate"))
    payment_mode: Optional[PaymentMode] = Field(
        default=None, validation_alias=AliasChoices("payment_mode", "paymentMode")
    )
    kind: Optional[EntryKind] = Field(default=None, validation_alias=AliasChoices("kind", "type"))
    client_email: Optional[EmailStr] = Field(
        default=None, validation_alias=AliasChoices("client_email", "clientEmail")
    )

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    @field_validator("description", "client_email", "due_date", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        return _strip_or_none(value)


class EntryOut(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    amount: Decimal
    date: dt.date
    due_date: Optional[dt.date] = None
    payment_mode: PaymentMode
    type: EntryKind
    status: Literal["Pending", "Completed"]
    client_email: Optional[str] = None
    last_manual_reminder_sent: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entry(cls, entry: Entry) -> "EntryOut":
        return cls(
            id=entry.id,
            name=entry.name,
            description=entry.description,
            amount=entry.amount,
            date=entry.date,
            due_date=entry.due_date,
            payment_mode=entry.payment_mode,
            type=entry.kind,
            status=entry.display_status,
            client_email=entry.client_email,
            last_manual_reminder_sent=entry.last_manual_reminder_sent,
            created_at=entry.created_at,
            updated_at=entry.updated_at,
        )


class ReminderResult(BaseModel):
    success: bool = True
    sent_at: datetime


# ---- Profile ------------------------------------------------------------


class ReceivingAccountDetails(BaseModel):
    bankName: Optional[str] = None
    accountNumber: Optional[str] = None
    ifsc: Optional[str] = None
    holderName: Optional[str] = None
    upiId: Optional[str] = None
    email: Optional[str] = None
    customNote: Optional[str] = None


class ReceivingAccount(BaseModel):
    id: str = Field(min_length=1, max_length=64)
    type: Literal["Bank Transfer", "UPI", "PayPal", "Wise", "Crypto", "Other"]
    label: str = Field(min_length=1, max_length=100)
    details: ReceivingAccountDetails = Field(default_factory=ReceivingAccountDetails)


class PaymentMethod(BaseModel):
    id: str = Field(min_length=1, max_length=64)
    brand: Literal["Visa", "Mastercard", "Amex"]
    last4: str = Field(pattern=r"^\d{4}$")
    expiry: str = Field(max_length=7)


class ProfileOut(BaseModel):
    email: str
    name: Optional[str] = None
    avatar: Optional[str] = None
    plan: Plan
    billing_cycle: BillingCycle
    plan_started_at: Optional[datetime] = None
    currency: Currency
    receiving_accounts: list[ReceivingAccount] = Field(default_factory=list)
    payment_methods: list[PaymentMethod] = Field(default_factory=list)

    @classmethod
    def from_profile(cls, profile: UserProfile) -> "ProfileOut":
        return cls(
            email=profile.user.email,
            name=profile.name,
            avatar=profile.avatar,
            plan=profile.plan,
            billing_cycle=profile.billing_cycle,
            plan_started_at=profile.plan_started_at,
            currency=profile.currency,
            receiving_accounts=list(profile.receiving_accounts or []),
            payment_methods=list(profile.payment_methods or []),
        )


class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(default=None, max_length=100)
    avatar: Optional[str] = Field(default=None, max_length=500)
    currency: Optional[Currency] = None
    billing_cycle: Optional[BillingCycle] = None
    receiving_accounts: Optional[list[ReceivingAccount]] = None
    payment_methods: Optional[list[PaymentMethod]] = None


# ---- Dashboard ----------------------------------------------------------


class DashboardTotals(BaseModel):
    received: Decimal
    sent: Decimal
    pending_in: Decimal
    pending_out: Decimal
    balance: Decimal


class DashboardTrends(BaseModel):
    income: str
    income_up: bool
    expenses: str
    expenses_up: bool
    pending_in: str
    pending_in_up: bool
    net: str
    net_up: bool


class ChartPoint(BaseModel):
    month: str
    income: Decimal
    expense: Decimal


class DashboardOut(BaseModel):
    currency: Currency
    totals: DashboardTotals
    trends: DashboardTrends
    chart: list[ChartPoint]
    recent: list[EntryOut]
    hidden_count: int = 0


# ---- Jobs ---------------------------------------------------------------


class ReportJobResult(BaseModel):
    ok: bool = True
    periods: list[str] = Field(default_factory=list)
    sent: int = 0
    skipped: int = 0
    failed: int = 0


class AutoReminderResult(BaseModel):
    ok: bool = True
    sent: int = 0
    failed: int = 0


class ReportSendResult(BaseModel):
    success: bool = True
    period: str
    entry_count: int
