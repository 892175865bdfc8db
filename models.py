"""
models.py
Lightweight domain helpers (plans, statuses, dataclasses).
"""

from __future__ import annotations
from dataclasses import dataclass

# Plan durations in months (used for end_date auto-calculation)
PLAN_MONTHS = {
    "Monthly": 1,
    "Quarterly": 3,
    "Yearly": 12,
}
PLAN_TYPES = tuple(PLAN_MONTHS)

STATUS_ACTIVE = "Active"
STATUS_EXPIRED = "Expired"
STATUSES = (STATUS_ACTIVE, STATUS_EXPIRED)

PAYMENT_PAID = "Paid"
PAYMENT_PENDING = "Pending"
PAYMENT_STATUSES = (PAYMENT_PAID, PAYMENT_PENDING)

PAYMENT_METHODS = ("Cash", "Card", "Transfer")
DEFAULT_PAYMENT_METHOD = "Cash"

# client_history.action_type
ACTION_CREATED = "CREATED"
ACTION_UPDATED = "UPDATED"
ACTION_RENEWED = "RENEWED"
ACTION_PAYMENT = "PAYMENT"


@dataclass(frozen=True)
class Admin:
    id: int | None
    email: str
    full_name: str
    created_at: str

    def public(self) -> dict:
        return {"id": self.id, "email": self.email, "full_name": self.full_name}

