"""
utils.py
Validation, dates, JSON envelopes.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

from flask import jsonify

from models import (
    PAYMENT_METHODS,
    PAYMENT_STATUSES,
    PLAN_MONTHS,
    PLAN_TYPES,
    STATUS_ACTIVE,
    STATUS_EXPIRED,
    STATUSES,
)


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def today_utc() -> date:
    # Same clock as now_iso(), so created_at and "today" agree on the month.
    return datetime.now(timezone.utc).date()


def parse_iso(d: str | date) -> date:
    if isinstance(d, datetime):
        return d.date()
    if isinstance(d, date):
        return d
    # Accept full timestamps too ("2024-01-31T00:00:00Z"), nothing else after the date
    return datetime.fromisoformat(str(d).strip().replace("Z", "+00:00")).date()


def add_months(start: date, months: int) -> date:
    """
    Add months while keeping day in valid range (e.g., Jan 31 + 1 month => Feb 28/29).
    """
    y = start.year + (start.month - 1 + months) // 12
    m = (start.month - 1 + months) % 12 + 1
    # last day of target month
    if m == 12:
        next_month = date(y + 1, 1, 1)
    else:
        next_month = date(y, m + 1, 1)
    last_day = next_month - timedelta(days=1)
    day = min(start.day, last_day.day)
    return date(y, m, day)


def calc_end_date(start_date_iso: str, plan_type: str) -> str:
    # Unknown plan types leave the date where it is; callers validate plan_type first.
    start = parse_iso(start_date_iso)
    months = PLAN_MONTHS.get(plan_type, 0)
    return add_months(start, months).isoformat()


def infer_status(end_date_iso: str, today: date | None = None) -> str:
    today = today or today_utc()
    return STATUS_ACTIVE if parse_iso(end_date_iso) >= today else STATUS_EXPIRED


def parse_amount(value) -> float | None:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def missing_fields(data: dict, fields: tuple[str, ...]) -> list[str]:
    return [f for f in fields if data.get(f) in (None, "")]


def validate_client_inputs(data: dict) -> list[str]:
    """
    Check the client fields that are present in `data`.
    Required-ness is the caller's job (see missing_fields).
    """
    errors: list[str] = []
    if "full_name" in data and not str(data["full_name"] or "").strip():
        errors.append("Full name is required.")
    if data.get("email") is not None and not isinstance(data["email"], str):
        errors.append("Email must be a string.")
    if "phone" in data and not str(data["phone"] or "").strip():
        errors.append("Phone is required.")
    if "plan_type" in data and data["plan_type"] not in PLAN_TYPES:
        errors.append(f"Plan type must be one of: {', '.join(PLAN_TYPES)}.")
    if "plan_amount" in data:
        amount = parse_amount(data["plan_amount"])
        if amount is None or amount < 0:
            errors.append("Plan amount must be a non-negative number.")
    if "start_date" in data:
        try:
            parse_iso(data["start_date"])
        except (TypeError, ValueError):
            errors.append("Start date must be a valid ISO date (YYYY-MM-DD).")
    if "status" in data and data["status"] not in STATUSES:
        errors.append(f"Status must be one of: {', '.join(STATUSES)}.")
    if "payment_status" in data and data["payment_status"] not in PAYMENT_STATUSES:
        errors.append(f"Payment status must be one of: {', '.join(PAYMENT_STATUSES)}.")
    if data.get("payment_method") and data["payment_method"] not in PAYMENT_METHODS:
        errors.append(f"Payment method must be one of: {', '.join(PAYMENT_METHODS)}.")
    return errors


def plural(n: int, word: str) -> str:
    return f"{n} {word}" if n == 1 else f"{n} {word}s"


def respond(success: bool, message: str | None = None, data=None, count: int | None = None, status: int = 200):
    """
    Build the standard `{success, message?, data?, count?}` response.
    """
    body: dict = {"success": success}
    if message is not None:
        body["message"] = message
    if data is not None:
        body["data"] = data
    if count is not None:
        body["count"] = count
    return jsonify(body), status
