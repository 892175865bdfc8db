"""
reports.py
Dashboard aggregation: month buckets, revenue/client-growth series, plan distribution,
expiry notifications.

Everything here works on rows that were already fetched; no database access.
"""

from __future__ import annotations

from datetime import date, timedelta

import pandas as pd

from models import PLAN_TYPES, STATUS_ACTIVE, STATUS_EXPIRED
from utils import parse_iso, plural

BUCKET_COUNT = 6
NOTIFY_WINDOW_DAYS = 7


def _period(day: date) -> pd.Period:
    return pd.Period(year=day.year, month=day.month, freq="M")


def month_buckets(today: date, count: int = BUCKET_COUNT) -> pd.PeriodIndex:
    """`count` consecutive calendar months ending with the current one, oldest first."""
    return pd.period_range(end=_period(today), periods=count, freq="M")


def _months(values: pd.Series) -> pd.Series:
    # "2024-03-05" and "2024-03-05T10:00:00+00:00" both bucket into 2024-03
    return pd.to_datetime(values.astype(str).str.slice(0, 10)).dt.to_period("M")


def _sum_by_month(rows: list[dict], date_col: str, value_col: str) -> pd.Series:
    if not rows:
        return pd.Series(dtype=float)
    df = pd.DataFrame(rows)
    return df[value_col].astype(float).groupby(_months(df[date_col])).sum()


def _count_by_month(rows: list[dict], date_col: str) -> pd.Series:
    if not rows:
        return pd.Series(dtype=int)
    df = pd.DataFrame(rows)
    return _months(df[date_col]).value_counts()


def monthly_revenue(payments: list[dict], today: date) -> str:
    """Total of payments dated in the current calendar month, as a two-decimal string."""
    totals = _sum_by_month(payments, "payment_date", "amount")
    total = float(totals.get(_period(today), 0.0))
    return f"{total:.2f}"


def revenue_series(payments: list[dict], today: date) -> list[dict]:
    buckets = month_buckets(today)
    totals = _sum_by_month(payments, "payment_date", "amount").reindex(buckets, fill_value=0.0)
    return [{"month": p.strftime("%b %Y"), "revenue": round(float(v), 2)} for p, v in totals.items()]


def client_growth_series(clients: list[dict], today: date) -> list[dict]:
    buckets = month_buckets(today)
    counts = _count_by_month(clients, "created_at").reindex(buckets, fill_value=0)
    return [{"month": p.strftime("%b"), "clients": int(v)} for p, v in counts.items()]


def plan_distribution(clients: list[dict]) -> list[dict]:
    """Active clients per plan type. Unknown plan types are left out."""
    plans = pd.Series([c.get("plan_type") for c in clients], dtype=object)
    counts = plans.value_counts().reindex(list(PLAN_TYPES), fill_value=0)
    return [{"name": name, "value": int(value)} for name, value in counts.items()]


def build_stats(
    total: int,
    active: int,
    expired: int,
    month_payments: list[dict],
    window_payments: list[dict],
    recent_clients: list[dict],
    active_plans: list[dict],
    today: date,
) -> dict:
    return {
        "stats": {
            "totalClients": total,
            "activeClients": active,
            "expiredClients": expired,
            "monthlyRevenue": monthly_revenue(month_payments, today),
        },
        "revenueData": revenue_series(window_payments, today),
        "clientGrowthData": client_growth_series(recent_clients, today),
        "planDistributionData": plan_distribution(active_plans),
    }


# ---------- Notifications ----------

def _client_ref(client: dict) -> dict:
    return {
        "id": client["id"],
        "name": client.get("full_name"),
        "email": client.get("email"),
        "phone": client.get("phone"),
    }


def recently_expired(clients: list[dict], today: date) -> list[dict]:
    start = today - timedelta(days=NOTIFY_WINDOW_DAYS)
    rows = [
        c for c in clients
        if c.get("status") == STATUS_EXPIRED and start <= parse_iso(c["end_date"]) <= today
    ]
    rows.sort(key=lambda c: parse_iso(c["end_date"]), reverse=True)

    notes = []
    for c in rows:
        days_ago = (today - parse_iso(c["end_date"])).days
        notes.append({
            "id": f"expired-{c['id']}",
            "type": "expired",
            "title": "Membership Expired",
            "message": f"{c.get('full_name')}'s membership expired {plural(days_ago, 'day')} ago",
            "client": _client_ref(c),
            "date": c["end_date"],
            "daysAgo": days_ago,
            "read": False,
        })
    return notes


def expiring_soon(clients: list[dict], today: date) -> list[dict]:
    end = today + timedelta(days=NOTIFY_WINDOW_DAYS)
    rows = [
        c for c in clients
        if c.get("status") == STATUS_ACTIVE and today <= parse_iso(c["end_date"]) <= end
    ]
    rows.sort(key=lambda c: parse_iso(c["end_date"]))

    notes = []
    for c in rows:
        days_left = (parse_iso(c["end_date"]) - today).days
        notes.append({
            "id": f"expiring-{c['id']}",
            "type": "expiring",
            "title": "Membership Expiring Soon",
            "message": f"{c.get('full_name')}'s membership expires in {plural(days_left, 'day')}",
            "client": _client_ref(c),
            "date": c["end_date"],
            "daysLeft": days_left,
            "read": False,
        })
    return notes


def build_notifications(expired_rows: list[dict], expiring_rows: list[dict], today: date) -> dict:
    notifications = recently_expired(expired_rows, today) + expiring_soon(expiring_rows, today)
    return {"notifications": notifications, "unreadCount": len(notifications)}
