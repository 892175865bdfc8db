"""
dashboard.py
Data fetches behind the dashboard endpoints.

The stats queries don't depend on each other, so they run on a small thread pool
and are joined before aggregation. Any failing query fails the whole call.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import date, timedelta

import reports
from db import Database
from models import STATUS_ACTIVE, STATUS_EXPIRED
from utils import today_utc

log = logging.getLogger(__name__)

RECENT_CLIENTS_LIMIT = 100


def _month_start(day: date) -> date:
    return day.replace(day=1)


def _next_month_start(day: date) -> date:
    return (day.replace(day=28) + timedelta(days=4)).replace(day=1)


def _window_start(today: date) -> date:
    """First day of the oldest month bucket."""
    return reports.month_buckets(today)[0].start_time.date()


def collect_stats(database: Database, today: date | None = None) -> dict:
    today = today or today_utc()
    month_start = _month_start(today).isoformat()
    month_end = _next_month_start(today).isoformat()

    queries = {
        "total": lambda: database.count("clients"),
        "active": lambda: database.count("clients", "status = ?", (STATUS_ACTIVE,)),
        "expired": lambda: database.count("clients", "status = ?", (STATUS_EXPIRED,)),
        "month_payments": lambda: database.fetch_all(
            "SELECT amount, payment_date FROM payments WHERE payment_date >= ? AND payment_date < ?",
            (month_start, month_end),
        ),
        "recent_clients": lambda: database.fetch_all(
            "SELECT created_at FROM clients ORDER BY created_at DESC, id DESC LIMIT ?",
            (RECENT_CLIENTS_LIMIT,),
        ),
        "window_payments": lambda: database.fetch_all(
            """
            SELECT amount, payment_date FROM payments
            WHERE payment_date >= ? AND payment_date < ?
            ORDER BY payment_date ASC
            """,
            (_window_start(today).isoformat(), month_end),
        ),
        "active_plans": lambda: database.fetch_all(
            "SELECT plan_type FROM clients WHERE status = ?", (STATUS_ACTIVE,)
        ),
    }

    with ThreadPoolExecutor(max_workers=len(queries)) as pool:
        futures = {name: pool.submit(fn) for name, fn in queries.items()}
        results = {name: f.result() for name, f in futures.items()}

    log.debug("Dashboard stats fetched for %s", today)
    return reports.build_stats(today=today, **results)


def collect_notifications(database: Database, today: date | None = None) -> dict:
    today = today or today_utc()
    week_ago = (today - timedelta(days=reports.NOTIFY_WINDOW_DAYS)).isoformat()
    week_ahead = (today + timedelta(days=reports.NOTIFY_WINDOW_DAYS)).isoformat()

    expired = database.fetch_all(
        """
        SELECT * FROM clients
        WHERE status = ? AND end_date >= ? AND end_date <= ?
        ORDER BY end_date DESC
        """,
        (STATUS_EXPIRED, week_ago, today.isoformat()),
    )
    expiring = database.fetch_all(
        """
        SELECT * FROM clients
        WHERE status = ? AND end_date >= ? AND end_date <= ?
        ORDER BY end_date ASC
        """,
        (STATUS_ACTIVE, today.isoformat(), week_ahead),
    )
    return reports.build_notifications(expired, expiring, today)
