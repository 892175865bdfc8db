"""
clients.py
Client membership records: CRUD, renewals, payments, history, status refresh.

Multi-row writes (client + payment + history) run inside a single
Database.connect() block, so they commit or roll back together.
"""

from __future__ import annotations

import logging
from datetime import date, timedelta

from db import Database
from errors import NotFoundError, ValidationError
from models import (
    ACTION_CREATED,
    ACTION_PAYMENT,
    ACTION_RENEWED,
    ACTION_UPDATED,
    DEFAULT_PAYMENT_METHOD,
    PAYMENT_PAID,
    STATUS_ACTIVE,
    STATUS_EXPIRED,
)
from utils import (
    add_months,
    calc_end_date,
    infer_status,
    missing_fields,
    now_iso,
    parse_amount,
    parse_iso,
    today_utc,
    validate_client_inputs,
)

log = logging.getLogger(__name__)

REQUIRED_FIELDS = ("full_name", "phone", "plan_type", "plan_amount", "start_date")
UPDATABLE_FIELDS = (
    "full_name",
    "email",
    "phone",
    "plan_type",
    "plan_amount",
    "start_date",
    "status",
    "payment_status",
)


def _check(data: dict) -> None:
    errors = validate_client_inputs(data)
    if errors:
        raise ValidationError(" ".join(errors))


def _add_history(conn, client_id: int, action_type: str, description: str) -> None:
    conn.execute(
        "INSERT INTO client_history(client_id, action_type, description, created_at) VALUES(?,?,?,?)",
        (client_id, action_type, description, now_iso()),
    )


def _add_payment(conn, client_id: int, amount: float, payment_date: str, method: str, notes: str | None) -> int:
    cur = conn.execute(
        """
        INSERT INTO payments(client_id, amount, payment_date, payment_method, notes, created_at)
        VALUES(?,?,?,?,?,?)
        """,
        (client_id, amount, payment_date, method, notes, now_iso()),
    )
    return cur.lastrowid


def _fetch_client(conn, client_id: int) -> dict:
    row = conn.execute("SELECT * FROM clients WHERE id = ?", (client_id,)).fetchone()
    if not row:
        raise NotFoundError("Client not found")
    return dict(row)


# ---------- Reads ----------

def list_clients(
    database: Database,
    status: str | None = None,
    plan_type: str | None = None,
    search: str | None = None,
) -> list[dict]:
    sql = "SELECT * FROM clients WHERE 1=1"
    params: list = []

    if status:
        sql += " AND status = ?"
        params.append(status)

    if plan_type:
        sql += " AND plan_type = ?"
        params.append(plan_type)

    if search and search.strip():
        # LIKE is case-insensitive for ASCII in SQLite
        sql += " AND (full_name LIKE ? OR email LIKE ? OR phone LIKE ?)"
        like = f"%{search.strip()}%"
        params.extend([like, like, like])

    sql += " ORDER BY created_at DESC, id DESC"
    return database.fetch_all(sql, tuple(params))


def get_client(database: Database, client_id: int) -> dict:
    client = database.fetch_one("SELECT * FROM clients WHERE id = ?", (client_id,))
    if not client:
        raise NotFoundError("Client not found")

    client["payments"] = database.fetch_all(
        "SELECT * FROM payments WHERE client_id = ? ORDER BY payment_date DESC, id DESC",
        (client_id,),
    )
    client["history"] = database.fetch_all(
        "SELECT * FROM client_history WHERE client_id = ? ORDER BY created_at DESC, id DESC",
        (client_id,),
    )
    return client


# ---------- Writes ----------

def create_client(database: Database, data: dict, today: date | None = None) -> dict:
    missing = missing_fields(data, REQUIRED_FIELDS)
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")
    _check(data)

    start_date = parse_iso(data["start_date"]).isoformat()
    plan_type = data["plan_type"]
    plan_amount = parse_amount(data["plan_amount"])
    end_date = calc_end_date(start_date, plan_type)
    status = data.get("status") or infer_status(end_date, today)

    with database.connect() as conn:
        cur = conn.execute(
            """
            INSERT INTO clients(full_name, email, phone, plan_type, plan_amount, start_date, end_date,
                status, payment_status, created_at)
            VALUES(?,?,?,?,?,?,?,?,?,?)
            """,
            (
                str(data["full_name"]).strip(),
                (data.get("email") or "").strip() or None,
                str(data["phone"]).strip(),
                plan_type,
                plan_amount,
                start_date,
                end_date,
                status,
                data.get("payment_status") or PAYMENT_PAID,
                now_iso(),
            ),
        )
        client_id = cur.lastrowid
        _add_payment(
            conn,
            client_id,
            plan_amount,
            start_date,
            data.get("payment_method") or DEFAULT_PAYMENT_METHOD,
            "Initial payment",
        )
        _add_history(conn, client_id, ACTION_CREATED, f"Client account created with {plan_type} plan")
        client = _fetch_client(conn, client_id)

    log.info("Created client %s (%s, ends %s)", client_id, plan_type, end_date)
    return client


def update_client(database: Database, client_id: int, data: dict) -> dict:
    # id, created_at and end_date are never taken from the request
    changes = {k: data[k] for k in UPDATABLE_FIELDS if k in data}
    if not changes:
        raise ValidationError("No updatable fields provided")
    _check(changes)

    if "plan_amount" in changes:
        changes["plan_amount"] = parse_amount(changes["plan_amount"])
    if "start_date" in changes:
        changes["start_date"] = parse_iso(changes["start_date"]).isoformat()

    with database.connect() as conn:
        current = _fetch_client(conn, client_id)
        if "plan_type" in changes or "start_date" in changes:
            changes["end_date"] = calc_end_date(
                changes.get("start_date", current["start_date"]),
                changes.get("plan_type", current["plan_type"]),
            )
        assignments = ", ".join(f"{col} = ?" for col in changes)
        conn.execute(
            f"UPDATE clients SET {assignments} WHERE id = ?",
            (*changes.values(), client_id),
        )
        _add_history(conn, client_id, ACTION_UPDATED, "Client information updated")
        client = _fetch_client(conn, client_id)

    log.info("Updated client %s: %s", client_id, ", ".join(changes))
    return client


def delete_client(database: Database, client_id: int) -> None:
    with database.connect() as conn:
        cur = conn.execute("DELETE FROM clients WHERE id = ?", (client_id,))
        if cur.rowcount == 0:
            raise NotFoundError("Client not found")
    log.info("Deleted client %s", client_id)


def _client_id(value) -> int | None:
    # JSON ints or digit strings only; 1.9 and true must not turn into 1
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value)
    return None


def bulk_delete(database: Database, ids) -> int:
    if not isinstance(ids, list) or not ids:
        raise ValidationError("Invalid client IDs")
    client_ids = [_client_id(i) for i in ids]
    if None in client_ids:
        raise ValidationError("Invalid client IDs")

    placeholders = ",".join("?" for _ in client_ids)
    with database.connect() as conn:
        cur = conn.execute(f"DELETE FROM clients WHERE id IN ({placeholders})", tuple(client_ids))
        deleted = cur.rowcount
    log.info("Bulk deleted %s of %s clients", deleted, len(client_ids))
    return deleted


def renew_plan(database: Database, client_id: int, data: dict, today: date | None = None) -> dict:
    missing = missing_fields(data, ("plan_type", "plan_amount"))
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")
    _check({k: data[k] for k in ("plan_type", "plan_amount", "start_date", "payment_method") if k in data})

    plan_type = data["plan_type"]
    plan_amount = parse_amount(data["plan_amount"])
    start_date = parse_iso(data.get("start_date") or today or today_utc()).isoformat()
    end_date = calc_end_date(start_date, plan_type)

    with database.connect() as conn:
        _fetch_client(conn, client_id)
        conn.execute(
            """
            UPDATE clients
            SET plan_type=?, plan_amount=?, start_date=?, end_date=?, status=?, payment_status=?
            WHERE id=?
            """,
            (plan_type, plan_amount, start_date, end_date, STATUS_ACTIVE, PAYMENT_PAID, client_id),
        )
        _add_payment(
            conn,
            client_id,
            plan_amount,
            start_date,
            data.get("payment_method") or DEFAULT_PAYMENT_METHOD,
            "Plan renewal",
        )
        _add_history(conn, client_id, ACTION_RENEWED, f"Plan renewed: {plan_type}")
        client = _fetch_client(conn, client_id)

    log.info("Renewed client %s: %s until %s", client_id, plan_type, end_date)
    return client


def add_payment(
    database: Database,
    client_id: int,
    data: dict,
    today: date | None = None,
    currency: str = "",
) -> dict:
    amount = parse_amount(data.get("amount"))
    if amount is None:
        raise ValidationError("Amount is required and must be numeric")
    if amount <= 0:
        raise ValidationError("Amount must be > 0")
    _check({k: data[k] for k in ("payment_method",) if k in data})
    try:
        payment_date = parse_iso(data.get("payment_date") or today or today_utc()).isoformat()
    except ValueError:
        raise ValidationError("Payment date must be a valid ISO date (YYYY-MM-DD).")

    with database.connect() as conn:
        _fetch_client(conn, client_id)
        payment_id = _add_payment(
            conn,
            client_id,
            amount,
            payment_date,
            data.get("payment_method") or DEFAULT_PAYMENT_METHOD,
            (data.get("notes") or "").strip() or None,
        )
        conn.execute("UPDATE clients SET payment_status = ? WHERE id = ?", (PAYMENT_PAID, client_id))
        _add_history(conn, client_id, ACTION_PAYMENT, f"Payment received: {currency}{data.get('amount')}")
        payment = dict(conn.execute("SELECT * FROM payments WHERE id = ?", (payment_id,)).fetchone())

    log.info("Recorded payment %s for client %s: %.2f", payment_id, client_id, amount)
    return payment


def refresh_statuses(database: Database, today: date | None = None) -> int:
    """Keep statuses consistent with end_date: Active clients past their end date become Expired."""
    today = today or today_utc()
    with database.connect() as conn:
        cur = conn.execute(
            "UPDATE clients SET status = ? WHERE status = ? AND end_date < ?",
            (STATUS_EXPIRED, STATUS_ACTIVE, today.isoformat()),
        )
        changed = cur.rowcount
    if changed:
        log.info("Marked %s clients as expired", changed)
    return changed


# ---------- Sample data ----------

def insert_sample_data(database: Database, today: date | None = None) -> list[int]:
    """
    Insert 3 clients with their initial payments (adds new rows each time).
    """
    today = today or today_utc()

    samples = [
        # Active, expires in 5 days
        {"full_name": "Ahmed Hassan", "email": "ahmed@example.com", "phone": "01000000001",
         "plan_type": "Monthly", "plan_amount": 300.0,
         "start_date": add_months(today + timedelta(days=5), -1).isoformat()},
        # Active, longer plan
        {"full_name": "Mona Ali", "email": "mona@example.com", "phone": "01000000002",
         "plan_type": "Quarterly", "plan_amount": 800.0,
         "start_date": (today - timedelta(days=10)).isoformat()},
        # Expired
        {"full_name": "Omar Samy", "email": None, "phone": "01000000003",
         "plan_type": "Monthly", "plan_amount": 300.0,
         "start_date": (today - timedelta(days=60)).isoformat()},
    ]

    return [create_client(database, s, today=today)["id"] for s in samples]
