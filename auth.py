"""
auth.py
Authentication utilities (bcrypt hashing, verify, login, register, signed bearer tokens).
"""

from __future__ import annotations

import logging
import sqlite3
from functools import wraps

import bcrypt
from flask import current_app, g, request
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from config import Config
from db import Database
from errors import AuthError, NotFoundError, ValidationError
from models import Admin
from utils import now_iso

log = logging.getLogger(__name__)

TOKEN_SALT = "gym-admin-auth"


def _to_bcrypt_secret(password: str) -> bytes:
    """
    bcrypt only uses the first 72 BYTES of the password.
    We truncate to 72 bytes to avoid ValueError and to make behavior explicit.
    """
    pw = password.encode("utf-8")
    if len(pw) > 72:
        pw = pw[:72]
    return pw


def hash_password(password: str, rounds: int = 12) -> str:
    """
    Returns a bcrypt hash as a UTF-8 string (stored in SQLite).
    """
    secret = _to_bcrypt_secret(password)
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(secret, salt)
    return hashed.decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    secret = _to_bcrypt_secret(password)
    stored = password_hash.encode("utf-8")
    return bcrypt.checkpw(secret, stored)


def _admin(row: dict) -> Admin:
    return Admin(id=row["id"], email=row["email"], full_name=row["full_name"], created_at=row["created_at"])


def get_admin_by_email(database: Database, email: str) -> dict | None:
    return database.fetch_one("SELECT * FROM admins WHERE email = ?", (email,))


def get_profile(database: Database, admin_id: int) -> dict:
    row = database.fetch_one("SELECT id, email, full_name, created_at FROM admins WHERE id = ?", (admin_id,))
    if not row:
        raise NotFoundError("Admin not found")
    return row


def login(database: Database, email: str, password: str) -> Admin:
    if not email or not password:
        raise ValidationError("Email and password are required")
    if not isinstance(email, str) or not isinstance(password, str):
        raise ValidationError("Email and password must be strings")
    row = get_admin_by_email(database, email.strip())
    if not row or not verify_password(password, row["password_hash"]):
        log.info("Failed login for %s", email)
        raise AuthError("Invalid credentials")
    return _admin(row)


def register(database: Database, email: str, password: str, full_name: str, rounds: int = 12) -> Admin:
    if not email or not password or not full_name:
        raise ValidationError("All fields are required")
    if not all(isinstance(v, str) for v in (email, password, full_name)):
        raise ValidationError("Email, password and full name must be strings")
    email = email.strip()
    if get_admin_by_email(database, email):
        raise ValidationError("Admin with this email already exists")
    created_at = now_iso()
    try:
        admin_id = database.execute(
            "INSERT INTO admins(email, password_hash, full_name, created_at) VALUES(?,?,?,?)",
            (email, hash_password(password, rounds), full_name.strip(), created_at),
        )
    except sqlite3.IntegrityError:
        # lost a race with a concurrent registration for the same email
        raise ValidationError("Admin with this email already exists")
    log.info("Registered admin %s (id=%s)", email, admin_id)
    return Admin(id=admin_id, email=email, full_name=full_name.strip(), created_at=created_at)


# ── Tokens ───────────────────────────────────────────────────────────

def _serializer(config: Config) -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(config.secret_key, salt=TOKEN_SALT)


def generate_token(config: Config, admin: Admin) -> str:
    """Signed token encoding admin id/email/name."""
    return _serializer(config).dumps(admin.public())


def verify_token(config: Config, token: str) -> dict:
    """
    Returns the decoded admin payload, or raises AuthError
    if the token is expired, tampered with or malformed.
    """
    try:
        return _serializer(config).loads(token, max_age=config.token_max_age)
    except SignatureExpired:
        raise AuthError("Token expired")
    except BadSignature:
        raise AuthError("Invalid token")


def _bearer() -> str | None:
    header = request.headers.get("Authorization", "")
    if header.startswith("Bearer "):
        return header[7:].strip() or None
    return None


def require_token() -> dict:
    token = _bearer()
    if not token:
        raise AuthError("No token provided")
    g.admin = verify_token(current_app.config["GYM"], token)
    return g.admin


def login_required(fn):
    """Rejects the request with 401 unless it carries a valid bearer token; sets g.admin."""

    @wraps(fn)
    def wrapper(*args, **kwargs):
        require_token()
        return fn(*args, **kwargs)

    return wrapper
