"""
auth_router.py – /api/auth
────────────────────────────────────────────
POST /login      → token + admin
POST /register   → token + admin (201)
GET  /profile    → current admin (bearer token)
────────────────────────────────────────────
"""

from flask import Blueprint, current_app, g, request

import auth
from db import get_db
from errors import ValidationError, on_failure
from utils import respond

bp = Blueprint("auth_bp", __name__)


def _body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def _session(admin) -> dict:
    config = current_app.config["GYM"]
    return {"token": auth.generate_token(config, admin), "admin": admin.public()}


@bp.route("/login", methods=["POST"])
@on_failure("Login failed")
def login():
    data = _body()
    admin = auth.login(get_db(), data.get("email"), data.get("password"))
    return respond(True, message="Login successful", data=_session(admin))


@bp.route("/register", methods=["POST"])
@on_failure("Registration failed")
def register():
    data = _body()
    admin = auth.register(
        get_db(),
        data.get("email"),
        data.get("password"),
        data.get("full_name"),
        rounds=current_app.config["GYM"].bcrypt_rounds,
    )
    return respond(True, message="Admin registered successfully", data=_session(admin), status=201)


@bp.route("/profile", methods=["GET"])
@auth.login_required
@on_failure("Failed to fetch profile")
def profile():
    return respond(True, data=auth.get_profile(get_db(), g.admin["id"]))
