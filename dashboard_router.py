"""
dashboard_router.py – /api/dashboard
────────────────────────────────────────────
GET /stats          → counts, monthly revenue, 6-month series, plan mix
GET /notifications  → recently expired + expiring soon
────────────────────────────────────────────
"""

from flask import Blueprint, current_app

import clients
import dashboard
from auth import login_required
from db import get_db
from errors import on_failure
from utils import respond

bp = Blueprint("dashboard_bp", __name__)


def _refresh():
    if current_app.config["GYM"].auto_expire:
        clients.refresh_statuses(get_db())


@bp.route("/stats", methods=["GET"])
@login_required
@on_failure("Failed to fetch dashboard statistics")
def stats():
    _refresh()
    return respond(True, data=dashboard.collect_stats(get_db()))


@bp.route("/notifications", methods=["GET"])
@login_required
@on_failure("Failed to fetch notifications")
def notifications():
    _refresh()
    return respond(True, data=dashboard.collect_notifications(get_db()))
