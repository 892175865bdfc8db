"""
clients_router.py – /api/clients
────────────────────────────────────────────
Membership records, renewals and payments.
Every route requires a bearer token.
────────────────────────────────────────────
"""

from flask import Blueprint, current_app, request

import clients
from auth import require_token
from db import get_db
from errors import ValidationError, on_failure
from utils import plural, respond

bp = Blueprint("clients_bp", __name__)


@bp.before_request
def _require_admin():
    if request.method != "OPTIONS":
        require_token()


def _body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


@bp.route("", methods=["GET"])
@on_failure("Failed to fetch clients")
def list_clients():
    rows = clients.list_clients(
        get_db(),
        status=request.args.get("status"),
        plan_type=request.args.get("plan_type"),
        search=request.args.get("search"),
    )
    return respond(True, data=rows, count=len(rows))


@bp.route("/<int:client_id>", methods=["GET"])
@on_failure("Failed to fetch client")
def get_client(client_id: int):
    return respond(True, data=clients.get_client(get_db(), client_id))


@bp.route("", methods=["POST"])
@on_failure("Failed to create client")
def create_client():
    client = clients.create_client(get_db(), _body())
    return respond(True, message="Client created successfully", data=client, status=201)


@bp.route("/<int:client_id>", methods=["PUT"])
@on_failure("Failed to update client")
def update_client(client_id: int):
    client = clients.update_client(get_db(), client_id, _body())
    return respond(True, message="Client updated successfully", data=client)


@bp.route("/<int:client_id>", methods=["DELETE"])
@on_failure("Failed to delete client")
def delete_client(client_id: int):
    clients.delete_client(get_db(), client_id)
    return respond(True, message="Client deleted successfully")


@bp.route("/<int:client_id>/renew", methods=["POST"])
@on_failure("Failed to renew plan")
def renew_plan(client_id: int):
    client = clients.renew_plan(get_db(), client_id, _body())
    return respond(True, message="Plan renewed successfully", data=client)


@bp.route("/<int:client_id>/payment", methods=["POST"])
@on_failure("Failed to record payment")
def add_payment(client_id: int):
    currency = current_app.config["GYM"].currency_symbol
    payment = clients.add_payment(get_db(), client_id, _body(), currency=currency)
    return respond(True, message="Payment recorded successfully", data=payment, status=201)


@bp.route("/bulk-delete", methods=["POST"])
@on_failure("Failed to delete clients")
def bulk_delete():
    deleted = clients.bulk_delete(get_db(), _body().get("ids"))
    return respond(True, message=f"{plural(deleted, 'client')} deleted successfully", data={"deleted": deleted})
