# ezrent/controllers/history_controller.py

from flask import Blueprint, jsonify

from ezrent.exceptions import HistoryNotFound
from ezrent.repositories.history_repo import HistoryRepo
from ezrent.utils.decorators import service_errors

history_bp = Blueprint("history", __name__)


@history_bp.get("/<int:history_id>")
@service_errors
def fetch_history(history_id: int):
    history = HistoryRepo.get(history_id)
    if not history:
        raise HistoryNotFound(history_id)
    return jsonify({"success": True, "data": history.to_dict()})


@history_bp.get("/owner/<int:owner_id>")
def owner_history(owner_id: int):
    return jsonify({"success": True, "data": [h.to_dict() for h in HistoryRepo.list_by_owner(owner_id)]})


@history_bp.get("/customer/<int:customer_id>")
def customer_history(customer_id: int):
    return jsonify({"success": True, "data": [h.to_dict() for h in HistoryRepo.list_by_customer(customer_id)]})
