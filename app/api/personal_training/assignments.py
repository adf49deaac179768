# Personal training assignments: create, edit, renew, delete, expiry lookups
from flask import Blueprint, current_app, g, jsonify, request
from sqlalchemy.exc import IntegrityError

from ...extensions import db
from ...services import lifecycle
from ...services.errors import NotFoundError, ValidationError
from ...utils.auth import gym_auth_required
from ...utils.serializers import (
    serialize_assignment,
    serialize_invoice,
    serialize_transaction,
)

assignments_bp = Blueprint(
    "personal_training_assignments",
    __name__,
    url_prefix="/api/personal-training-assignments",
)

CREATE_FIELDS = ("customer_id", "trainer_id", "start_date", "duration", "fees")
RENEW_FIELDS = ("start_date", "duration", "end_date", "fees")


def _error(message, status):
    return jsonify({"success": False, "error": message}), status


def _missing(data, fields):
    return [field for field in fields if data.get(field) in (None, "", 0)]


def _resolve_gym_id(data):
    """Body gym_id must match the caller's gym; defaults to it."""
    gym_id = data.get("gym_id")
    if gym_id in (None, ""):
        return g.gym_id
    try:
        gym_id = int(gym_id)
    except (TypeError, ValueError):
        raise ValidationError("gym_id must be an integer")
    if gym_id != g.gym_id:
        raise NotFoundError("Gym not found.")
    return gym_id


def _as_int(data, field):
    try:
        return int(data.get(field))
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be an integer")


def _lifecycle_payload(result):
    return {
        "assignment": serialize_assignment(result["assignment"]),
        "invoice": serialize_invoice(result["invoice"]),
        "transaction": serialize_transaction(result["transaction"]),
    }


def _handle_failure(e, action):
    db.session.rollback()
    if isinstance(e, ValidationError):
        return _error(str(e), 400)
    if isinstance(e, NotFoundError):
        return _error(str(e), 404)
    if isinstance(e, IntegrityError):
        return _error(str(e.orig), 400)
    current_app.logger.error(f"Error {action} assignment: {e}")
    return _error(str(e), 500)


@assignments_bp.route("", methods=["GET"])
@gym_auth_required
def get_assignments():
    """
    List personal training assignments of the caller's gym.
    ---
    tags:
      - Personal Training
    responses:
      200:
        description: Assignments, newest start date first
    """
    try:
        assignments = lifecycle.list_assignments(g.gym_id)
        return jsonify(
            {"success": True, "data": [serialize_assignment(a) for a in assignments]}
        )
    except Exception as e:
        return _handle_failure(e, "listing")


@assignments_bp.route("/expiring", methods=["GET"])
@gym_auth_required
def get_expiring_assignments():
    """
    Assignments ending today or within the next 7 days.
    ---
    tags:
      - Personal Training
    responses:
      200:
        description: Assignments ordered by end date
    """
    try:
        assignments = lifecycle.get_expiring_assignments(g.gym_id)
        return jsonify(
            {"success": True, "data": [serialize_assignment(a) for a in assignments]}
        )
    except Exception as e:
        return _handle_failure(e, "listing expiring")


@assignments_bp.route("/<int:assignment_id>", methods=["GET"])
@gym_auth_required
def get_assignment(assignment_id):
    try:
        assignment = lifecycle.get_assignment(assignment_id, g.gym_id)
        return jsonify({"success": True, "data": serialize_assignment(assignment)})
    except Exception as e:
        return _handle_failure(e, "fetching")


@assignments_bp.route("", methods=["POST"])
@gym_auth_required
def create_assignment():
    """
    Create an assignment, snapshot it on the customer and bill it.
    ---
    tags:
      - Personal Training
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          required: [customer_id, trainer_id, start_date, duration, fees]
          properties:
            customer_id: {type: integer}
            trainer_id: {type: integer}
            gym_id: {type: integer}
            start_date: {type: string, format: date}
            duration: {type: integer, description: months}
            fees: {type: number}
    responses:
      201:
        description: Assignment, invoice and transaction
      400:
        description: Missing or invalid fields
      404:
        description: Customer or trainer not found
    """
    try:
        data = request.get_json(force=True, silent=True) or {}
        if _missing(data, CREATE_FIELDS):
            return _error("All fields are required.", 400)

        result = lifecycle.create_assignment(
            customer_id=_as_int(data, "customer_id"),
            trainer_id=_as_int(data, "trainer_id"),
            gym_id=_resolve_gym_id(data),
            start_date=data["start_date"],
            duration=data["duration"],
            fees=data["fees"],
            user_id=g.user.id,
        )
        return jsonify({"success": True, "data": _lifecycle_payload(result)}), 201
    except Exception as e:
        return _handle_failure(e, "creating")


@assignments_bp.route("/<int:assignment_id>", methods=["PUT"])
@gym_auth_required
def update_assignment(assignment_id):
    """
    Edit an assignment and rewrite its latest invoice and transaction.
    ---
    tags:
      - Personal Training
    responses:
      200:
        description: Updated assignment
      404:
        description: Assignment not found
    """
    try:
        data = request.get_json(force=True, silent=True) or {}
        if _missing(data, CREATE_FIELDS):
            return _error("All fields are required.", 400)

        gym_id = _resolve_gym_id(data)
        lifecycle.get_assignment(assignment_id, gym_id)

        assignment = lifecycle.update_assignment(
            assignment_id,
            customer_id=_as_int(data, "customer_id"),
            trainer_id=_as_int(data, "trainer_id"),
            gym_id=gym_id,
            start_date=data["start_date"],
            duration=data["duration"],
            fees=data["fees"],
        )
        return jsonify({"success": True, "data": serialize_assignment(assignment)})
    except Exception as e:
        return _handle_failure(e, "updating")


@assignments_bp.route("/<int:assignment_id>/renew", methods=["POST"])
@gym_auth_required
def renew_assignment(assignment_id):
    """
    Renew an assignment; always raises a new invoice and transaction.
    ---
    tags:
      - Personal Training
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          required: [start_date, duration, end_date, fees]
          properties:
            start_date: {type: string, format: date}
            end_date: {type: string, format: date}
            duration: {type: integer}
            fees: {type: number}
            gym_id: {type: integer}
            payment_mode: {type: string}
            transaction_date: {type: string, format: date-time}
    responses:
      200:
        description: Assignment, invoice and transaction
      404:
        description: Assignment not found
    """
    try:
        data = request.get_json(force=True, silent=True) or {}
        if _missing(data, RENEW_FIELDS):
            return _error("All fields are required.", 400)

        gym_id = _resolve_gym_id(data)
        lifecycle.get_assignment(assignment_id, gym_id)

        result = lifecycle.renew_assignment(
            assignment_id,
            start_date=data["start_date"],
            duration=data["duration"],
            end_date=data["end_date"],
            fees=data["fees"],
            gym_id=gym_id,
            payment_mode=data.get("payment_mode"),
            transaction_date=data.get("transaction_date"),
            user_id=g.user.id,
        )
        return jsonify({"success": True, "data": _lifecycle_payload(result)}), 200
    except Exception as e:
        return _handle_failure(e, "renewing")


@assignments_bp.route("/<int:assignment_id>", methods=["DELETE"])
@gym_auth_required
def delete_assignment(assignment_id):
    """
    Delete an assignment with the customer's personal training billing.
    ---
    tags:
      - Personal Training
    responses:
      200:
        description: Deleted
      404:
        description: Assignment not found
    """
    try:
        lifecycle.delete_assignment(assignment_id, g.gym_id)
        return jsonify(
            {"success": True, "data": {"message": "Assignment deleted successfully."}}
        )
    except Exception as e:
        return _handle_failure(e, "deleting")
