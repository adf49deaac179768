# Gym customers and their memberships
from flask import Blueprint, current_app, g, jsonify, request
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from ...extensions import db
from ...models import Customer
from ...services import lifecycle
from ...services.errors import NotFoundError, ValidationError
from ...utils.auth import gym_auth_required
from ...utils.serializers import (
    serialize_customer,
    serialize_invoice,
    serialize_transaction,
)

details_bp = Blueprint("customers", __name__, url_prefix="/api/customers")


def _error(message, status):
    return jsonify({"success": False, "error": message}), status


def _membership_payload(result):
    return {
        "customer": serialize_customer(result["customer"]),
        "invoice": serialize_invoice(result["invoice"]) if result["invoice"] else None,
        "transaction": (
            serialize_transaction(result["transaction"])
            if result["transaction"]
            else None
        ),
    }


@details_bp.route("", methods=["GET"])
@gym_auth_required
def get_customers():
    """
    GET /api/customers
    Purpose: List the customers of the caller's gym, newest first.
    """
    customers = db.session.scalars(
        select(Customer)
        .where(Customer.gym_id == g.gym_id)
        .order_by(Customer.created_at.desc(), Customer.id.desc())
    ).all()
    return jsonify({"success": True, "data": [serialize_customer(c) for c in customers]})


@details_bp.route("/<int:customer_id>", methods=["GET"])
@gym_auth_required
def get_customer(customer_id):
    """
    GET /api/customers/<customer_id>
    Purpose: Fetch one customer including the personal trainer snapshot.

    Behavior:
    - If the customer belongs to another gym or does not exist:
        → Return a 404 error.
    """
    customer = db.session.get(Customer, customer_id)
    if not customer or customer.gym_id != g.gym_id:
        return _error("Customer not found", 404)
    return jsonify({"success": True, "data": serialize_customer(customer)})


@details_bp.route("/<int:customer_id>", methods=["PUT"])
@gym_auth_required
def update_customer(customer_id):
    """
    PUT /api/customers/<customer_id>
    Purpose: Edit profile and membership fields of a customer in the caller's
             gym. membership_end_date is recomputed from the start date and
             duration; no invoice or transaction is written.
    Input: any of name, email, phone, address, source, notes, birthday,
           join_date, membership_type, membership_fees, membership_duration,
           membership_start_date.
    """
    try:
        data = request.get_json(force=True, silent=True) or {}
        customer = lifecycle.update_customer(customer_id, g.gym_id, data)
        return jsonify({"success": True, "data": serialize_customer(customer)})

    except ValidationError as e:
        db.session.rollback()
        return _error(str(e), 400)
    except NotFoundError:
        db.session.rollback()
        return _error("Customer not found", 404)
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error updating customer {customer_id}: {e}")
        return _error(str(e), 500)


@details_bp.route("/<int:customer_id>", methods=["DELETE"])
@gym_auth_required
def delete_customer(customer_id):
    """
    DELETE /api/customers/<customer_id>
    Purpose: Remove a customer of the caller's gym together with their
             assignments, invoices and transactions.
    """
    try:
        lifecycle.delete_customer(customer_id, g.gym_id)
        return jsonify({"success": True, "data": {"message": "Customer deleted successfully."}})

    except NotFoundError:
        db.session.rollback()
        return _error("Customer not found", 404)
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error deleting customer {customer_id}: {e}")
        return _error(str(e), 500)


@details_bp.route("", methods=["POST"])
@gym_auth_required
def create_customer():
    """
    POST /api/customers
    Purpose: Create a customer. A paid membership (membership_type other
             than "none" with membership_fees > 0) is billed right away with
             an invoice and a MEMBERSHIP_JOINING transaction.
    Input: JSON body with name (required), email, phone, address, source,
           notes, birthday, join_date, membership_type, membership_fees,
           membership_duration, membership_start_date, payment_mode,
           transaction_date.
    """
    try:
        data = request.get_json(force=True, silent=True) or {}
        name = (data.get("name") or "").strip()
        if not name:
            return _error("name is required", 400)

        result = lifecycle.create_customer(
            gym_id=g.gym_id,
            name=name,
            user_id=g.user.id,
            email=data.get("email"),
            phone=data.get("phone"),
            address=data.get("address"),
            source=data.get("source"),
            notes=data.get("notes"),
            birthday=data.get("birthday"),
            join_date=data.get("join_date"),
            membership_type=data.get("membership_type"),
            membership_fees=data.get("membership_fees") or 0,
            membership_duration=data.get("membership_duration"),
            membership_start_date=data.get("membership_start_date"),
            payment_mode=data.get("payment_mode"),
            transaction_date=data.get("transaction_date"),
        )
        return jsonify({"success": True, "data": _membership_payload(result)}), 201

    except ValidationError as e:
        db.session.rollback()
        return _error(str(e), 400)
    except IntegrityError as e:
        db.session.rollback()
        return _error(str(e.orig), 400)
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error creating customer: {e}")
        return _error(str(e), 500)


@details_bp.route("/<int:customer_id>/renew-membership", methods=["POST"])
@gym_auth_required
def renew_membership(customer_id):
    """
    POST /api/customers/<customer_id>/renew-membership
    Purpose: Renew a membership with a new invoice and MEMBERSHIP_RENEWAL
             transaction.
    Input: membership_type, duration, fees (required); start_date,
           payment_mode, transaction_date (optional).
    """
    try:
        data = request.get_json(force=True, silent=True) or {}
        if not data.get("membership_type") or not data.get("duration") or not data.get("fees"):
            return _error("membership_type, duration and fees are required", 400)

        result = lifecycle.renew_membership(
            customer_id,
            gym_id=g.gym_id,
            membership_type=data["membership_type"],
            duration=data["duration"],
            fees=data["fees"],
            start_date=data.get("start_date"),
            payment_mode=data.get("payment_mode"),
            transaction_date=data.get("transaction_date"),
            user_id=g.user.id,
        )
        return jsonify({"success": True, "data": _membership_payload(result)})

    except ValidationError as e:
        db.session.rollback()
        return _error(str(e), 400)
    except NotFoundError as e:
        db.session.rollback()
        return _error(str(e), 404)
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error renewing membership for customer {customer_id}: {e}")
        return _error(str(e), 500)
