# Invoices and the transaction ledger
from flask import Blueprint, current_app, g, jsonify, request
from sqlalchemy import select
from sqlalchemy.orm import selectinload

from ...extensions import db
from ...models import TRANSACTION_TYPES, Invoice, Transaction
from ...utils.auth import gym_auth_required
from ...utils.serializers import serialize_invoice, serialize_transaction

receipts_bp = Blueprint("receipts", __name__, url_prefix="/api")


@receipts_bp.route("/invoices", methods=["GET"])
@gym_auth_required
def get_invoices():
    """
    Returns the invoices of the caller's gym, newest first.
    Optional ?customer_id= narrows the list to one customer.
    """
    try:
        query = (
            select(Invoice)
            .where(Invoice.gym_id == g.gym_id)
            .options(selectinload(Invoice.items))
            .order_by(Invoice.created_at.desc(), Invoice.id.desc())
        )
        customer_id = request.args.get("customer_id", type=int)
        if customer_id:
            query = query.where(Invoice.customer_id == customer_id)

        invoices = db.session.scalars(query).all()
        return jsonify({"success": True, "data": [serialize_invoice(i) for i in invoices]})

    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error fetching invoices: {e}")
        return jsonify({"success": False, "error": str(e)}), 500


@receipts_bp.route("/invoices/<int:invoice_id>", methods=["GET"])
@gym_auth_required
def get_invoice(invoice_id):
    invoice = db.session.get(Invoice, invoice_id)
    if not invoice or invoice.gym_id != g.gym_id:
        return jsonify({"success": False, "error": "Invoice not found"}), 404
    return jsonify({"success": True, "data": serialize_invoice(invoice)})


@receipts_bp.route("/transactions", methods=["GET"])
@gym_auth_required
def get_transactions():
    """
    Returns the ledger of the caller's gym, latest transaction date first.
    Optional filters: ?customer_id= and ?transaction_type=.
    """
    try:
        query = (
            select(Transaction)
            .where(Transaction.gym_id == g.gym_id)
            .order_by(Transaction.transaction_date.desc(), Transaction.id.desc())
        )

        customer_id = request.args.get("customer_id", type=int)
        if customer_id:
            query = query.where(Transaction.user_id == customer_id)

        transaction_type = request.args.get("transaction_type")
        if transaction_type:
            transaction_type = transaction_type.upper()
            if transaction_type not in TRANSACTION_TYPES:
                return (
                    jsonify(
                        {
                            "success": False,
                            "error": f"transaction_type must be one of: {', '.join(TRANSACTION_TYPES)}",
                        }
                    ),
                    400,
                )
            query = query.where(Transaction.transaction_type == transaction_type)

        transactions = db.session.scalars(query).all()
        return jsonify(
            {"success": True, "data": [serialize_transaction(t) for t in transactions]}
        )

    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error fetching transactions: {e}")
        return jsonify({"success": False, "error": str(e)}), 500
