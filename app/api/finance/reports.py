# Financial metrics for the gym dashboard
from datetime import datetime
from io import BytesIO

import pandas as pd
from flask import Blueprint, g, jsonify, send_file
from sqlalchemy import func, select

from ...extensions import db
from ...models import Customer, Invoice, Transaction
from ...utils.auth import gym_auth_required

finance_bp = Blueprint("finance", __name__, url_prefix="/api/finance")

LEDGER_COLUMNS = [
    "Transaction ID",
    "Date",
    "Customer",
    "Type",
    "Amount",
    "Payment Mode",
    "Invoice",
    "Description",
]


def _ledger_frame(gym_id):
    rows = db.session.execute(
        select(
            Transaction.id,
            Transaction.transaction_date,
            Customer.name,
            Transaction.transaction_type,
            Transaction.amount,
            Transaction.payment_mode,
            Invoice.invoice_number,
            Transaction.description,
        )
        .join(Customer, Customer.id == Transaction.user_id)
        .outerjoin(Invoice, Invoice.id == Transaction.invoice_id)
        .where(Transaction.gym_id == gym_id)
        .order_by(Transaction.transaction_date.desc(), Transaction.id.desc())
    ).all()
    df = pd.DataFrame(rows, columns=LEDGER_COLUMNS)
    if not df.empty:
        df["Amount"] = df["Amount"].astype(float)
    return df


@finance_bp.route("/summary", methods=["GET"])
@gym_auth_required
def get_summary():
    """Revenue totals for the caller's gym: overall, per type and per month."""
    df = _ledger_frame(g.gym_id)

    total_customers = (
        db.session.query(func.count(Customer.id))
        .filter(Customer.gym_id == g.gym_id)
        .scalar()
        or 0
    )

    if df.empty:
        return jsonify(
            {
                "success": True,
                "data": {
                    "total_revenue": 0.0,
                    "transaction_count": 0,
                    "total_customers": total_customers,
                    "revenue_by_type": {},
                    "revenue_by_month": [],
                },
            }
        )

    by_type = df.groupby("Type")["Amount"].sum().round(2)
    months = pd.to_datetime(df["Date"]).dt.strftime("%Y-%m")
    by_month = df.groupby(months)["Amount"].sum().round(2).sort_index(ascending=False)

    return jsonify(
        {
            "success": True,
            "data": {
                "total_revenue": round(float(df["Amount"].sum()), 2),
                "transaction_count": int(len(df)),
                "total_customers": total_customers,
                "revenue_by_type": {k: float(v) for k, v in by_type.items()},
                "revenue_by_month": [
                    {"month": month, "revenue": float(revenue)}
                    for month, revenue in by_month.items()
                ],
            },
        }
    )


@finance_bp.route("/transactions/export", methods=["GET"])
@gym_auth_required
def export_transactions():
    """Download the gym's ledger as CSV."""
    df = _ledger_frame(g.gym_id)
    output = BytesIO(df.to_csv(index=False).encode("utf-8"))
    filename = f"transactions_{datetime.now().strftime('%Y%m%d_%H%M%S')}.csv"

    return send_file(
        output,
        as_attachment=True,
        download_name=filename,
        mimetype="text/csv",
    )
