import datetime


def _iso(value):
    return value.isoformat() if value else None


def _money(value):
    return float(value) if value is not None else None


def membership_status(customer, today=None):
    if customer.membership_type == "none" or not customer.membership_end_date:
        return "none"
    today = today or datetime.date.today()
    return "active" if customer.membership_end_date >= today else "expired"


def serialize_trainer(trainer):
    if trainer is None:
        return None
    return {
        "id": trainer.id,
        "gym_id": trainer.gym_id,
        "name": trainer.name,
        "email": trainer.email,
        "phone": trainer.phone,
        "specialization": trainer.specialization,
        "experience": trainer.experience,
        "status": trainer.status,
        "bio": trainer.bio,
    }


def serialize_assignment(assignment, include_customer=True):
    """
    Full assignment payload. The same shape is stored on the customer as the
    personal_trainer snapshot (with include_customer=False).
    """
    data = {
        "id": assignment.id,
        "customer_id": assignment.customer_id,
        "trainer_id": assignment.trainer_id,
        "gym_id": assignment.gym_id,
        "start_date": _iso(assignment.start_date),
        "duration": assignment.duration,
        "end_date": _iso(assignment.end_date),
        "fees": _money(assignment.fees),
        "trainer": serialize_trainer(assignment.trainer),
    }
    if include_customer and assignment.customer is not None:
        data["customer"] = {
            "id": assignment.customer.id,
            "name": assignment.customer.name,
            "email": assignment.customer.email,
            "phone": assignment.customer.phone,
        }
    return data


def serialize_customer(customer):
    return {
        "id": customer.id,
        "gym_id": customer.gym_id,
        "name": customer.name,
        "email": customer.email,
        "phone": customer.phone,
        "address": customer.address,
        "source": customer.source,
        "notes": customer.notes,
        "birthday": _iso(customer.birthday),
        "join_date": _iso(customer.join_date),
        "total_spent": _money(customer.total_spent),
        "membership_type": customer.membership_type,
        "membership_fees": _money(customer.membership_fees),
        "membership_duration": customer.membership_duration,
        "membership_start_date": _iso(customer.membership_start_date),
        "membership_end_date": _iso(customer.membership_end_date),
        "membership_status": membership_status(customer),
        "personal_trainer": customer.personal_trainer,
    }


def serialize_invoice(invoice):
    return {
        "id": invoice.id,
        "invoice_number": invoice.invoice_number,
        "user_id": invoice.user_id,
        "gym_id": invoice.gym_id,
        "customer_id": invoice.customer_id,
        "assignment_id": invoice.assignment_id,
        "amount": _money(invoice.amount),
        "currency": invoice.currency,
        "due_date": _iso(invoice.due_date),
        "notes": invoice.notes,
        "items": [
            {
                "description": item.description,
                "quantity": item.quantity,
                "unit_price": _money(item.unit_price),
                "amount": _money(item.amount),
            }
            for item in invoice.items
        ],
        "created_at": _iso(invoice.created_at),
        "updated_at": _iso(invoice.updated_at),
    }


def serialize_transaction(txn):
    return {
        "id": txn.id,
        "user_id": txn.user_id,
        "gym_id": txn.gym_id,
        "invoice_id": txn.invoice_id,
        "transaction_type": txn.transaction_type,
        "transaction_date": _iso(txn.transaction_date),
        "amount": _money(txn.amount),
        "payment_mode": txn.payment_mode,
        "membership_type": txn.membership_type,
        "description": txn.description,
        "status": txn.status,
        "created_at": _iso(txn.created_at),
    }
