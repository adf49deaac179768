# Side effects of personal-training and membership lifecycle events
"""
Every lifecycle event (create, update, renew, delete) touches several
records: the assignment or membership itself, the snapshot on the customer,
an invoice, a ledger transaction and the customer's running total_spent.

Each step is committed on its own. A failure part way through leaves the
earlier steps in place and propagates to the caller; nothing is rolled back
or retried.
"""
import datetime
from decimal import Decimal, InvalidOperation

from flask import current_app
from sqlalchemy import delete, select, update

from ..extensions import db
from ..models import (
    MEMBERSHIP_TYPES,
    PAYMENT_MODES,
    Customer,
    Invoice,
    InvoiceItem,
    PersonalTrainingAssignment,
    Trainer,
    Transaction,
)
from .errors import NotFoundError, ValidationError
from ..utils.dates import (
    calc_end_date,
    expiry_window,
    parse_date,
    parse_datetime,
    utcnow,
)
from ..utils.serializers import serialize_assignment

PERSONAL_TRAINING_PATTERN = "Personal Training"
PERSONAL_TRAINING_TYPES = ("PERSONAL_TRAINING", "PERSONAL_TRAINING_RENEWAL")


# -----------------------------------------------------------------------------
# Input coercion
# -----------------------------------------------------------------------------
def to_amount(value, field="fees", allow_zero=False) -> Decimal:
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"{field} must be numeric")
    if not amount.is_finite() or amount < 0 or (amount == 0 and not allow_zero):
        raise ValidationError(f"{field} must be greater than zero")
    return amount.quantize(Decimal("0.01"))


def to_duration(value, field="duration", minimum=1) -> int:
    if isinstance(value, float) and not value.is_integer():
        raise ValidationError(f"{field} must be a whole number of months")
    try:
        duration = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be a whole number of months")
    if duration < minimum:
        raise ValidationError(f"{field} must be at least {minimum} month(s)")
    return duration


def to_date(value, field):
    try:
        return parse_date(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be a valid ISO date (YYYY-MM-DD)")


def to_payment_mode(value) -> str:
    if not value:
        return "cash"
    mode = str(value).strip().lower().replace(" ", "_")
    if mode not in PAYMENT_MODES:
        raise ValidationError(
            f"payment_mode must be one of: {', '.join(PAYMENT_MODES)}"
        )
    return mode


def to_transaction_date(value):
    if not value:
        return utcnow()
    try:
        return parse_datetime(value)
    except (TypeError, ValueError):
        raise ValidationError("transaction_date must be a valid ISO date")


def _display_date(value):
    return value.strftime("%d/%m/%Y")


def _invoice_due_date():
    days = current_app.config.get("INVOICE_DUE_DAYS", 7)
    return utcnow() + datetime.timedelta(days=days)


def _at_midnight(value):
    return datetime.datetime.combine(value, datetime.time.min)


# -----------------------------------------------------------------------------
# Shared steps
# -----------------------------------------------------------------------------
def _get_customer(customer_id, gym_id=None):
    customer = db.session.get(Customer, customer_id)
    if not customer or (gym_id is not None and customer.gym_id != int(gym_id)):
        raise NotFoundError("Customer not found.")
    return customer


def _get_trainer(trainer_id, gym_id):
    trainer = db.session.get(Trainer, trainer_id)
    if not trainer or trainer.gym_id != int(gym_id):
        raise NotFoundError("Trainer not found.")
    return trainer


def get_assignment(assignment_id, gym_id=None):
    assignment = db.session.get(PersonalTrainingAssignment, assignment_id)
    if not assignment or (gym_id is not None and assignment.gym_id != int(gym_id)):
        raise NotFoundError("Assignment not found.")
    return assignment


def _write_snapshot(customer_id, assignment):
    """Overwrite customer.personal_trainer with the assignment (last write wins)."""
    db.session.execute(
        update(Customer)
        .where(Customer.id == customer_id)
        .values(personal_trainer=serialize_assignment(assignment, include_customer=False))
    )
    db.session.commit()


def _clear_snapshot(customer_id):
    db.session.execute(
        update(Customer).where(Customer.id == customer_id).values(personal_trainer=None)
    )
    db.session.commit()


def _increment_total_spent(customer_id, amount):
    db.session.execute(
        update(Customer)
        .where(Customer.id == customer_id)
        .values(total_spent=Customer.total_spent + amount)
    )
    db.session.commit()


def _create_invoice(
    *,
    user_id,
    gym_id,
    customer_id,
    amount,
    due_date,
    description,
    notes,
    quantity=1,
    unit_price=None,
    assignment_id=None,
):
    invoice = Invoice(
        user_id=user_id,
        gym_id=gym_id,
        customer_id=customer_id,
        assignment_id=assignment_id,
        amount=amount,
        currency=current_app.config.get("INVOICE_CURRENCY", "INR"),
        due_date=due_date,
        notes=notes,
        items=[
            InvoiceItem(
                description=description,
                quantity=quantity,
                unit_price=amount if unit_price is None else unit_price,
                amount=amount,
            )
        ],
    )
    db.session.add(invoice)
    db.session.commit()
    return invoice


def _create_transaction(
    *,
    customer_id,
    gym_id,
    invoice,
    transaction_type,
    amount,
    description,
    payment_mode="cash",
    transaction_date=None,
    membership_type=None,
):
    txn = Transaction(
        user_id=customer_id,
        gym_id=gym_id,
        invoice_id=invoice.id if invoice is not None else None,
        transaction_type=transaction_type,
        transaction_date=transaction_date or utcnow(),
        amount=amount,
        payment_mode=payment_mode,
        membership_type=membership_type,
        description=description,
        status="SUCCESS",
    )
    db.session.add(txn)
    db.session.commit()
    return txn


def _personal_training_invoices(customer_id, gym_id):
    return (
        select(Invoice)
        .where(
            Invoice.customer_id == customer_id,
            Invoice.gym_id == gym_id,
            Invoice.items.any(InvoiceItem.description.contains(PERSONAL_TRAINING_PATTERN)),
        )
        .order_by(Invoice.created_at.desc(), Invoice.id.desc())
    )


# -----------------------------------------------------------------------------
# Personal training assignments
# -----------------------------------------------------------------------------
def list_assignments(gym_id=None):
    query = select(PersonalTrainingAssignment).order_by(
        PersonalTrainingAssignment.start_date.desc()
    )
    if gym_id is not None:
        query = query.where(PersonalTrainingAssignment.gym_id == gym_id)
    return db.session.scalars(query).all()


def create_assignment(customer_id, trainer_id, gym_id, start_date, duration, fees, user_id=None):
    """
    Create an assignment and everything that hangs off it.

    Returns a dict with the assignment, its invoice and its transaction.
    """
    start = to_date(start_date, "start_date")
    duration = to_duration(duration)
    fees = to_amount(fees)
    end = calc_end_date(start, duration)

    _get_customer(customer_id, gym_id)
    _get_trainer(trainer_id, gym_id)

    assignment = PersonalTrainingAssignment(
        customer_id=customer_id,
        trainer_id=trainer_id,
        gym_id=gym_id,
        start_date=start,
        duration=duration,
        end_date=end,
        fees=fees,
    )
    db.session.add(assignment)
    db.session.commit()

    _write_snapshot(customer_id, assignment)

    invoice = _create_invoice(
        user_id=user_id,
        gym_id=gym_id,
        customer_id=customer_id,
        assignment_id=assignment.id,
        amount=fees,
        due_date=_invoice_due_date(),
        description=f"Personal Training with {duration} month(s) duration",
        notes=f"Personal training assignment starting {_display_date(start)}",
    )

    txn = _create_transaction(
        customer_id=customer_id,
        gym_id=gym_id,
        invoice=invoice,
        transaction_type="PERSONAL_TRAINING",
        amount=fees,
        description=f"Personal training fees for {duration} month(s)",
    )

    _increment_total_spent(customer_id, fees)

    current_app.logger.info(
        f"Assignment {assignment.id} created for customer {customer_id} "
        f"(invoice {invoice.invoice_number})"
    )
    return {"assignment": assignment, "invoice": invoice, "transaction": txn}


def update_assignment(assignment_id, customer_id, trainer_id, gym_id, start_date, duration, fees):
    """
    Edit an assignment in place.

    The most recent personal-training invoice and PERSONAL_TRAINING
    transaction of the customer are rewritten to match; when there is none the
    write is skipped. No new billing records are created.
    """
    assignment = get_assignment(assignment_id)

    start = to_date(start_date, "start_date")
    duration = to_duration(duration)
    fees = to_amount(fees)
    end = calc_end_date(start, duration)

    _get_customer(customer_id, gym_id)
    _get_trainer(trainer_id, gym_id)

    assignment.customer_id = customer_id
    assignment.trainer_id = trainer_id
    assignment.gym_id = gym_id
    assignment.start_date = start
    assignment.duration = duration
    assignment.end_date = end
    assignment.fees = fees
    db.session.commit()

    _write_snapshot(customer_id, assignment)

    invoice = db.session.scalars(_personal_training_invoices(customer_id, gym_id).limit(1)).first()
    if invoice:
        invoice.amount = fees
        invoice.due_date = _at_midnight(end)
        invoice.items = [
            InvoiceItem(
                description=f"Personal Training with {duration} month(s) duration",
                quantity=1,
                unit_price=fees,
                amount=fees,
            )
        ]
        invoice.notes = f"Personal training assignment starting {_display_date(start)}"
        db.session.commit()

    txn = db.session.scalars(
        select(Transaction)
        .where(
            Transaction.user_id == customer_id,
            Transaction.gym_id == gym_id,
            Transaction.transaction_type == "PERSONAL_TRAINING",
        )
        .order_by(Transaction.created_at.desc(), Transaction.id.desc())
        .limit(1)
    ).first()
    if txn:
        txn.amount = fees
        txn.description = f"Personal training fees for {duration} month(s)"
        txn.transaction_date = utcnow()
        db.session.commit()

    return assignment


def renew_assignment(
    assignment_id,
    start_date,
    duration,
    end_date,
    fees,
    gym_id,
    payment_mode=None,
    transaction_date=None,
    user_id=None,
):
    """
    Renew an assignment for a new term.

    end_date is taken from the caller as given. Every renewal appends a new
    invoice and a PERSONAL_TRAINING_RENEWAL transaction and adds the fees to
    total_spent again.
    """
    assignment = get_assignment(assignment_id, gym_id)

    start = to_date(start_date, "start_date")
    end = to_date(end_date, "end_date")
    duration = to_duration(duration)
    fees = to_amount(fees)
    payment_mode = to_payment_mode(payment_mode)
    transaction_date = to_transaction_date(transaction_date)

    assignment.start_date = start
    assignment.duration = duration
    assignment.end_date = end
    assignment.fees = fees
    db.session.commit()

    customer_id = assignment.customer_id
    _write_snapshot(customer_id, assignment)

    invoice = _create_invoice(
        user_id=user_id,
        gym_id=gym_id,
        customer_id=customer_id,
        assignment_id=assignment.id,
        amount=fees,
        due_date=_at_midnight(end),
        description=f"Personal Training Renewal ({duration} month(s))",
        quantity=duration,
        unit_price=(fees / duration).quantize(Decimal("0.01")),
        notes=f"Personal training renewal starting {_display_date(start)}",
    )

    txn = _create_transaction(
        customer_id=customer_id,
        gym_id=gym_id,
        invoice=invoice,
        transaction_type="PERSONAL_TRAINING_RENEWAL",
        amount=fees,
        description=f"Personal training renewal for {duration} month(s)",
        payment_mode=payment_mode,
        transaction_date=transaction_date,
        membership_type="none",
    )

    _increment_total_spent(customer_id, fees)

    current_app.logger.info(
        f"Assignment {assignment.id} renewed until {end.isoformat()} "
        f"(invoice {invoice.invoice_number})"
    )
    return {"assignment": assignment, "invoice": invoice, "transaction": txn}


def delete_assignment(assignment_id, gym_id=None):
    """
    Delete an assignment together with the customer's personal-training billing.

    The snapshot is cleared even if it points at a different assignment, and
    every personal-training invoice and transaction of the customer in this
    gym is removed, not only the ones raised for this assignment.
    """
    assignment = get_assignment(assignment_id, gym_id)
    customer_id = assignment.customer_id
    assignment_gym_id = assignment.gym_id

    _clear_snapshot(customer_id)

    invoice_ids = db.session.scalars(
        _personal_training_invoices(customer_id, assignment_gym_id).with_only_columns(Invoice.id)
    ).all()
    if invoice_ids:
        db.session.execute(
            delete(InvoiceItem)
            .where(InvoiceItem.invoice_id.in_(invoice_ids))
            .execution_options(synchronize_session=False)
        )
        db.session.execute(
            delete(Invoice)
            .where(Invoice.id.in_(invoice_ids))
            .execution_options(synchronize_session=False)
        )
        db.session.commit()

    db.session.execute(
        delete(Transaction)
        .where(
            Transaction.user_id == customer_id,
            Transaction.gym_id == assignment_gym_id,
            Transaction.transaction_type.in_(PERSONAL_TRAINING_TYPES),
        )
        .execution_options(synchronize_session=False)
    )
    db.session.commit()

    db.session.delete(assignment)
    db.session.commit()
    db.session.expire_all()

    current_app.logger.info(
        f"Assignment {assignment_id} deleted; removed {len(invoice_ids)} invoice(s)"
    )


def get_expiring_assignments(gym_id=None, today=None, days=None):
    """Assignments whose end_date falls within [today, today + days]."""
    if days is None:
        days = current_app.config.get("EXPIRY_WINDOW_DAYS", 7)
    window_start, window_end = expiry_window(days, today)

    query = (
        select(PersonalTrainingAssignment)
        .where(
            PersonalTrainingAssignment.end_date >= window_start,
            PersonalTrainingAssignment.end_date <= window_end,
        )
        .order_by(PersonalTrainingAssignment.end_date)
    )
    if gym_id is not None:
        query = query.where(PersonalTrainingAssignment.gym_id == gym_id)
    return db.session.scalars(query).all()


# -----------------------------------------------------------------------------
# Memberships
# -----------------------------------------------------------------------------
def _membership_type(value, allow_none=True):
    membership_type = (value or "none").strip().lower()
    if membership_type not in MEMBERSHIP_TYPES:
        raise ValidationError(
            f"membership_type must be one of: {', '.join(MEMBERSHIP_TYPES)}"
        )
    if membership_type == "none" and not allow_none:
        raise ValidationError("membership_type is required to renew a membership")
    return membership_type


def _bill_membership(
    customer, membership_type, duration, fees, start, end, transaction_type,
    payment_mode, transaction_date, user_id,
):
    label = membership_type.upper()
    kind = "joining" if transaction_type == "MEMBERSHIP_JOINING" else "renewal"

    invoice = _create_invoice(
        user_id=user_id,
        gym_id=customer.gym_id,
        customer_id=customer.id,
        amount=fees,
        due_date=_invoice_due_date(),
        description=f"{label} membership for {duration} month(s)",
        notes=f"{label} membership {kind} starting {_display_date(start)}",
    )
    txn = _create_transaction(
        customer_id=customer.id,
        gym_id=customer.gym_id,
        invoice=invoice,
        transaction_type=transaction_type,
        amount=fees,
        description=(
            f"{label} membership {kind} fees for {duration} months "
            f"({_display_date(start)} to {_display_date(end)})"
        ),
        payment_mode=payment_mode,
        transaction_date=transaction_date,
        membership_type=membership_type,
    )
    _increment_total_spent(customer.id, fees)
    return invoice, txn


def create_customer(
    gym_id,
    name,
    user_id=None,
    email=None,
    phone=None,
    address=None,
    source=None,
    notes=None,
    birthday=None,
    join_date=None,
    membership_type=None,
    membership_fees=0,
    membership_duration=0,
    membership_start_date=None,
    payment_mode=None,
    transaction_date=None,
):
    """
    Create a customer and, for a paid membership, its joining invoice and
    MEMBERSHIP_JOINING transaction.
    """
    membership_type = _membership_type(membership_type)
    fees = to_amount(membership_fees or 0, "membership_fees", allow_zero=True)
    payment_mode = to_payment_mode(payment_mode)
    transaction_date = to_transaction_date(transaction_date)

    start = end = None
    duration = 0
    if membership_type != "none":
        duration = to_duration(membership_duration, "membership_duration")
        start = to_date(membership_start_date or datetime.date.today(), "membership_start_date")
        end = calc_end_date(start, duration)

    customer = Customer(
        gym_id=gym_id,
        name=name,
        email=email,
        phone=phone,
        address=address,
        source=source,
        notes=notes,
        birthday=to_date(birthday, "birthday") if birthday else None,
        join_date=to_date(join_date, "join_date") if join_date else datetime.date.today(),
        total_spent=Decimal("0"),
        membership_type=membership_type,
        membership_fees=fees,
        membership_duration=duration,
        membership_start_date=start,
        membership_end_date=end,
    )
    db.session.add(customer)
    db.session.commit()

    invoice = txn = None
    if membership_type != "none" and fees > 0:
        invoice, txn = _bill_membership(
            customer, membership_type, duration, fees, start, end,
            "MEMBERSHIP_JOINING", payment_mode, transaction_date, user_id,
        )
        current_app.logger.info(
            f"Customer {customer.id} joined with {membership_type} membership "
            f"(invoice {invoice.invoice_number})"
        )

    return {"customer": customer, "invoice": invoice, "transaction": txn}


def renew_membership(
    customer_id,
    gym_id,
    membership_type,
    duration,
    fees,
    start_date=None,
    payment_mode=None,
    transaction_date=None,
    user_id=None,
):
    """
    Renew a membership. Like assignment renewals, this always appends a new
    invoice and MEMBERSHIP_RENEWAL transaction.

    Without a start_date the new term starts the day after the current one
    ends, or today when the membership has already lapsed.
    """
    customer = _get_customer(customer_id, gym_id)

    membership_type = _membership_type(membership_type, allow_none=False)
    duration = to_duration(duration)
    fees = to_amount(fees)
    payment_mode = to_payment_mode(payment_mode)
    transaction_date = to_transaction_date(transaction_date)

    if start_date:
        start = to_date(start_date, "start_date")
    else:
        start = datetime.date.today()
        current_end = customer.membership_end_date
        if current_end and current_end >= start:
            start = current_end + datetime.timedelta(days=1)
    end = calc_end_date(start, duration)

    customer.membership_type = membership_type
    customer.membership_duration = duration
    customer.membership_fees = fees
    customer.membership_start_date = start
    customer.membership_end_date = end
    db.session.commit()

    invoice, txn = _bill_membership(
        customer, membership_type, duration, fees, start, end,
        "MEMBERSHIP_RENEWAL", payment_mode, transaction_date, user_id,
    )
    db.session.refresh(customer)

    current_app.logger.info(
        f"Customer {customer.id} renewed {membership_type} membership until "
        f"{end.isoformat()} (invoice {invoice.invoice_number})"
    )
    return {"customer": customer, "invoice": invoice, "transaction": txn}


CUSTOMER_PROFILE_FIELDS = ("email", "phone", "address", "source", "notes")


def update_customer(customer_id, gym_id, changes):
    """
    Edit a customer's profile and membership fields.

    Only keys present in `changes` are touched. membership_end_date is
    recomputed from the resulting start date and duration. No billing records
    are written; renewals go through renew_membership.
    """
    customer = _get_customer(customer_id, gym_id)

    if "name" in changes:
        name = (changes["name"] or "").strip()
        if not name:
            raise ValidationError("name cannot be empty")
        customer.name = name
    for field in CUSTOMER_PROFILE_FIELDS:
        if field in changes:
            setattr(customer, field, changes[field])
    if "birthday" in changes:
        birthday = changes["birthday"]
        customer.birthday = to_date(birthday, "birthday") if birthday else None
    if changes.get("join_date"):
        customer.join_date = to_date(changes["join_date"], "join_date")

    if "membership_type" in changes:
        customer.membership_type = _membership_type(changes["membership_type"])
    if "membership_fees" in changes:
        customer.membership_fees = to_amount(
            changes["membership_fees"] or 0, "membership_fees", allow_zero=True
        )
    if "membership_duration" in changes:
        customer.membership_duration = to_duration(
            changes["membership_duration"] or 0, "membership_duration", minimum=0
        )
    if "membership_start_date" in changes:
        start = changes["membership_start_date"]
        customer.membership_start_date = (
            to_date(start, "membership_start_date") if start else None
        )

    if customer.membership_type == "none":
        customer.membership_end_date = None
    elif customer.membership_start_date and customer.membership_duration:
        customer.membership_end_date = calc_end_date(
            customer.membership_start_date, customer.membership_duration
        )
    else:
        customer.membership_end_date = None

    db.session.commit()
    return customer


def delete_customer(customer_id, gym_id):
    """
    Delete a customer with their assignments, invoices and transactions.
    """
    customer = _get_customer(customer_id, gym_id)

    invoice_ids = db.session.scalars(
        select(Invoice.id).where(Invoice.customer_id == customer.id)
    ).all()
    if invoice_ids:
        db.session.execute(
            delete(InvoiceItem)
            .where(InvoiceItem.invoice_id.in_(invoice_ids))
            .execution_options(synchronize_session=False)
        )
    db.session.execute(
        delete(Transaction)
        .where(Transaction.user_id == customer.id)
        .execution_options(synchronize_session=False)
    )
    db.session.execute(
        delete(Invoice)
        .where(Invoice.customer_id == customer.id)
        .execution_options(synchronize_session=False)
    )
    db.session.execute(
        delete(PersonalTrainingAssignment)
        .where(PersonalTrainingAssignment.customer_id == customer.id)
        .execution_options(synchronize_session=False)
    )
    db.session.execute(
        delete(Customer)
        .where(Customer.id == customer.id)
        .execution_options(synchronize_session=False)
    )
    db.session.commit()
    db.session.expire_all()

    current_app.logger.info(
        f"Customer {customer_id} deleted with {len(invoice_ids)} invoice(s)"
    )
