from typing import List, Optional

from sqlalchemy import (
    JSON,
    DECIMAL,
    Column,
    Date,
    DateTime,
    Enum,
    ForeignKeyConstraint,
    Index,
    Integer,
    String,
    Table,
    Text,
    event,
    func,
    insert,
    select,
    update,
)
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Mapped, declarative_base, mapped_column, relationship

from .utils.invoice_numbers import format_invoice_number, parse_invoice_number

Base = declarative_base()
metadata = Base.metadata

MEMBERSHIP_TYPES = ("none", "basic", "premium", "vip")
TRANSACTION_TYPES = (
    "MEMBERSHIP_JOINING",
    "MEMBERSHIP_RENEWAL",
    "PERSONAL_TRAINING",
    "PERSONAL_TRAINING_RENEWAL",
)
PAYMENT_MODES = ("cash", "card", "credit_card", "debit_card", "upi", "online", "bank_transfer")


class Gym(Base):
    __tablename__ = "gym"
    __table_args__ = {"comment": "Tenant boundary; nearly every query is scoped by gym."}

    id = mapped_column(Integer, primary_key=True)
    name = mapped_column(String(255), nullable=False)
    address = mapped_column(String(255))
    phone = mapped_column(String(32))
    created_at = mapped_column(DateTime, nullable=False, server_default=func.now())
    updated_at = mapped_column(
        DateTime, nullable=False, server_default=func.now(), onupdate=func.now()
    )

    users: Mapped[List["AuthUser"]] = relationship(
        "AuthUser", uselist=True, back_populates="gym"
    )
    customers: Mapped[List["Customer"]] = relationship(
        "Customer", uselist=True, back_populates="gym"
    )
    trainers: Mapped[List["Trainer"]] = relationship(
        "Trainer", uselist=True, back_populates="gym"
    )


class AuthUser(Base):
    __tablename__ = "auth_user"
    __table_args__ = (
        ForeignKeyConstraint(
            ["gym_id"], ["gym.id"], ondelete="SET NULL", name="fk_auth_user_gym"
        ),
        Index("email", "email", unique=True),
        Index("fk_auth_user_gym", "gym_id"),
    )

    id = mapped_column(Integer, primary_key=True)
    email = mapped_column(String(255), nullable=False)
    password_hash = mapped_column(String(72), nullable=False)
    role = mapped_column(Enum("OWNER", "ADMIN", "STAFF"), nullable=False)
    name = mapped_column(String(255))
    gym_id = mapped_column(Integer)
    created_at = mapped_column(DateTime, nullable=False, server_default=func.now())
    updated_at = mapped_column(
        DateTime, nullable=False, server_default=func.now(), onupdate=func.now()
    )

    gym: Mapped[Optional["Gym"]] = relationship("Gym", back_populates="users")


class Customer(Base):
    __tablename__ = "customer"
    __table_args__ = (
        ForeignKeyConstraint(
            ["gym_id"], ["gym.id"], ondelete="CASCADE", name="fk_customer_gym"
        ),
        Index("fk_customer_gym", "gym_id"),
    )

    id = mapped_column(Integer, primary_key=True)
    gym_id = mapped_column(Integer, nullable=False)
    name = mapped_column(String(255), nullable=False)
    email = mapped_column(String(255))
    phone = mapped_column(String(32))
    address = mapped_column(String(255))
    source = mapped_column(String(64))
    notes = mapped_column(Text)
    birthday = mapped_column(Date)
    join_date = mapped_column(Date)
    total_spent = mapped_column(DECIMAL(10, 2), nullable=False, default=0)

    membership_type = mapped_column(Enum(*MEMBERSHIP_TYPES), nullable=False, default="none")
    membership_fees = mapped_column(DECIMAL(10, 2), nullable=False, default=0)
    membership_duration = mapped_column(Integer, nullable=False, default=0)
    membership_start_date = mapped_column(Date)
    membership_end_date = mapped_column(Date)

    # Denormalized copy of the active personal-training assignment
    personal_trainer = mapped_column(JSON(none_as_null=True))

    created_at = mapped_column(DateTime, nullable=False, server_default=func.now())
    updated_at = mapped_column(
        DateTime, nullable=False, server_default=func.now(), onupdate=func.now()
    )

    gym: Mapped["Gym"] = relationship("Gym", back_populates="customers")
    assignments: Mapped[List["PersonalTrainingAssignment"]] = relationship(
        "PersonalTrainingAssignment", uselist=True, back_populates="customer"
    )


class Trainer(Base):
    __tablename__ = "trainer"
    __table_args__ = (
        ForeignKeyConstraint(
            ["gym_id"], ["gym.id"], ondelete="CASCADE", name="fk_trainer_gym"
        ),
        Index("fk_trainer_gym", "gym_id"),
    )

    id = mapped_column(Integer, primary_key=True)
    gym_id = mapped_column(Integer, nullable=False)
    name = mapped_column(String(255), nullable=False)
    email = mapped_column(String(255))
    phone = mapped_column(String(32))
    specialization = mapped_column(String(255))
    experience = mapped_column(Integer)
    status = mapped_column(Enum("active", "inactive"), nullable=False, default="active")
    bio = mapped_column(Text)
    created_at = mapped_column(DateTime, nullable=False, server_default=func.now())
    updated_at = mapped_column(
        DateTime, nullable=False, server_default=func.now(), onupdate=func.now()
    )

    gym: Mapped["Gym"] = relationship("Gym", back_populates="trainers")
    assignments: Mapped[List["PersonalTrainingAssignment"]] = relationship(
        "PersonalTrainingAssignment", uselist=True, back_populates="trainer"
    )


class PersonalTrainingAssignment(Base):
    __tablename__ = "personal_training_assignment"
    __table_args__ = (
        ForeignKeyConstraint(
            ["customer_id"], ["customer.id"], ondelete="CASCADE", name="fk_pta_customer"
        ),
        ForeignKeyConstraint(
            ["trainer_id"], ["trainer.id"], ondelete="CASCADE", name="fk_pta_trainer"
        ),
        ForeignKeyConstraint(["gym_id"], ["gym.id"], ondelete="CASCADE", name="fk_pta_gym"),
        Index("fk_pta_customer", "customer_id"),
        Index("fk_pta_trainer", "trainer_id"),
        Index("idx_pta_gym_end_date", "gym_id", "end_date"),
    )

    id = mapped_column(Integer, primary_key=True)
    customer_id = mapped_column(Integer, nullable=False)
    trainer_id = mapped_column(Integer, nullable=False)
    gym_id = mapped_column(Integer, nullable=False)
    start_date = mapped_column(Date, nullable=False)
    duration = mapped_column(Integer, nullable=False)
    end_date = mapped_column(Date, nullable=False)
    fees = mapped_column(DECIMAL(10, 2), nullable=False)
    created_at = mapped_column(DateTime, nullable=False, server_default=func.now())
    updated_at = mapped_column(
        DateTime, nullable=False, server_default=func.now(), onupdate=func.now()
    )

    customer: Mapped["Customer"] = relationship("Customer", back_populates="assignments")
    trainer: Mapped["Trainer"] = relationship("Trainer", back_populates="assignments")


class Invoice(Base):
    __tablename__ = "invoice"
    __table_args__ = (
        ForeignKeyConstraint(
            ["customer_id"], ["customer.id"], ondelete="CASCADE", name="fk_inv_customer"
        ),
        ForeignKeyConstraint(["gym_id"], ["gym.id"], ondelete="CASCADE", name="fk_inv_gym"),
        ForeignKeyConstraint(
            ["user_id"], ["auth_user.id"], ondelete="SET NULL", name="fk_inv_user"
        ),
        ForeignKeyConstraint(
            ["assignment_id"],
            ["personal_training_assignment.id"],
            ondelete="SET NULL",
            name="fk_inv_assignment",
        ),
        Index("invoice_number", "invoice_number", unique=True),
        Index("idx_inv_customer_gym", "customer_id", "gym_id"),
        Index("idx_inv_user_created", "user_id", "created_at"),
    )

    id = mapped_column(Integer, primary_key=True)
    invoice_number = mapped_column(String(32), nullable=False)
    user_id = mapped_column(Integer)
    gym_id = mapped_column(Integer, nullable=False)
    customer_id = mapped_column(Integer, nullable=False)
    assignment_id = mapped_column(Integer)
    amount = mapped_column(DECIMAL(10, 2), nullable=False)
    currency = mapped_column(String(8), nullable=False, default="INR")
    due_date = mapped_column(DateTime, nullable=False)
    notes = mapped_column(Text)
    created_at = mapped_column(DateTime, nullable=False, server_default=func.now())
    updated_at = mapped_column(
        DateTime, nullable=False, server_default=func.now(), onupdate=func.now()
    )

    items: Mapped[List["InvoiceItem"]] = relationship(
        "InvoiceItem",
        uselist=True,
        back_populates="invoice",
        cascade="all, delete-orphan",
        order_by="InvoiceItem.id",
    )
    transactions: Mapped[List["Transaction"]] = relationship(
        "Transaction", uselist=True, back_populates="invoice"
    )


class InvoiceItem(Base):
    __tablename__ = "invoice_item"
    __table_args__ = (
        ForeignKeyConstraint(
            ["invoice_id"], ["invoice.id"], ondelete="CASCADE", name="fk_item_invoice"
        ),
        Index("fk_item_invoice", "invoice_id"),
    )

    id = mapped_column(Integer, primary_key=True)
    invoice_id = mapped_column(Integer, nullable=False)
    description = mapped_column(String(255), nullable=False)
    quantity = mapped_column(Integer, nullable=False, default=1)
    unit_price = mapped_column(DECIMAL(10, 2), nullable=False)
    amount = mapped_column(DECIMAL(10, 2), nullable=False)

    invoice: Mapped["Invoice"] = relationship("Invoice", back_populates="items")


class Transaction(Base):
    __tablename__ = "payment_transaction"
    __table_args__ = (
        ForeignKeyConstraint(
            ["user_id"], ["customer.id"], ondelete="CASCADE", name="fk_txn_customer"
        ),
        ForeignKeyConstraint(["gym_id"], ["gym.id"], ondelete="CASCADE", name="fk_txn_gym"),
        ForeignKeyConstraint(
            ["invoice_id"], ["invoice.id"], ondelete="SET NULL", name="fk_txn_invoice"
        ),
        Index("idx_txn_user_gym_type", "user_id", "gym_id", "transaction_type"),
        Index("fk_txn_invoice", "invoice_id"),
    )

    id = mapped_column(Integer, primary_key=True)
    # Ledger entries are keyed by the customer they were charged to
    user_id = mapped_column(Integer, nullable=False)
    gym_id = mapped_column(Integer, nullable=False)
    invoice_id = mapped_column(Integer)
    transaction_type = mapped_column(Enum(*TRANSACTION_TYPES), nullable=False)
    transaction_date = mapped_column(DateTime, nullable=False)
    amount = mapped_column(DECIMAL(10, 2), nullable=False)
    payment_mode = mapped_column(String(32), nullable=False, default="cash")
    membership_type = mapped_column(String(16))
    description = mapped_column(String(255))
    status = mapped_column(Enum("SUCCESS"), nullable=False, default="SUCCESS")
    created_at = mapped_column(DateTime, nullable=False, server_default=func.now())
    updated_at = mapped_column(
        DateTime, nullable=False, server_default=func.now(), onupdate=func.now()
    )

    invoice: Mapped[Optional["Invoice"]] = relationship(
        "Invoice", back_populates="transactions"
    )


t_invoice_sequence = Table(
    "invoice_sequence",
    metadata,
    Column("name", String(32), primary_key=True),
    Column("last_value", Integer, nullable=False),
    comment="Single-row counters backing invoice numbers.",
)

INVOICE_SEQUENCE_NAME = "invoice"


def allocate_invoice_number(connection) -> str:
    """
    Take the next invoice number from the invoice_sequence counter.

    The increment is one UPDATE statement, so two inserts can never read the
    same value. On first use the counter is seeded from the most recently
    created invoice so numbering carries on from existing rows. When another
    insert seeds the counter first, the seed fails on the primary key and the
    increment is applied to that row instead.
    """
    seq = t_invoice_sequence.c
    bump = (
        update(t_invoice_sequence)
        .where(seq.name == INVOICE_SEQUENCE_NAME)
        .values(last_value=seq.last_value + 1)
    )
    result = connection.execute(bump)
    if result.rowcount == 0:
        last_number = connection.execute(
            select(Invoice.__table__.c.invoice_number)
            .order_by(Invoice.__table__.c.created_at.desc(), Invoice.__table__.c.id.desc())
            .limit(1)
        ).scalar()
        try:
            connection.execute(
                insert(t_invoice_sequence).values(
                    name=INVOICE_SEQUENCE_NAME,
                    last_value=parse_invoice_number(last_number) + 1,
                )
            )
        except IntegrityError:
            connection.execute(bump)

    value = connection.execute(
        select(seq.last_value).where(seq.name == INVOICE_SEQUENCE_NAME)
    ).scalar_one()
    return format_invoice_number(value)


@event.listens_for(Invoice, "before_insert")
def assign_invoice_number(mapper, connection, target):
    if not target.invoice_number:
        target.invoice_number = allocate_invoice_number(connection)
