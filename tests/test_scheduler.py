import datetime
from decimal import Decimal

from app.models import Customer, PersonalTrainingAssignment
from app.scheduler import send_expiry_reminders


class FakeEmailService:
    def __init__(self, fail_for=()):
        self.sent = []
        self.fail_for = set(fail_for)

    def send_expiry_reminder(self, to_email, customer_name, gym_name, trainer_name, end_date):
        if to_email in self.fail_for:
            return {"success": False, "error": "mailbox unavailable"}
        self.sent.append((to_email, customer_name, gym_name, trainer_name, end_date))
        return {"success": True, "message": "Email sent successfully"}


def _assign(db, customer, trainer, gym, ends_in):
    today = datetime.date.today()
    db.session.add(
        PersonalTrainingAssignment(
            customer_id=customer.id,
            trainer_id=trainer.id,
            gym_id=gym.id,
            start_date=today - datetime.timedelta(days=60),
            duration=2,
            end_date=today + datetime.timedelta(days=ends_in),
            fees=Decimal("2000"),
        )
    )
    db.session.commit()


class TestExpiryReminders:
    def test_sends_for_expiring_assignments(self, db, sample_gym, sample_customer, sample_trainer):
        _assign(db, sample_customer, sample_trainer, sample_gym, ends_in=2)
        _assign(db, sample_customer, sample_trainer, sample_gym, ends_in=30)
        service = FakeEmailService()

        sent = send_expiry_reminders(service)

        assert sent == 1
        to_email, customer_name, gym_name, trainer_name, end_date = service.sent[0]
        assert to_email == "asha@example.com"
        assert gym_name == "Iron Temple"
        assert trainer_name == "Vikram Singh"
        assert end_date == datetime.date.today() + datetime.timedelta(days=2)

    def test_skips_customers_without_email(self, db, sample_gym, sample_trainer):
        customer = Customer(gym_id=sample_gym.id, name="No Mail", total_spent=Decimal("0"))
        db.session.add(customer)
        db.session.commit()
        _assign(db, customer, sample_trainer, sample_gym, ends_in=1)
        service = FakeEmailService()

        assert send_expiry_reminders(service) == 0
        assert service.sent == []

    def test_failed_send_is_not_counted(self, db, sample_gym, sample_customer, sample_trainer):
        _assign(db, sample_customer, sample_trainer, sample_gym, ends_in=0)
        service = FakeEmailService(fail_for={"asha@example.com"})

        assert send_expiry_reminders(service) == 0

    def test_default_service_in_test_mode(self, db, sample_gym, sample_customer, sample_trainer):
        _assign(db, sample_customer, sample_trainer, sample_gym, ends_in=3)

        assert send_expiry_reminders() == 1
