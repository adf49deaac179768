from apscheduler.schedulers.background import BackgroundScheduler
import atexit
from datetime import datetime
from app.extensions import db
from app.services.email_service import EmailService
from app.services.lifecycle import get_expiring_assignments

scheduler = BackgroundScheduler()


def send_expiry_reminders(email_service=None):
    """
    Email every customer whose personal training ends within the expiry
    window. Must run inside an app context. Returns the number of emails sent.
    """
    email_service = email_service or EmailService()
    sent = 0
    for assignment in get_expiring_assignments():
        customer = assignment.customer
        if not customer or not customer.email:
            continue
        result = email_service.send_expiry_reminder(
            to_email=customer.email,
            customer_name=customer.name,
            gym_name=customer.gym.name if customer.gym else "your gym",
            trainer_name=assignment.trainer.name if assignment.trainer else "your trainer",
            end_date=assignment.end_date,
        )
        if result.get("success"):
            sent += 1
        else:
            print(
                f"[SCHEDULER] Reminder for assignment {assignment.id} failed: {result.get('error')}"
            )
    return sent


def init_scheduler(app):
    """Initialize the APScheduler scheduler with Flask app context."""

    @scheduler.scheduled_job("cron", hour=8, minute=0)
    def scheduled_task():
        """Daily personal training expiry reminders."""
        current_time_str = datetime.now().strftime("%Y-%m-%d %H:%M:%S")

        try:
            with app.app_context():
                sent = send_expiry_reminders()
                print(f"[SCHEDULER] {current_time_str} - Sent {sent} expiry reminder(s)")

        except Exception as e:
            print(f"[SCHEDULER] {current_time_str} - Error sending expiry reminders: {e}")
            with app.app_context():
                db.session.rollback()

    if not scheduler.running:
        scheduler.start()
        print("[SCHEDULER] Scheduler started")
    else:
        print("[SCHEDULER] Scheduler already running (skipping duplicate start)")

    # Shut down the scheduler when exiting the app
    atexit.register(lambda: scheduler.shutdown())
