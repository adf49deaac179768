# Customer notifications
import os
import resend
from typing import Dict
from dotenv import load_dotenv

load_dotenv()


class EmailService:
    """
    Centralized email service using Resend
    """

    def __init__(self):
        """Initialize Resend with API key"""
        if os.getenv("TESTING") == "True":
            self.disabled = True
            self.api_key = None
            self.from_email = "test@example.com"
            print("⚠️ EmailService running in TEST MODE - no API key required")
            return
        self.disabled = False
        self.api_key = os.getenv("RESEND_API_KEY")
        if not self.api_key:
            raise ValueError("RESEND_API_KEY environment variable is required")

        resend.api_key = self.api_key
        self.from_email = os.getenv("RESEND_FROM_EMAIL", "onboarding@resend.dev")

    def _send(self, params) -> Dict:
        if self.disabled:
            return {"success": True, "message": "Email skipped in test mode"}
        email_response = resend.Emails.send(params)
        return {
            "success": True,
            "message": "Email sent successfully",
            "email_id": email_response.get("id"),
        }

    def send_expiry_reminder(
        self,
        to_email,
        customer_name,
        gym_name,
        trainer_name,
        end_date,
    ) -> Dict:
        """
        Remind a customer that their personal training ends soon.

        Args:
            to_email: Recipient email address
            customer_name: Customer's display name
            gym_name: Gym the assignment belongs to
            trainer_name: Assigned trainer
            end_date: Last day of the assignment (date)

        Returns:
            Dict with 'success' boolean and 'message' or 'error'
        """
        try:
            html_content = f"""
                <html>
                    <body style="font-family: 'Segoe UI', Arial, sans-serif;">
                        <h2>Your personal training is ending soon</h2>
                        <p>Hi <strong>{customer_name}</strong>,</p>
                        <p>
                            Your personal training with <strong>{trainer_name}</strong>
                            at <strong>{gym_name}</strong> ends on
                            <strong>{end_date.strftime('%d/%m/%Y')}</strong>.
                        </p>
                        <p>Visit the front desk to renew and keep your progress going.</p>
                    </body>
                </html>
            """
            params = {
                "from": self.from_email,
                "to": [to_email],
                "subject": f"{gym_name}: personal training ends {end_date.strftime('%d %b')}",
                "html": html_content,
            }
            return self._send(params)

        except Exception as e:
            return {"success": False, "error": str(e)}
