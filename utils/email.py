# utils/email.py
import os

import requests
import structlog

from errors import NotificationFailure

logger = structlog.get_logger(__name__)

BREVO_KEY = os.getenv("BREVO_API_KEY")
BREVO_URL = "https://api.brevo.com/v3/smtp/email"
SENDER_EMAIL = os.getenv("BREVO_SENDER_EMAIL", "noreply@condoease.me")


def send_invoice_email(to_email: str, invoice) -> None:
     if not BREVO_KEY:
          raise NotificationFailure("BREVO_API_KEY is not set")

     try:
          response = requests.post(
               BREVO_URL,
               headers={
                    "api-key": BREVO_KEY,
                    "Content-Type": "application/json",
               },
               json={
                    "sender": {"name": "Billing", "email": SENDER_EMAIL},
                    "to": [{"email": to_email}],
                    "subject": f"Invoice {invoice.invoice_number}",
                    "htmlContent": f"""
                         <h2>Invoice {invoice.invoice_number}</h2>
                         <p>Amount due: <strong>{invoice.total_amount}</strong></p>
                         <p>Due date: {invoice.due_date.isoformat()}</p>
                    """,
               },
               timeout=10,
          )
     except requests.RequestException as e:
          raise NotificationFailure(f"Brevo unreachable: {e}")
     if response.status_code not in (200, 201, 202):
          raise NotificationFailure(f"Brevo error: {response.text}")
     logger.info("Invoice e-mailed", invoice_number=invoice.invoice_number, to=to_email)
