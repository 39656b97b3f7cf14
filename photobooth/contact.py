"""
Contact Module - Contact Form Delivery
======================================
Sends the contact form through the EmailJS REST API.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Optional

import requests


logger = logging.getLogger(__name__)

EMAILJS_SEND_URL = "https://api.emailjs.com/api/v1.0/email/send"

MISSING_FIELDS_MESSAGE = "Please fill in all fields."
SENT_MESSAGE = "Message sent! Thank you"
FAILED_MESSAGE = "Something went wrong. Please try again."


@dataclass
class ContactResult:
    """Outcome of a contact form submission."""
    success: bool
    message: str
    error: Optional[str] = None


class ContactClient:
    """
    EmailJS client.

    Args:
        public_key: EmailJS public key (``user_id``)
        service_id: EmailJS service
        template_id: EmailJS template
        timeout: Request timeout in seconds
    """

    def __init__(
        self,
        public_key: str,
        service_id: str,
        template_id: str,
        timeout: float = 10.0
    ):
        self.public_key = public_key
        self.service_id = service_id
        self.template_id = template_id
        self.timeout = timeout

    def submit(self, name: str, email: str, message: str) -> ContactResult:
        """
        Send the form.

        Empty fields are rejected before anything is sent.
        """
        name, email, message = name.strip(), email.strip(), message.strip()
        if not (name and email and message):
            return ContactResult(success=False, message=MISSING_FIELDS_MESSAGE)

        payload = {
            "service_id": self.service_id,
            "template_id": self.template_id,
            "user_id": self.public_key,
            "template_params": {
                "from_name": name,
                "from_email": email,
                "message": message,
            },
        }

        try:
            response = requests.post(EMAILJS_SEND_URL, json=payload, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error("Contact form failed: %s", e)
            return ContactResult(success=False, message=FAILED_MESSAGE, error=str(e))

        logger.info("Contact form sent for %s", email)
        return ContactResult(success=True, message=SENT_MESSAGE)

    def submit_async(
        self,
        name: str,
        email: str,
        message: str,
        on_complete: Callable[[ContactResult], None]
    ) -> threading.Thread:
        """Send the form on a background thread and report through ``on_complete``."""
        thread = threading.Thread(
            target=lambda: on_complete(self.submit(name, email, message)),
            daemon=True
        )
        thread.start()
        return thread
