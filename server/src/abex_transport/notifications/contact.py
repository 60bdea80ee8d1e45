from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping

import resend
from jinja2 import Environment
from starlette.concurrency import run_in_threadpool

from abex_transport.errors import ContactDeliveryError, ContactFormError
from abex_transport.leads.fields import format_phone_number, normalize_phone_number, read_string
from abex_transport.models.schemas import ContactMessage

logger = logging.getLogger("abex_transport.contact")

CONTACT_FIELDS = ("name", "email", "phone", "subject", "message")

_html_env = Environment(autoescape=True)
_text_env = Environment(autoescape=False)

TEXT_TEMPLATE = _text_env.from_string(
    "New contact form submission\n"
    "\n"
    "Name: {{ name }}\n"
    "Email: {{ email }}\n"
    "Phone: {{ phone_display }}\n"
    "Subject: {{ subject }}\n"
    "\n"
    "{{ message }}\n"
)

HTML_TEMPLATE = _html_env.from_string(
    """
<h2>New contact form submission</h2>
<p><strong>Name:</strong> {{ name }}</p>
<p><strong>Email:</strong> <a href="mailto:{{ email }}">{{ email }}</a></p>
<p><strong>Phone:</strong> <a href="tel:{{ phone_e164 }}">{{ phone_display }}</a></p>
<p><strong>Subject:</strong> {{ subject }}</p>
<p><strong>Message:</strong></p>
<p>{{ message }}</p>
"""
)


def parse_contact_form(body: Mapping[str, Any]) -> ContactMessage:
    values = {field: read_string(body.get(field)) for field in CONTACT_FIELDS}
    if not all(values.values()):
        raise ContactFormError()
    return ContactMessage(**values)


@dataclass(frozen=True)
class RenderedEmail:
    subject: str
    text: str
    html: str


def render_contact_email(message: ContactMessage) -> RenderedEmail:
    context = {
        **message.model_dump(),
        "phone_display": format_phone_number(message.phone) or message.phone,
        "phone_e164": normalize_phone_number(message.phone),
    }
    return RenderedEmail(
        subject=f"New contact form submission: {message.subject}",
        text=TEXT_TEMPLATE.render(context),
        html=HTML_TEMPLATE.render(context).strip(),
    )


class ContactMailer:
    def __init__(self, api_key: str | None, sender: str, recipient: str) -> None:
        self._api_key = api_key
        self.sender = sender
        self.recipient = recipient

    @classmethod
    def from_settings(cls, settings) -> ContactMailer:
        return cls(settings.resend_api_key, settings.contact_sender, settings.contact_recipient)

    async def send(self, message: ContactMessage) -> str | None:
        if not self._api_key:
            raise ContactDeliveryError("Email delivery is not configured")

        email = render_contact_email(message)
        params = {
            "from": self.sender,
            "to": [self.recipient],
            "reply_to": message.email,
            "subject": email.subject,
            "text": email.text,
            "html": email.html,
        }
        try:
            result = await run_in_threadpool(self._deliver, params)
        except Exception as exc:
            raise ContactDeliveryError(str(exc)) from exc

        message_id = result.get("id") if isinstance(result, Mapping) else None
        logger.info("contact_email_sent id=%s", message_id)
        return message_id

    def _deliver(self, params: dict[str, Any]) -> Any:
        resend.api_key = self._api_key
        return resend.Emails.send(params)
