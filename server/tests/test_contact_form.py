from __future__ import annotations

import pytest
import resend
from fastapi.testclient import TestClient

from abex_transport.models.schemas import ContactMessage
from abex_transport.notifications.contact import ContactMailer, render_contact_email
import abex_transport.main as main_module

FORM = {
    "name": "Dana <Reyes>",
    "email": "dana@example.com",
    "phone": "2812201799",
    "subject": "Enclosed transport",
    "message": "Ship my <b>classic</b> & keep it covered",
}


@pytest.fixture
def client():
    with TestClient(main_module.app) as test_client:
        yield test_client


@pytest.fixture
def sent_emails(client: TestClient, monkeypatch) -> list[dict]:
    sent: list[dict] = []

    def fake_send(params: dict) -> dict:
        sent.append(params)
        return {"id": "email-1"}

    monkeypatch.setattr(resend.Emails, "send", fake_send)
    mailer = ContactMailer("re_test_key", "Abex Transport <noreply@abextransport.com>", "contact@abextransport.com")
    monkeypatch.setattr(main_module.app.state, "contact_mailer", mailer, raising=False)
    return sent


def test_contact_form_sends_one_email(client: TestClient, sent_emails: list[dict]):
    response = client.post("/submitContactForm", json=FORM)

    assert response.status_code == 200
    assert response.json() == {"success": True}
    assert response.headers["Access-Control-Allow-Origin"] == "*"
    assert len(sent_emails) == 1
    params = sent_emails[0]
    assert params["from"] == "Abex Transport <noreply@abextransport.com>"
    assert params["to"] == ["contact@abextransport.com"]
    assert params["reply_to"] == "dana@example.com"
    assert params["subject"] == "New contact form submission: Enclosed transport"


@pytest.mark.parametrize("missing", ["name", "email", "phone", "subject", "message"])
def test_missing_field_is_rejected(client: TestClient, sent_emails: list[dict], missing: str):
    body = {**FORM, missing: "  "}

    response = client.post("/submitContactForm", json=body)

    assert response.status_code == 400
    assert response.json() == {"error": "Missing required form data"}
    assert sent_emails == []


def test_send_failure_maps_to_generic_500(client: TestClient, sent_emails: list[dict], monkeypatch):
    def failing_send(params: dict) -> dict:
        raise RuntimeError("provider unavailable")

    monkeypatch.setattr(resend.Emails, "send", failing_send)

    response = client.post("/submitContactForm", json=FORM)

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to send message"}


def test_unconfigured_mailer_fails_like_a_send_error(client: TestClient, monkeypatch):
    monkeypatch.setattr(main_module.app.state, "contact_mailer", ContactMailer(None, "a@b.c", "d@e.f"), raising=False)

    response = client.post("/submitContactForm", json=FORM)

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to send message"}


def test_contact_preflight_and_method_check(client: TestClient):
    assert client.options("/submitContactForm").status_code == 204
    assert client.get("/submitContactForm").status_code == 405


def test_html_body_escapes_every_value():
    email = render_contact_email(ContactMessage(**FORM))

    assert "Dana &lt;Reyes&gt;" in email.html
    assert "Ship my &lt;b&gt;classic&lt;/b&gt; &amp; keep it covered" in email.html
    assert "<b>classic</b>" not in email.html
    assert 'href="tel:+12812201799"' in email.html
    assert "(281) 220-1799" in email.html


def test_text_body_keeps_values_verbatim():
    email = render_contact_email(ContactMessage(**FORM))

    assert "Name: Dana <Reyes>" in email.text
    assert "Phone: (281) 220-1799" in email.text
    assert email.text.rstrip().endswith("Ship my <b>classic</b> & keep it covered")
