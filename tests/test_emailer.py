import smtplib

import pytest

from utils import emailer
from utils.emailer import build_message, send_email


class FakeSMTP:
    instances = []
    fail_with = None

    def __init__(self, host, port, timeout=None):
        self.host, self.port, self.timeout = host, port, timeout
        self.calls = []
        self.sent = []
        FakeSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def starttls(self):
        self.calls.append("starttls")

    def login(self, username, password):
        self.calls.append(("login", username))

    def send_message(self, msg):
        if FakeSMTP.fail_with:
            raise FakeSMTP.fail_with
        self.sent.append(msg)


@pytest.fixture
def smtp(app, monkeypatch):
    FakeSMTP.instances = []
    FakeSMTP.fail_with = None
    monkeypatch.setattr(emailer.smtplib, "SMTP", FakeSMTP)
    monkeypatch.setattr(emailer.smtplib, "SMTP_SSL", FakeSMTP)
    app.config.update(
        SMTP_HOST="smtp.example.com",
        SMTP_PORT=587,
        SMTP_USERNAME="bookings@example.com",
        SMTP_PASSWORD="pw",
        SMTP_FROM_EMAIL=None,
        SMTP_FROM_NAME="Nails & Babysitting",
        SMTP_REPLY_TO="owner@example.com",
        SMTP_USE_TLS=True,
        SMTP_USE_SSL=False,
        SMTP_TIMEOUT=5,
    )
    return FakeSMTP


def test_sends_with_starttls_and_reply_to(smtp):
    assert send_email("ana@example.com", "Appointment reminder", "See you soon") == (True, None)

    server = smtp.instances[0]
    assert (server.host, server.port, server.timeout) == ("smtp.example.com", 587, 5)
    assert server.calls == ["starttls", ("login", "bookings@example.com")]
    msg = server.sent[0]
    assert msg["To"] == "ana@example.com"
    assert msg["Reply-To"] == "owner@example.com"
    assert "bookings@example.com" in msg["From"]
    assert msg.get_content().strip() == "See you soon"


def test_implicit_tls_skips_starttls(app, smtp):
    app.config.update(SMTP_USE_SSL=True, SMTP_PORT=465)

    assert send_email("ana@example.com", "Hi", "Body")[0] is True
    assert "starttls" not in smtp.instances[0].calls


def test_smtp_failure_is_returned_not_raised(smtp):
    smtp.fail_with = smtplib.SMTPRecipientsRefused({"ana@example.com": (550, b"no such user")})

    ok, error = send_email("ana@example.com", "Hi", "Body")

    assert ok is False
    assert "ana@example.com" in error


def test_unconfigured_host(app, smtp):
    app.config["SMTP_HOST"] = None

    assert send_email("ana@example.com", "Hi", "Body") == (False, "Email not configured")
    assert smtp.instances == []


def test_message_without_display_name(app, smtp):
    app.config.update(SMTP_FROM_NAME=None, SMTP_REPLY_TO=None)

    msg = build_message("ana@example.com", "Hi", "Body")

    assert msg["From"] == "bookings@example.com"
    assert msg["Reply-To"] is None
