"""Verification email transport."""

import smtplib

import pytest

from core import mailer
from core.mailer import MailDeliveryError, send_verification_email


class FakeSMTP:
    instances = []

    def __init__(self, host, port, timeout=None):
        self.host, self.port = host, port
        self.sent = []
        self.started_tls = False
        FakeSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def ehlo(self):
        pass

    def has_extn(self, name):
        return name == "starttls"

    def starttls(self):
        self.started_tls = True

    def login(self, user, password):
        pass

    def send_message(self, msg):
        self.sent.append(msg)


@pytest.fixture(autouse=True)
def _reset():
    FakeSMTP.instances = []


def test_token_is_sent_over_starttls(monkeypatch):
    monkeypatch.setattr(smtplib, "SMTP", FakeSMTP)

    send_verification_email("a@x.com", "f" * 24)

    (smtp,) = FakeSMTP.instances
    assert smtp.started_tls
    (msg,) = smtp.sent
    assert msg["To"] == "a@x.com"
    assert "f" * 24 in msg.get_body(preferencelist=("plain",)).get_content()


def test_transport_error_becomes_mail_delivery_error(monkeypatch):
    def refuse(*args, **kwargs):
        raise ConnectionRefusedError("no relay")

    monkeypatch.setattr(smtplib, "SMTP", refuse)

    with pytest.raises(MailDeliveryError):
        send_verification_email("a@x.com", "f" * 24)


def test_missing_host_is_a_delivery_error(monkeypatch):
    monkeypatch.setattr(mailer.settings, "smtp_host", "")
    with pytest.raises(MailDeliveryError):
        send_verification_email("a@x.com", "f" * 24)
