"""Tests for the storage and SMTP service wrappers."""

import smtplib

import pytest

from homewatch.core import mailer as mailer_module
from homewatch.core.mailer import MailAttachment, MailSendError, OutboundEmail, SmtpMailer, build_message
from homewatch.core.storage import remove_locators, resolve_display_url, split_locator


def sample_email() -> OutboundEmail:
    return OutboundEmail(
        sender="reports@homewatch.test",
        recipient="dana@example.com",
        subject="Home Watch Checklist – Dana – 3/7/2025",
        text="Attached is the completed Home Watch Checklist.",
        attachments=[
            MailAttachment("Checklist-Dana-3-7-2025.pdf", b"%PDF-1.4", "application/pdf"),
            MailAttachment("notes.bin", b"\x00\x01"),
        ],
    )


class FakeSMTP:
    """Stands in for smtplib.SMTP / SMTP_SSL and records calls."""

    instances: list["FakeSMTP"] = []

    def __init__(self, host, port, timeout=None):
        self.host = host
        self.port = port
        self.calls: list[str] = []
        self.messages = []
        FakeSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def ehlo(self):
        self.calls.append("ehlo")

    def starttls(self):
        self.calls.append("starttls")

    def login(self, user, password):
        self.calls.append("login")
        if password == "wrong":
            raise smtplib.SMTPAuthenticationError(535, b"Authentication failed")

    def send_message(self, msg):
        self.calls.append("send")
        self.messages.append(msg)


@pytest.fixture(name="fake_smtp")
def fake_smtp_fixture(monkeypatch):
    FakeSMTP.instances = []
    monkeypatch.setattr(mailer_module.smtplib, "SMTP", FakeSMTP)
    monkeypatch.setattr(mailer_module.smtplib, "SMTP_SSL", FakeSMTP)
    return FakeSMTP


class TestStorageHelpers:
    """Tests for locator handling."""

    def test_split_locator(self):
        assert split_locator("checklist-photos/a/b.jpg") == ("checklist-photos", "a/b.jpg")
        assert split_locator("checklist-photos") is None
        assert split_locator("/a.jpg") is None

    def test_remote_url_passes_through(self, store):
        url = "https://cdn.example.com/a.jpg"
        assert resolve_display_url(store, url, 60) == url

    def test_malformed_locator(self, store):
        assert resolve_display_url(store, "no-slash", 60) is None
        assert resolve_display_url(store, None, 60) is None

    def test_remove_groups_by_bucket(self, store):
        removed = remove_locators(store, [
            "checklist-photos/a.jpg",
            "archive/b.jpg",
            "checklist-photos/c.jpg",
            "https://cdn.example.com/d.jpg",
            "bad",
        ])
        assert removed == 3
        assert store.removed == [("checklist-photos", ["a.jpg", "c.jpg"]), ("archive", ["b.jpg"])]


class TestMailer:
    """Tests for SmtpMailer."""

    def test_build_message(self):
        msg = build_message(sample_email())
        assert msg["To"] == "dana@example.com"
        parts = list(msg.iter_attachments())
        assert [p.get_filename() for p in parts] == ["Checklist-Dana-3-7-2025.pdf", "notes.bin"]
        assert parts[0].get_content_type() == "application/pdf"
        assert parts[1].get_content_type() == "application/octet-stream"

    def test_missing_settings(self):
        mailer = SmtpMailer(host="smtp.example.com", port=587, user="", password="", sender="")
        assert mailer.missing_settings() == ["SMTP_USER", "SMTP_PASS", "EMAIL_FROM"]

    def test_implicit_tls_on_465(self):
        assert SmtpMailer("h", 465, "u", "p", "s").use_ssl is True
        assert SmtpMailer("h", 587, "u", "p", "s").use_ssl is False
        assert SmtpMailer("h", 587, "u", "p", "s", secure=True).use_ssl is True

    def test_send_with_starttls(self, fake_smtp):
        SmtpMailer("smtp.example.com", 587, "user", "secret", "reports@homewatch.test").send(sample_email())
        session = fake_smtp.instances[0]
        assert session.calls == ["ehlo", "starttls", "login", "send"]
        assert session.messages[0]["Subject"] == "Home Watch Checklist – Dana – 3/7/2025"

    def test_send_over_ssl(self, fake_smtp):
        SmtpMailer("smtp.example.com", 465, "user", "secret", "reports@homewatch.test").send(sample_email())
        assert fake_smtp.instances[0].calls == ["login", "send"]

    def test_send_failure_wrapped(self, fake_smtp):
        mailer = SmtpMailer("smtp.example.com", 587, "user", "wrong", "reports@homewatch.test")
        with pytest.raises(MailSendError):
            mailer.send(sample_email())
