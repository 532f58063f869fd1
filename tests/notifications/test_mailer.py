from __future__ import annotations

import logging
import smtplib
from datetime import date

from src.pg_manager.pg_manager.core.enums import Gender, PgType, RentType
from src.pg_manager.pg_manager.members.model import Member, RegisteredMember
from src.pg_manager.pg_manager.notifications.mailer import Mailer, MailSettings
from src.pg_manager.pg_manager.notifications.service import NotificationService


SETTINGS = MailSettings(enabled=True, host="smtp.test", port=587, use_ssl=False, use_tls=True,
                        username="desk@pg.local", password="secret", sender="desk@pg.local")


class FakeSMTP:
    instances = []

    def __init__(self, settings, *, fail=False):
        self.settings = settings
        self.fail = fail
        self.calls = []
        self.messages = []
        FakeSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def starttls(self):
        self.calls.append("starttls")

    def login(self, user, password):
        self.calls.append(("login", user))

    def send_message(self, msg):
        if self.fail:
            raise smtplib.SMTPServerDisconnected("gone")
        self.messages.append(msg)


class RecordingMailer:
    def __init__(self):
        self.sent = []

    def send(self, to, subject, body):
        self.sent.append((to, subject, body))
        return True


def _member(**overrides) -> Member:
    base = dict(
        id=5,
        member_id="MRM4821",
        name="Divya",
        dob=date(2000, 2, 3),
        gender=Gender.FEMALE,
        location="Trichy",
        email="divya@example.com",
        phone="9000000009",
        work="Designer",
        rent_type=RentType.LONG_TERM,
        pg_id=4,
        date_of_joining=date(2026, 4, 1),
        room_id=21,
        room_no="201",
        room_rent=6000.0,
        advance_amount=2000.0,
        pg_name="Lotus",
        pg_type=PgType.WOMENS,
        pg_location="Adyar",
    )
    base.update(overrides)
    return Member(**base)


def test_send_uses_starttls_login_and_plain_text_body():
    FakeSMTP.instances.clear()
    mailer = Mailer(SETTINGS, smtp_factory=FakeSMTP)

    assert mailer.send("divya@example.com", "Hello", "Body text") is True

    (smtp,) = FakeSMTP.instances
    assert smtp.calls == ["starttls", ("login", "desk@pg.local")]
    (msg,) = smtp.messages
    assert msg["To"] == "divya@example.com"
    assert msg["From"] == "desk@pg.local"
    assert msg["Subject"] == "Hello"
    assert msg.get_content().strip() == "Body text"


def test_disabled_mailer_only_logs(caplog):
    FakeSMTP.instances.clear()
    mailer = Mailer(MailSettings(enabled=False), smtp_factory=FakeSMTP)

    with caplog.at_level(logging.INFO):
        assert mailer.send("divya@example.com", "Hello", "Body") is False

    assert FakeSMTP.instances == []
    assert "Mail disabled" in caplog.text


def test_smtp_failure_is_logged_and_reported(caplog):
    mailer = Mailer(SETTINGS, smtp_factory=lambda s: FakeSMTP(s, fail=True))

    with caplog.at_level(logging.ERROR):
        assert mailer.send("divya@example.com", "Hello", "Body") is False

    assert "Could not send" in caplog.text


def test_settings_are_read_from_config_module():
    class Settings:
        MAIL_ENABLED = True
        MAIL_HOST = "mail.example.com"
        MAIL_PORT = "2525"
        MAIL_USE_SSL = False
        MAIL_USERNAME = "bot@example.com"
        MAIL_FROM = ""

    settings = MailSettings.from_settings(Settings)

    assert settings.port == 2525
    assert settings.use_ssl is False
    assert settings.sender == "bot@example.com"


def test_approval_mail_carries_member_details_and_setup_code():
    mailer = RecordingMailer()

    NotificationService(mailer, company_name="Nest Stays").registration_approved(_member(), otp_code="482913")

    ((to, subject, body),) = mailer.sent
    assert to == "divya@example.com"
    assert subject == "Application Approved - Welcome to Lotus!"
    assert "MRM4821" in body
    assert "Room: 201" in body
    assert "Rs. 6,000.00" in body
    assert "482913" in body
    assert "The Nest Stays Team" in body


def test_short_term_approval_mail_has_no_setup_code():
    mailer = RecordingMailer()
    member = _member(rent_type=RentType.SHORT_TERM, price_per_day=450.0, date_of_relieving=date(2026, 4, 9))

    NotificationService(mailer).registration_approved(member)

    body = mailer.sent[0][2]
    assert "Daily rate: Rs. 450.00" in body
    assert "Stay until: 09 April 2026" in body
    assert "setup code" not in body


def test_rejection_mail_names_the_pg_type():
    mailer = RecordingMailer()
    reg = RegisteredMember(
        registration_id=1, name="Arun", dob=date(1999, 8, 12), gender=Gender.MALE, location="Madurai",
        pg_location="Velachery", pg_type=PgType.MENS, email="arun@example.com", phone="9000000001",
        work="Analyst", rent_type=RentType.LONG_TERM,
    )

    NotificationService(mailer).registration_rejected(reg)

    to, subject, body = mailer.sent[0]
    assert (to, subject) == ("arun@example.com", "Application Update - Arun")
    assert "mens PG" in body
