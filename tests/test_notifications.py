"""
Registration email tests
"""
import email
import smtplib

import pytest

from festpass.notifications import NotificationService
from festpass.qr_generator import QROptions, render


class FakeSMTP:
    """Records what would have been sent"""
    instances = []

    def __init__(self, host, port, timeout=None):
        self.host = host
        self.port = port
        self.started_tls = False
        self.logged_in = None
        self.sent = []
        self.quit_called = False
        FakeSMTP.instances.append(self)

    def starttls(self):
        self.started_tls = True

    def login(self, username, password):
        self.logged_in = (username, password)

    def sendmail(self, from_addr, to_addr, message):
        self.sent.append((from_addr, to_addr, message))

    def quit(self):
        self.quit_called = True


@pytest.fixture
def mail_app(app):
    app.config.update(
        MAIL_SERVER='smtp.test.local',
        MAIL_PORT=2525,
        MAIL_USERNAME='mailer',
        MAIL_PASSWORD='hunter2',
        MAIL_DEFAULT_SENDER='noreply@techfest.local',
    )
    return app


@pytest.fixture
def fake_smtp(monkeypatch):
    FakeSMTP.instances = []
    monkeypatch.setattr(smtplib, 'SMTP', FakeSMTP)
    return FakeSMTP


EVENT = {'title': 'Opening Keynote', 'date': 'March 01, 2026 at 10:00 AM', 'location': 'Main Auditorium'}
USER = {'email': 'u1@test.com', 'name': 'Asha Menon'}


class TestSendEmail:

    def test_without_credentials(self, app, fake_smtp):
        result = NotificationService().send_email('u1@test.com', 'Hello', 'Body')
        assert result == {'success': False, 'error': 'SMTP credentials not configured'}
        assert fake_smtp.instances == []

    def test_sends_through_smtp(self, mail_app, fake_smtp):
        result = NotificationService().send_email('u1@test.com', 'Hello', 'Body')

        assert result['success'] is True
        assert result['message_id'].endswith('@techfest.local>')

        server = fake_smtp.instances[0]
        assert (server.host, server.port) == ('smtp.test.local', 2525)
        assert server.started_tls
        assert server.logged_in == ('mailer', 'hunter2')
        assert server.quit_called
        assert server.sent[0][1] == 'u1@test.com'

    def test_smtp_failure_is_reported(self, mail_app, monkeypatch):
        def refuse(*args, **kwargs):
            raise smtplib.SMTPConnectError(421, 'try later')

        monkeypatch.setattr(smtplib, 'SMTP', refuse)
        result = NotificationService().send_email('u1@test.com', 'Hello', 'Body')
        assert result['success'] is False
        assert 'try later' in result['error']


class TestRegistrationEmail:

    def test_pass_is_attached_inline(self, mail_app, fake_smtp):
        qr = render('VIBABCD1234', QROptions(pixel_size=100))
        result = NotificationService().send_event_registration(EVENT, USER, qr_data_url=qr,
                                                               participant_id='VIBABCD1234')
        assert result['success'] is True

        message = email.message_from_string(fake_smtp.instances[0].sent[0][2])
        assert message['Subject'] == 'Registration Confirmed: Opening Keynote'

        parts = {part.get_content_type(): part for part in message.walk()}
        html = parts['text/html'].get_payload(decode=True).decode()
        assert 'VIBABCD1234' in html
        assert 'cid:qrcode' in html
        assert parts['image/png']['Content-ID'] == '<qrcode>'
        assert parts['image/png'].get_payload(decode=True).startswith(b'\x89PNG')

    def test_without_pass(self, mail_app, fake_smtp):
        NotificationService().send_event_registration(EVENT, USER)
        message = email.message_from_string(fake_smtp.instances[0].sent[0][2])
        content_types = [part.get_content_type() for part in message.walk()]
        assert 'image/png' not in content_types

    def test_unreadable_image_is_skipped(self, mail_app, fake_smtp):
        result = NotificationService().send_event_registration(EVENT, USER, qr_data_url='not-a-data-url',
                                                               participant_id='VIBABCD1234')
        assert result['success'] is True
        message = email.message_from_string(fake_smtp.instances[0].sent[0][2])
        html = [p for p in message.walk() if p.get_content_type() == 'text/html'][0]
        assert 'cid:qrcode' not in html.get_payload(decode=True).decode()

    def test_message_build_failure_is_reported(self, mail_app, fake_smtp):
        """A missing sender address fails the send, it does not raise"""
        mail_app.config['MAIL_DEFAULT_SENDER'] = None
        result = NotificationService().send_email('u1@test.com', 'Hello', 'Body')
        assert result['success'] is False
        assert fake_smtp.instances == []
