import smtplib
from email.mime.text import MIMEText
from email.mime.image import MIMEImage
from email.mime.multipart import MIMEMultipart
from email.utils import make_msgid
from flask import current_app

from festpass.qr_generator import data_url_to_bytes


class NotificationService:
    """Service for sending pass emails"""

    def __init__(self):
        self._load_config()

    def _load_config(self):
        """Load configuration from Flask app context"""
        self.smtp_server = current_app.config.get('MAIL_SERVER')
        self.smtp_port = current_app.config.get('MAIL_PORT', 587)
        self.use_tls = current_app.config.get('MAIL_USE_TLS', True)
        self.smtp_username = current_app.config.get('MAIL_USERNAME')
        self.smtp_password = current_app.config.get('MAIL_PASSWORD')
        self.from_email = current_app.config.get('MAIL_DEFAULT_SENDER')

    def send_email(self, to_email, subject, message, is_html=False, inline_images=None):
        """Send an email; returns ``{'success': True, 'message_id': ...}`` or an error dict."""
        if not self.smtp_username or not self.smtp_password:
            current_app.logger.warning("SMTP credentials not configured. Email not sent.")
            return {'success': False, 'error': 'SMTP credentials not configured'}

        try:
            msg = MIMEMultipart('related')
            msg['From'] = self.from_email
            msg['To'] = to_email
            msg['Subject'] = subject
            msg['Message-ID'] = make_msgid(domain=self.from_email.split('@')[-1])
            msg.attach(MIMEText(message, 'html' if is_html else 'plain'))

            for cid, image_bytes in (inline_images or {}).items():
                image = MIMEImage(image_bytes, 'png')
                image.add_header('Content-ID', f'<{cid}>')
                image.add_header('Content-Disposition', 'inline', filename=f'{cid}.png')
                msg.attach(image)

            server = smtplib.SMTP(self.smtp_server, self.smtp_port, timeout=30)
            try:
                if self.use_tls:
                    server.starttls()
                server.login(self.smtp_username, self.smtp_password)
                server.sendmail(self.from_email, to_email, msg.as_string())
            finally:
                server.quit()

            current_app.logger.info(f"Email sent successfully to {to_email}")
            return {'success': True, 'message_id': msg['Message-ID']}

        except Exception as e:
            current_app.logger.error(f"Failed to send email to {to_email}: {str(e)}")
            return {'success': False, 'error': str(e)}

    def send_event_registration(self, event_details, user_details, qr_data_url=None, participant_id=None):
        """Registration confirmation with the pass attached inline as ``cid:qrcode``"""
        name = user_details.get('name') or 'Participant'
        subject = f"Registration Confirmed: {event_details.get('title', 'Event')}"

        pass_block = ''
        inline_images = {}
        if participant_id:
            pass_block = f"""
<h3>Your Digital Pass</h3>
<p>Participant ID: <strong>{participant_id}</strong></p>
"""
            if qr_data_url:
                try:
                    inline_images['qrcode'] = data_url_to_bytes(qr_data_url)
                    pass_block += '<img src="cid:qrcode" alt="Your QR Code" width="180" height="180" />\n'
                except ValueError as e:
                    current_app.logger.warning(f"Pass image not attached: {e}")
            pass_block += '<p>Show this pass at the venue entrance for check-in.</p>\n'

        message = f"""
<p>Dear {name},</p>
<p>Your registration for <strong>{event_details.get('title', 'the event')}</strong> is confirmed.</p>
<ul>
  <li>Date: {event_details.get('date') or 'TBA'}</li>
  <li>Location: {event_details.get('location') or 'TBA'}</li>
</ul>
{pass_block}
<p>See you there!</p>
""".strip()

        return self.send_email(user_details['email'], subject, message, is_html=True,
                               inline_images=inline_images)


def get_notification_service():
    """Get a notification service bound to the current app configuration"""
    return NotificationService()
