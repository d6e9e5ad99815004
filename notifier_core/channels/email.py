"""
Email channel implementation
"""
import smtplib
from email.mime.text import MIMEText
from typing import Dict, Any

from .base import Channel


class EmailChannel(Channel):
    """SMTP email channel"""

    name = 'email'
    transport_errors = (smtplib.SMTPException, OSError)

    def __init__(self, config: Dict[str, Any]):
        super().__init__(config)
        self.smtp_host = config.get('smtp_host', 'localhost')
        self.smtp_port = config.get('smtp_port', 587)
        self.smtp_user = config.get('smtp_user')
        self.smtp_password = config.get('smtp_password')
        self.from_email = config.get('from_email', 'noreply@data-notifier.local')
        self.to_emails = config.get('to_emails', [])
        self.use_tls = config.get('use_tls', True)
        self.subject_template = config.get('subject', 'Alert from rule {rule_id}')

    def validate_config(self) -> bool:
        """Validate email configuration"""
        if not self.enabled:
            return False

        if not self.to_emails:
            self.logger.error("No recipient emails configured")
            return False

        return True

    def format_message(self, message: str, metadata: Dict[str, Any]) -> Dict[str, Any]:
        """
        Format a rendered message as a plain-text email

        Returns:
            Dict with subject and body
        """
        subject = self.subject_template.format(
            rule_id=metadata.get('rule_id', ''),
            row_index=metadata.get('row_index', '')
        )
        first_line = message.splitlines()[0] if message else ''
        if first_line:
            subject = f"{subject}: {first_line[:80]}"

        return {
            'subject': subject,
            'body': message
        }

    def _transmit(self, payload: Dict[str, Any], metadata: Dict[str, Any]) -> Dict[str, Any]:
        msg = MIMEText(payload['body'], 'plain', 'utf-8')
        msg['Subject'] = payload['subject']
        msg['From'] = self.from_email
        msg['To'] = ', '.join(self.to_emails)

        with smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=self.timeout) as server:
            if self.use_tls:
                server.starttls()

            if self.smtp_user and self.smtp_password:
                server.login(self.smtp_user, self.smtp_password)

            server.send_message(msg)

        self.logger.info(f"Sent email for rule {metadata.get('rule_id')}: {payload['subject']}")
        return {'recipients': list(self.to_emails)}
