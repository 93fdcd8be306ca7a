"""
Email Service
Best-effort SMTP delivery plus the rendered templates the engines send
"""
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
import logging
import smtplib

from flask import current_app, render_template

from eventhub.utils.helpers import utc_to_local

logger = logging.getLogger(__name__)

SETTINGS_KEYS = (
    'SMTP_HOST',
    'SMTP_PORT',
    'SMTP_USER',
    'SMTP_PASS',
    'SMTP_USE_TLS',
    'SMTP_FROM_NAME',
    'SMTP_FROM_EMAIL',
    'SMTP_TIMEOUT',
)


class EmailService:
    """
    SMTP sender

    Holds a snapshot of the SMTP settings so it can be used from worker
    threads without an application context.
    """

    def __init__(self, settings):
        self.settings = {key: settings.get(key) for key in SETTINGS_KEYS}

    @classmethod
    def from_app(cls):
        return cls(current_app.config)

    @property
    def configured(self):
        return bool(self.settings['SMTP_USER'] and self.settings['SMTP_PASS'])

    def send_email(self, to, subject, html, text=None):
        """
        Send one email

        Returns:
            bool: True when sent (or skipped because SMTP is not configured)
        """
        if not self.configured:
            logger.info("Email credentials not configured, skipping email to %s", to)
            return True

        sender = self.settings['SMTP_FROM_EMAIL'] or self.settings['SMTP_USER']
        msg = MIMEMultipart('alternative')
        msg['Subject'] = subject
        msg['From'] = f'"{self.settings["SMTP_FROM_NAME"]}" <{sender}>'
        msg['To'] = to
        if text:
            msg.attach(MIMEText(text, 'plain'))
        msg.attach(MIMEText(html, 'html'))

        try:
            with smtplib.SMTP(
                self.settings['SMTP_HOST'],
                self.settings['SMTP_PORT'],
                timeout=self.settings['SMTP_TIMEOUT'] or 10
            ) as server:
                if self.settings['SMTP_USE_TLS']:
                    server.starttls()
                server.login(self.settings['SMTP_USER'], self.settings['SMTP_PASS'])
                server.sendmail(sender, [to], msg.as_string())
        except (smtplib.SMTPException, OSError):
            logger.exception("Error sending email to %s", to)
            return False

        logger.info("Email sent successfully to %s", to)
        return True


# ========================================
# TEMPLATES
# ========================================

def _event_date(event):
    local = utc_to_local(event.start_at)
    return local.strftime('%A, %d %B %Y %H:%M %Z') if local else ''


def registration_approved_email(user, event, comment=None):
    """Returns (subject, html, text)"""
    context = {
        'user_name': user.display_name,
        'event_title': event.title,
        'event_date': _event_date(event),
        'comment': comment,
    }
    return (
        f'Registration Approved - {event.title}',
        render_template('email/registration_approved.html', **context),
        render_template('email/registration_approved.txt', **context),
    )


def registration_rejected_email(user, event, reason=None):
    """Returns (subject, html, text)"""
    context = {
        'user_name': user.display_name,
        'event_title': event.title,
        'reason': reason,
    }
    return (
        f'Registration Update - {event.title}',
        render_template('email/registration_rejected.html', **context),
        render_template('email/registration_rejected.txt', **context),
    )


def quiz_penalty_email(user, quiz, old_score, points, new_score, reason):
    """Returns (subject, html, text)"""
    context = {
        'user_name': user.display_name,
        'quiz_title': quiz.title,
        'old_score': old_score,
        'points': points,
        'new_score': new_score,
        'reason': reason,
    }
    return (
        f'Quiz Points Reduced - {quiz.title}',
        render_template('email/quiz_penalty.html', **context),
        render_template('email/quiz_penalty.txt', **context),
    )


def broadcast_email(title, content):
    """Returns (subject, html, text)"""
    return (
        title,
        render_template('email/broadcast.html', title=title, content=content),
        content,
    )
