# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""
Outbound email.  Only one message type exists: the verification token.

Transport is the standard-library SMTP client.  Port 465 means implicit TLS,
any other port upgrades with STARTTLS when the server offers it.
"""

import smtplib
from email.message import EmailMessage

from core.config import settings
from core.logger import logger

_SUBJECT = "FAMLocator verification code"
_TEXT_BODY = "Your verification code is: {token}\n\nThe code expires in one hour."
_HTML_BODY = (
    "<p>Your verification code is: <strong>{token}</strong></p>"
    "<p>The code expires in one hour.</p>"
)


class MailDeliveryError(Exception):
    """The SMTP relay could not be reached or refused the message."""


def _connect() -> smtplib.SMTP:
    if settings.smtp_port == 465:
        return smtplib.SMTP_SSL(settings.smtp_host, settings.smtp_port, timeout=settings.smtp_timeout)
    smtp = smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=settings.smtp_timeout)
    smtp.ehlo()
    if smtp.has_extn("starttls"):
        smtp.starttls()
        smtp.ehlo()
    return smtp


def send_verification_email(to_email: str, token: str) -> None:
    """Send *token* to *to_email*.  Raises :class:`MailDeliveryError`."""
    if not settings.smtp_host:
        raise MailDeliveryError("SMTP_HOST is not configured")

    msg = EmailMessage()
    msg["Subject"] = _SUBJECT
    msg["From"] = f"FAMLocator <{settings.smtp_from}>"
    msg["To"] = to_email
    msg.set_content(_TEXT_BODY.format(token=token))
    msg.add_alternative(_HTML_BODY.format(token=token), subtype="html")

    try:
        with _connect() as smtp:
            if settings.smtp_user:
                smtp.login(settings.smtp_user, settings.smtp_password)
            smtp.send_message(msg)
    except (smtplib.SMTPException, OSError) as exc:
        raise MailDeliveryError(str(exc)) from exc

    logger.info("Verification email sent to %s", to_email)
