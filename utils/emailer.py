import logging
import smtplib
from email.message import EmailMessage
from email.utils import formataddr

from flask import current_app

logger = logging.getLogger(__name__)


def _smtp_settings():
    cfg = current_app.config
    return {
        "host": cfg.get("SMTP_HOST"),
        "port": int(cfg.get("SMTP_PORT") or 587),
        "username": cfg.get("SMTP_USERNAME"),
        "password": cfg.get("SMTP_PASSWORD"),
        "from_email": cfg.get("SMTP_FROM_EMAIL") or cfg.get("SMTP_USERNAME"),
        "from_name": cfg.get("SMTP_FROM_NAME"),
        "reply_to": cfg.get("SMTP_REPLY_TO"),
        "use_ssl": cfg.get("SMTP_USE_SSL", False),
        "use_tls": cfg.get("SMTP_USE_TLS", True),
        "timeout": cfg.get("SMTP_TIMEOUT", 10),
    }


def build_message(to_email: str, subject: str, body: str, settings=None) -> EmailMessage:
    settings = settings or _smtp_settings()
    msg = EmailMessage()
    if settings["from_name"]:
        msg["From"] = formataddr((settings["from_name"], settings["from_email"]))
    else:
        msg["From"] = settings["from_email"]
    msg["To"] = to_email
    msg["Subject"] = subject
    if settings["reply_to"]:
        # customers answer reminders to reschedule
        msg["Reply-To"] = settings["reply_to"]
    msg.set_content(body)
    return msg


def send_email(to_email: str, subject: str, body: str):
    """Deliver one plain-text email. Returns (ok, error); never raises for SMTP trouble."""
    settings = _smtp_settings()
    if not settings["host"] or not settings["from_email"]:
        return False, "Email not configured"

    msg = build_message(to_email, subject, body, settings)

    # implicit TLS (usually 465) or plain connection upgraded with STARTTLS
    smtp_cls = smtplib.SMTP_SSL if settings["use_ssl"] else smtplib.SMTP
    try:
        with smtp_cls(settings["host"], settings["port"], timeout=settings["timeout"]) as server:
            if settings["use_tls"] and not settings["use_ssl"]:
                server.starttls()
            if settings["username"] and settings["password"]:
                server.login(settings["username"], settings["password"])
            server.send_message(msg)
    except (smtplib.SMTPException, OSError) as exc:
        logger.warning("SMTP delivery to %s via %s failed: %s", to_email, settings["host"], exc)
        return False, str(exc)

    logger.debug("Sent %r to %s", subject, to_email)
    return True, None
