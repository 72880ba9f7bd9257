import smtplib
import ssl
import logging
import socket
from email.message import EmailMessage
from email.utils import formataddr
from pathlib import Path
from typing import Any, Dict
from urllib.parse import quote

import certifi
from jinja2 import Environment, FileSystemLoader, StrictUndefined

from latms.core.config import settings


logger = logging.getLogger("uvicorn.error")

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates" / "mail"


def _get_env() -> Environment:
    # Plain-text bodies, so no autoescaping
    return Environment(
        loader=FileSystemLoader(str(TEMPLATES_DIR)),
        undefined=StrictUndefined,
        trim_blocks=True,
        lstrip_blocks=True,
    )


def render_template(template_name: str, context: Dict[str, Any]) -> str:
    return _get_env().get_template(template_name).render(**context)


def build_mailto(to: str, subject: str, body: str) -> str:
    # Mail clients expect CRLF line breaks in mailto bodies
    crlf_body = body.replace("\r\n", "\n").replace("\n", "\r\n")
    return f"mailto:{to}?subject={quote(subject, safe='')}&body={quote(crlf_body, safe='')}"


def build_message(*, to: str, subject: str, body: str) -> EmailMessage:
    msg = EmailMessage()
    msg["Subject"] = subject
    msg["From"] = formataddr((settings.MAIL_FROM_NAME, settings.MAIL_FROM))
    msg["To"] = to
    msg.set_content(body)
    return msg


def _transport() -> tuple[bool, bool]:
    """Resolve (ssl, starttls) for the configured port."""
    use_ssl, use_tls = settings.SMTP_USE_SSL, settings.SMTP_USE_TLS
    if settings.SMTP_PORT == 465 and not use_ssl:
        logger.warning("SMTP port 465 configured without SSL; using implicit SSL")
        return True, False
    if settings.SMTP_PORT == 587 and use_ssl:
        logger.warning("SMTP port 587 configured with SSL; using STARTTLS instead")
        return False, True
    return use_ssl, use_tls


def send_email_smtp(message: EmailMessage) -> None:
    """Deliver a message, raising RuntimeError on any transport or auth failure."""
    use_ssl, use_tls = _transport()
    context = ssl.create_default_context(cafile=certifi.where())
    host, port, timeout = settings.SMTP_HOST, settings.SMTP_PORT, settings.SMTP_TIMEOUT
    try:
        if use_ssl:
            server = smtplib.SMTP_SSL(host, port, timeout=timeout, context=context)
        else:
            server = smtplib.SMTP(host, port, timeout=timeout)
        with server:
            if use_tls and not use_ssl:
                server.starttls(context=context)
            if settings.SMTP_USER:
                server.login(settings.SMTP_USER, settings.SMTP_PASSWORD)
            server.send_message(message)
    except smtplib.SMTPAuthenticationError as exc:
        raise RuntimeError(f"SMTP auth failed ({exc.smtp_code})") from exc
    except (smtplib.SMTPException, ssl.SSLError, socket.timeout, OSError) as exc:
        raise RuntimeError(f"SMTP delivery to {message['To']} failed: {type(exc).__name__}: {exc}") from exc


def send_text_email(*, to: str, subject: str, body: str) -> None:
    send_email_smtp(build_message(to=to, subject=subject, body=body))
