# retirement_irr/notify.py
# Delivery of per-client reports. Best-effort: callers decide whether a
# failed send matters.

from __future__ import annotations

import logging
import re
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage
from pathlib import Path
from typing import Optional

log = logging.getLogger(__name__)


@dataclass
class MailSettings:
    server: Optional[str] = None
    port: int = 587
    use_tls: bool = True
    username: Optional[str] = None
    password: Optional[str] = None
    sender: Optional[str] = None
    outbox_dir: Optional[str] = None

    @property
    def configured(self) -> bool:
        return bool(self.outbox_dir) or bool(self.server and self.username)


def _build_message(to: str, subject: str, body: str, settings: MailSettings) -> EmailMessage:
    msg = EmailMessage()
    msg["Subject"] = subject
    msg["From"] = settings.sender or settings.username or "retirement-irr@localhost"
    msg["To"] = to
    msg.set_content(body)
    return msg


def _write_outbox(msg: EmailMessage, outbox: Path) -> Path:
    outbox.mkdir(parents=True, exist_ok=True)
    safe = re.sub(r"[^A-Za-z0-9_.-]+", "_", str(msg["To"]))
    path = outbox / f"{safe}.eml"
    # last write wins
    path.write_bytes(bytes(msg))
    return path


def _send_smtp(msg: EmailMessage, settings: MailSettings) -> None:
    with smtplib.SMTP(settings.server, settings.port) as smtp:
        if settings.use_tls:
            smtp.starttls()
        if settings.username and settings.password:
            smtp.login(settings.username, settings.password)
        smtp.send_message(msg)


def send_report(to: str, subject: str, body: str, settings: MailSettings) -> bool:
    """
    Deliver one report. Returns True if it was handed off (outbox file
    written or SMTP accepted), False if mail is not configured.
    Transport errors are logged and re-raised.
    """
    if not settings.configured:
        log.info("mail not configured; skipping report for %s", to)
        return False

    msg = _build_message(to, subject, body, settings)
    try:
        if settings.outbox_dir:
            path = _write_outbox(msg, Path(settings.outbox_dir))
            log.info("report for %s written to %s", to, path)
        else:
            _send_smtp(msg, settings)
            log.info("report sent to %s", to)
    except (OSError, smtplib.SMTPException) as e:
        log.error("sending report to %s failed: %s", to, e)
        raise
    return True


__all__ = ["MailSettings", "send_report"]
