import html
import logging
import smtplib
import ssl
from email.message import EmailMessage
from email.utils import formataddr, make_msgid
from typing import Optional

from ..core.config import mailer_config, MailerConfig

log = logging.getLogger(__name__)


def reply_html(body: str) -> str:
    # escaped plain text with line breaks kept
    return html.escape(body.rstrip()).replace("\n", "<br>\n")


def build_message(cfg: MailerConfig, recipient: str, subject: str, body: str, in_reply_to: Optional[str]) -> EmailMessage:
    msg = EmailMessage()
    sender = formataddr((cfg.from_name, cfg.from_address))
    msg['From'] = sender
    msg['To'] = recipient
    msg['Reply-To'] = sender
    msg['Subject'] = subject
    msg['Message-ID'] = make_msgid(domain=cfg.from_address.split('@')[-1])
    if in_reply_to:
        msg['In-Reply-To'] = in_reply_to
        msg['References'] = in_reply_to
    msg.set_content(body)
    msg.add_alternative(f"<html><body>{reply_html(body)}</body></html>", subtype='html')
    return msg


class SmtpTransport:
    """Delivers replies through the SMTP server mapped to the sending account."""

    def deliver(self, account: str, recipient: str, subject: str, body: str, in_reply_to: Optional[str] = None):
        cfg = mailer_config(account)
        msg = build_message(cfg, recipient, subject, body, in_reply_to)
        log.info("Delivering reply", extra={"account": account, "recipient": recipient})
        if cfg.encryption == 'ssl':
            server = smtplib.SMTP_SSL(cfg.host, cfg.port, timeout=cfg.timeout, context=ssl.create_default_context())
        else:
            server = smtplib.SMTP(cfg.host, cfg.port, timeout=cfg.timeout)
        with server:
            if cfg.encryption == 'tls':
                server.starttls(context=ssl.create_default_context())
            if cfg.username and cfg.password:
                server.login(cfg.username, cfg.password)
            server.send_message(msg)


def get_transport() -> SmtpTransport:
    return SmtpTransport()
