"""IMAP mailbox reader.

Each call opens its own connection for the requested account, reads, and logs
out. Messages are addressed by IMAP UID so ids stay stable between the list
and detail views.
"""
import imaplib, email, logging
from email.header import decode_header, make_header
from email.message import Message
from typing import List, Optional

from ..core.config import imap_account, ImapAccount
from ..schemas.email import EmailSummary, EmailDetail

log = logging.getLogger(__name__)


def _decode(value: Optional[str]) -> str:
    if not value:
        return ''
    try:
        return str(make_header(decode_header(value)))
    except Exception:
        return value


def _part_text(part: Message) -> str:
    payload = part.get_payload(decode=True)
    if not payload:
        return ''
    charset = part.get_content_charset() or 'utf-8'
    try:
        return payload.decode(charset, errors='ignore')
    except LookupError:  # unknown charset label
        return payload.decode('utf-8', errors='ignore')


def extract_bodies(msg: Message) -> tuple[str, Optional[str]]:
    """Return (plain text, html) bodies, skipping attachments."""
    text, html = '', None
    if msg.is_multipart():
        for part in msg.walk():
            ctype = part.get_content_type()
            disp = str(part.get('Content-Disposition'))
            if 'attachment' in disp:
                continue
            if ctype == 'text/plain':
                text += _part_text(part)
            elif ctype == 'text/html' and html is None:
                html = _part_text(part)
    else:
        content = _part_text(msg)
        if msg.get_content_type() == 'text/html':
            html = content
        else:
            text = content
    return text, html


def parse_message(uid: str, raw: bytes) -> EmailDetail:
    msg = email.message_from_bytes(raw)
    text, html = extract_bodies(msg)
    return EmailDetail(
        id=uid,
        subject=_decode(msg.get('Subject')),
        sender=_decode(msg.get('From')),
        to=_decode(msg.get('To')),
        date=msg.get('Date'),
        message_id=(msg.get('Message-ID') or '').strip() or None,
        body=text,
        html=html,
    )


class ImapMailbox:
    def _connect(self, cfg: ImapAccount) -> imaplib.IMAP4:
        if not cfg.configured:
            raise RuntimeError(f"IMAP account '{cfg.name}' is not configured")
        if cfg.encryption == 'ssl':
            imap = imaplib.IMAP4_SSL(cfg.host, cfg.port, timeout=cfg.timeout)
        else:
            imap = imaplib.IMAP4(cfg.host, cfg.port, timeout=cfg.timeout)
        try:
            if cfg.encryption in ('tls', 'starttls'):
                imap.starttls()
            imap.login(cfg.username, cfg.password)
            # readonly keeps the \Seen flag untouched
            imap.select(cfg.folder, readonly=True)
        except Exception:
            imap.shutdown()
            raise
        return imap

    def list_inbox(self, account: Optional[str] = None) -> List[EmailSummary]:
        cfg = imap_account(account)
        log.info("Attempting to retrieve emails from IMAP server", extra={"account": cfg.name})
        imap = self._connect(cfg)
        try:
            status, data = imap.uid('SEARCH', None, 'ALL')
            if status != 'OK' or not data or not data[0]:
                return []
            uids = data[0].split()[-cfg.message_limit:]
            mails: List[EmailSummary] = []
            for uid in reversed(uids):
                res, msg_data = imap.uid('FETCH', uid, '(BODY.PEEK[HEADER.FIELDS (SUBJECT FROM DATE MESSAGE-ID)])')
                if res != 'OK':
                    continue
                for response_part in msg_data:
                    if isinstance(response_part, tuple):
                        msg = email.message_from_bytes(response_part[1])
                        mails.append(EmailSummary(
                            id=uid.decode(),
                            subject=_decode(msg.get('Subject')),
                            sender=_decode(msg.get('From')),
                            date=msg.get('Date'),
                            message_id=(msg.get('Message-ID') or '').strip() or None,
                        ))
            log.info(f"Retrieved {len(mails)} emails", extra={"account": cfg.name})
            return mails
        finally:
            imap.logout()

    def get_email(self, email_id: str, account: Optional[str] = None) -> Optional[EmailDetail]:
        cfg = imap_account(account)
        imap = self._connect(cfg)
        try:
            try:
                res, msg_data = imap.uid('FETCH', email_id, '(BODY.PEEK[])')
            except imaplib.IMAP4.error as e:
                # server answers BAD for a malformed uid
                log.warning(f"Cannot fetch uid {email_id}: {e}", extra={"email_id": email_id, "account": cfg.name})
                return None
            if res != 'OK' or not msg_data:
                return None
            for response_part in msg_data:
                if isinstance(response_part, tuple):
                    return parse_message(email_id, response_part[1])
            return None
        finally:
            imap.logout()


def get_mailbox() -> ImapMailbox:
    return ImapMailbox()
