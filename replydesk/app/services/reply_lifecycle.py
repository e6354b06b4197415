"""Draft / send lifecycle for AI-assisted email replies.

One EmailReply row exists per (email_id, account, user_id). Its status moves
draft -> sending -> sent | failed; a repeated send re-enters ``sending`` on the
same row. ``chat_history`` is the conversation sent to the AI and only grows.
"""
from datetime import datetime, timezone
from typing import List, Dict, Optional, Tuple
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.events import broadcaster
from ..models.email_reply import EmailReply
from ..schemas.email import EmailDetail
from ..security.auth import UserContext

log = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are an email assistant that helps the user craft replies. The user will provide you "
    "with an email to respond to and specific instructions on how to craft the reply. Generate a "
    "professional and appropriate response according to the user's instructions. Do not include "
    "any email closing, signature or placeholder fields. Return ONLY the reply body text "
    "(including greeting and closing phrases) with NO \"Subject:\" line."
)


def _now():
    return datetime.now(timezone.utc)


def email_context_message(email: EmailDetail) -> Dict[str, str]:
    return {
        'role': 'user',
        'content': (
            "I need to reply to this email:\n\n"
            f"From: {email.sender}\nSubject: {email.subject}\nDate: {email.date or ''}\n\n{email.body}"
        ),
    }


def generate_draft(email: EmailDetail, instruction: str, history: Optional[List[Dict[str, str]]], ai) -> Tuple[str, List[Dict[str, str]]]:
    """Ask the AI for a reply and return it with the extended conversation.

    An empty history is bootstrapped with the system persona and the email
    context; otherwise only the instruction and the answer are appended.
    """
    updated = list(history or [])
    if not updated:
        updated.append({'role': 'system', 'content': SYSTEM_PROMPT})
        updated.append(email_context_message(email))
    updated.append({'role': 'user', 'content': instruction})

    reply = ai.complete(updated)

    updated.append({'role': 'assistant', 'content': reply})
    return reply, updated


def format_reply_subject(subject: Optional[str]) -> str:
    subject = subject or ''
    if subject.lower().startswith('re:'):
        return subject
    return f"Re: {subject}"


def combine_reply(reply: str, signature: Optional[str] = None) -> str:
    combined = reply.strip()
    sig = (signature or '').strip()
    if sig:
        combined += "\n\n" + sig
    return combined


def get_reply(db: Session, ctx: UserContext, email_id: str, account: str) -> Optional[EmailReply]:
    return db.query(EmailReply).filter(
        EmailReply.email_id == email_id,
        EmailReply.account == account,
        EmailReply.user_id == ctx.user_id,
    ).first()


def _upsert(db: Session, ctx: UserContext, email_id: str, account: str, **fields) -> EmailReply:
    """Read-then-insert-or-update on the natural key within one transaction."""
    row = get_reply(db, ctx, email_id, account)
    if row is None:
        row = EmailReply(email_id=email_id, account=account, user_id=ctx.user_id, chat_history=[])
        try:
            with db.begin_nested():
                db.add(row)
        except IntegrityError:
            # another request inserted the same key first; update theirs
            row = get_reply(db, ctx, email_id, account)
            if row is None:
                raise
    for k, v in fields.items():
        setattr(row, k, v)
    db.commit()
    db.refresh(row)
    return row


def _publish_status(row: EmailReply):
    broadcaster.publish("email_reply_status", {
        "id": row.id,
        "email_id": row.email_id,
        "account": row.account,
        "status": row.status,
    })


def save_draft(db: Session, ctx: UserContext, email_id: str, account: str, reply: str, history: List[Dict[str, str]]) -> EmailReply:
    # sent_at is left as is
    row = _upsert(
        db, ctx, email_id, account,
        latest_ai_reply=reply,
        chat_history=list(history),
        status='draft',
    )
    log.info("Draft reply saved", extra={"email_id": email_id, "account": account, "user_id": ctx.user_id})
    _publish_status(row)
    return row


def send_reply(db: Session, ctx: UserContext, email: EmailDetail, combined_text: str, account: str, transport) -> bool:
    """Deliver the reply and record the outcome. Never raises on transport failure."""
    subject = format_reply_subject(email.subject)
    row = _upsert(
        db, ctx, email.id, account,
        latest_ai_reply=combined_text,
        status='sending',
        recipient_email=email.sender,
        subject=subject,
        error_message=None,
        failed_at=None,
    )
    _publish_status(row)
    context = {"email_id": email.id, "account": account, "recipient": email.sender, "user_id": ctx.user_id}

    try:
        transport.deliver(account, email.sender, subject, combined_text, email.message_id)
    except Exception as e:
        row.status = 'failed'
        row.failed_at = _now()
        row.error_message = str(e)
        db.commit()
        log.error(f"Failed to send email reply: {e}", exc_info=e, extra=context)
        _publish_status(row)
        return False

    row.status = 'sent'
    row.sent_at = _now()
    row.error_message = None
    db.commit()
    log.info("Email reply sent successfully", extra=context)
    _publish_status(row)
    return True

