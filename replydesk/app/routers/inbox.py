from fastapi import APIRouter, Depends, Query
from typing import Optional, Any, Dict
from sqlalchemy.orm import Session
import logging

from ..core.config import default_account, signature_for
from ..core.errors import NotFound
from ..db.database import get_db
from ..schemas.email import EmailDetail
from ..schemas.reply import GenerateReplyRequest, SendReplyRequest
from ..schemas.template import TemplateOut
from ..security.auth import UserContext, get_current_user
from ..services.ai_client import get_ai_client
from ..services.mailbox import get_mailbox
from ..services.mailer import get_transport
from ..services import quick_reply_service as templates
from ..services.instructions import resolve_instruction
from ..services.reply_lifecycle import generate_draft, save_draft, send_reply, get_reply, combine_reply

router = APIRouter()
log = logging.getLogger(__name__)


def _templates_payload(db: Session):
    return [TemplateOut.model_validate(t).model_dump(mode='json') for t in templates.get_user_templates(db)]


def _email_payload(email: EmailDetail) -> Dict[str, Any]:
    return email.model_dump(by_alias=True)


def _resolve_email(mailbox, email_id: str, account: str) -> EmailDetail:
    try:
        email = mailbox.get_email(email_id, account)
    except Exception as e:
        log.error("Error retrieving email details", exc_info=e, extra={"email_id": email_id, "account": account})
        raise NotFound(email_id, account, reason=f"Failed to retrieve email: {e}") from e
    if email is None:
        log.warning("Email not found", extra={"email_id": email_id, "account": account})
        raise NotFound(email_id, account)
    return email


@router.get("")
def list_inbox(account: Optional[str] = Query(None), mailbox=Depends(get_mailbox)):
    account_id = account or default_account()
    try:
        emails = mailbox.list_inbox(account_id)
    except Exception as e:
        log.error("Error retrieving emails from IMAP server", exc_info=e, extra={"account": account_id})
        return {"emails": [], "account": account_id, "error": f"Failed to connect to the email server: {e}"}
    if not emails:
        log.warning("No emails found in IMAP inbox", extra={"account": account_id})
    return {"emails": [m.model_dump(by_alias=True) for m in emails], "account": account_id}


@router.get("/{email_id}")
def show_email(
    email_id: str,
    account: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_current_user),
    mailbox=Depends(get_mailbox),
):
    account_id = account or default_account()
    email = _resolve_email(mailbox, email_id, account_id)

    reply = get_reply(db, user, email_id, account_id)
    return {
        "email": _email_payload(email),
        "latest_reply": reply.latest_ai_reply if reply else None,
        "chat_history": (reply.chat_history or []) if reply else [],
        "status": reply.status if reply else None,
        "signature": signature_for(account_id),
        "account": account_id,
        "quick_reply_templates": _templates_payload(db),
    }


@router.post("/{email_id}/generate-reply")
def generate_reply(
    email_id: str,
    payload: GenerateReplyRequest,
    account: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_current_user),
    mailbox=Depends(get_mailbox),
    ai=Depends(get_ai_client),
):
    account_id = account or default_account()
    email = _resolve_email(mailbox, email_id, account_id)

    existing = get_reply(db, user, email_id, account_id)
    history = (existing.chat_history or []) if existing else []

    def _lookup(template_id: int) -> Optional[str]:
        template = templates.get_template(db, template_id)
        return template.template_text if template else None

    resolved = resolve_instruction(payload, _lookup)
    log.info("Sending instruction to AI", extra={
        "email_id": email_id, "account": account_id, "user_id": user.user_id, "template_id": payload.template_id,
    })
    try:
        reply, updated = generate_draft(email, resolved.text, history, ai)
    except Exception as e:
        log.error("Reply generation failed", exc_info=e, extra={"email_id": email_id, "account": account_id, "user_id": user.user_id})
        raise

    save_draft(db, user, email_id, account_id, reply, updated)
    return {
        "email": _email_payload(email),
        "latest_reply": reply,
        "chat_history": updated,
        "instruction_source": resolved.source,
        "signature": signature_for(account_id),
        "message": "Reply generated successfully.",
        "success": True,
        "account": account_id,
        "quick_reply_templates": _templates_payload(db),
    }


@router.post("/{email_id}/send-reply")
def send_email_reply(
    email_id: str,
    payload: SendReplyRequest,
    account: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_current_user),
    mailbox=Depends(get_mailbox),
    transport=Depends(get_transport),
):
    account_id = account or default_account()
    email = _resolve_email(mailbox, email_id, account_id)

    combined = combine_reply(payload.reply, payload.signature)
    if send_reply(db, user, email, combined, account_id, transport):
        return {
            "success": True,
            "message": "Reply sent successfully",
            "redirect": f"/inbox?account={account_id}",
            "account": account_id,
        }
    return {
        "success": False,
        "message": "Failed to send reply. Please try again.",
        "email": _email_payload(email),
        "latest_reply": payload.reply,
        "signature": signature_for(account_id),
        "account": account_id,
    }
