from typing import List, Optional, Dict, Any
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.errors import DuplicateTemplate
from ..models.quick_reply_template import QuickReplyTemplate
from ..security.auth import UserContext

log = logging.getLogger(__name__)

DEFAULT_TEMPLATES = [
    {
        'name': 'Account Activation (German)',
        'template_text': 'Dein Account auf www.myitjob.ch ist jetzt aktiv! Ich freue mich, dir mitteilen zu können, dass schon einige spannende Jobvorschläge auf dich warten. Es wäre grossartig, wenn du die Gelegenheit findest, dich bald einzuloggen und sie dir anzuschauen.',
        'sort_order': 1,
    },
    {
        'name': 'Thank You',
        'template_text': 'Thank you for your email. I appreciate you reaching out and will get back to you soon.',
        'sort_order': 2,
    },
    {
        'name': 'Follow Up',
        'template_text': 'I wanted to follow up on our previous conversation. Please let me know if you have any questions.',
        'sort_order': 3,
    },
]

UPDATABLE_FIELDS = {'name', 'template_text', 'sort_order', 'is_active'}


def _active(db: Session):
    return db.query(QuickReplyTemplate).filter(QuickReplyTemplate.is_active.is_(True))


def get_user_templates(db: Session) -> List[QuickReplyTemplate]:
    """All active templates; they are shared between users."""
    return _active(db).order_by(QuickReplyTemplate.sort_order, QuickReplyTemplate.name).all()


def get_template(db: Session, template_id: int) -> Optional[QuickReplyTemplate]:
    return _active(db).filter(QuickReplyTemplate.id == template_id).first()


def _owned(db: Session, ctx: UserContext, template_id: int):
    return db.query(QuickReplyTemplate).filter(
        QuickReplyTemplate.id == template_id,
        QuickReplyTemplate.user_id == ctx.user_id,
    )


def _commit_unique(db: Session, name: str):
    # names are unique per owner
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise DuplicateTemplate(name) from e


def create_template(db: Session, ctx: UserContext, name: str, template_text: str, sort_order: int = 0) -> QuickReplyTemplate:
    template = QuickReplyTemplate(
        user_id=ctx.user_id,
        name=name,
        template_text=template_text,
        sort_order=sort_order,
        is_active=True,
    )
    db.add(template)
    _commit_unique(db, name)
    db.refresh(template)
    return template


def update_template(db: Session, ctx: UserContext, template_id: int, data: Dict[str, Any]) -> bool:
    template = _owned(db, ctx, template_id).first()
    if template is None:
        log.warning("Template update rejected", extra={"template_id": template_id, "user_id": ctx.user_id})
        return False
    for k, v in data.items():
        if k in UPDATABLE_FIELDS and v is not None:
            setattr(template, k, v)
    _commit_unique(db, template.name)
    return True


def delete_template(db: Session, ctx: UserContext, template_id: int) -> bool:
    deleted = _owned(db, ctx, template_id).delete(synchronize_session=False)
    db.commit()
    if not deleted:
        log.warning("Template delete rejected", extra={"template_id": template_id, "user_id": ctx.user_id})
    return deleted > 0


def create_default_templates(db: Session, ctx: UserContext) -> List[QuickReplyTemplate]:
    """Seed the fixed templates for the caller; safe to run repeatedly."""
    seeded = []
    for item in DEFAULT_TEMPLATES:
        template = db.query(QuickReplyTemplate).filter(
            QuickReplyTemplate.user_id == ctx.user_id,
            QuickReplyTemplate.name == item['name'],
        ).first()
        if template is None:
            template = QuickReplyTemplate(user_id=ctx.user_id, name=item['name'])
            db.add(template)
        template.template_text = item['template_text']
        template.sort_order = item['sort_order']
        template.is_active = True
        seeded.append(template)
    db.commit()
    return seeded
