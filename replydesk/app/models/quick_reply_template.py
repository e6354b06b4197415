from sqlalchemy import Column, Integer, String, DateTime, Text, Boolean, Index, UniqueConstraint
from ..db.database import Base
from datetime import datetime, timezone


def _utcnow():
    return datetime.now(timezone.utc)


class QuickReplyTemplate(Base):
    __tablename__ = 'quick_reply_templates'
    __table_args__ = (
        UniqueConstraint('user_id', 'name', name='uq_quick_reply_templates_user_name'),
        Index('ix_quick_reply_templates_user_active', 'user_id', 'is_active'),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, nullable=False)
    name = Column(String(255), nullable=False)
    template_text = Column(Text, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    sort_order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)
