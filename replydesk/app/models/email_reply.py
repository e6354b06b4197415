from sqlalchemy import Column, Integer, String, DateTime, Text, JSON, UniqueConstraint, Index
from ..db.database import Base
from datetime import datetime, timezone

REPLY_STATUSES = ('draft', 'sending', 'sent', 'failed')

_STATUS_LABELS = {'sent': 'Sent', 'failed': 'Failed', 'sending': 'Sending', 'draft': 'Draft'}
_STATUS_COLORS = {'sent': 'green', 'failed': 'red', 'sending': 'yellow', 'draft': 'gray'}


def _utcnow():
    return datetime.now(timezone.utc)


class EmailReply(Base):
    __tablename__ = 'email_replies'
    __table_args__ = (
        UniqueConstraint('email_id', 'account', 'user_id', name='uq_email_replies_email_account_user'),
        Index('ix_email_replies_user_status', 'user_id', 'status'),
        Index('ix_email_replies_user_sent_at', 'user_id', 'sent_at'),
    )

    id = Column(Integer, primary_key=True, index=True)
    # opaque identifier from the mailbox (IMAP UID)
    email_id = Column(String, nullable=False, index=True)
    account = Column(String, nullable=False, default='default', index=True)
    user_id = Column(Integer, nullable=False, index=True)
    latest_ai_reply = Column(Text)
    chat_history = Column(JSON, nullable=False, default=list)
    status = Column(String, nullable=False, default='draft', index=True)
    sent_at = Column(DateTime, nullable=True)
    failed_at = Column(DateTime, nullable=True)
    error_message = Column(Text, nullable=True)
    recipient_email = Column(String, nullable=True)
    subject = Column(String, nullable=True)
    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow, index=True)

    @property
    def status_label(self) -> str:
        return _STATUS_LABELS.get(self.status, 'Unknown')

    @property
    def status_color(self) -> str:
        return _STATUS_COLORS.get(self.status, 'gray')
