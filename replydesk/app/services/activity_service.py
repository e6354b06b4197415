from datetime import datetime, timedelta, timezone
from typing import Optional, List, Dict

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..models.email_reply import EmailReply
from ..security.auth import UserContext


def _scoped(db: Session, ctx: UserContext, account: Optional[str]):
    q = db.query(EmailReply).filter(EmailReply.user_id == ctx.user_id)
    if account:
        q = q.filter(EmailReply.account == account)
    return q


def recent_activity(db: Session, ctx: UserContext, account: Optional[str] = None, limit: int = 20) -> List[EmailReply]:
    return (
        _scoped(db, ctx, account)
        .filter(EmailReply.status.in_(['sent', 'failed']))
        .order_by(EmailReply.sent_at.desc(), EmailReply.failed_at.desc())
        .limit(limit)
        .all()
    )


def activity_stats(db: Session, ctx: UserContext, account: Optional[str] = None, now: Optional[datetime] = None) -> Dict[str, int]:
    now = now or datetime.now(timezone.utc)
    start_of_day = now.replace(hour=0, minute=0, second=0, microsecond=0)
    # weeks start on Monday
    start_of_week = start_of_day - timedelta(days=start_of_day.weekday())
    sent = _scoped(db, ctx, account).filter(EmailReply.status == 'sent')
    return {
        'total_sent': sent.count(),
        'sent_today': sent.filter(EmailReply.sent_at >= start_of_day, EmailReply.sent_at < start_of_day + timedelta(days=1)).count(),
        'sent_this_week': sent.filter(EmailReply.sent_at >= start_of_week, EmailReply.sent_at <= now).count(),
        'failed_count': _scoped(db, ctx, account).filter(EmailReply.status == 'failed').count(),
    }


def account_breakdown(db: Session, ctx: UserContext) -> Dict[str, Dict[str, int]]:
    rows = (
        db.query(EmailReply.account, EmailReply.status, func.count(EmailReply.id))
        .filter(EmailReply.user_id == ctx.user_id, EmailReply.status.in_(['sent', 'failed']))
        .group_by(EmailReply.account, EmailReply.status)
        .all()
    )
    out: Dict[str, Dict[str, int]] = {}
    for account, status, count in rows:
        bucket = out.setdefault(account, {'sent': 0, 'failed': 0})
        bucket[status] = count
    return out


def live_activity(db: Session, ctx: UserContext, account: Optional[str] = None, limit: int = 10) -> List[EmailReply]:
    """Latest changes including in-flight sends, for polling clients."""
    return (
        _scoped(db, ctx, account)
        .filter(EmailReply.status.in_(['sent', 'failed', 'sending']))
        .order_by(EmailReply.updated_at.desc())
        .limit(limit)
        .all()
    )
