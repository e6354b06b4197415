from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional

from ..db.database import get_db
from ..schemas.reply import EmailReplyOut, ActivityDashboard
from ..security.auth import UserContext, get_current_user
from ..services.activity_service import recent_activity, activity_stats, account_breakdown, live_activity

router = APIRouter()


@router.get("/email-activity", response_model=ActivityDashboard)
def dashboard(
    account: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_current_user),
):
    return ActivityDashboard(
        recent_activity=[EmailReplyOut.model_validate(r) for r in recent_activity(db, user, account)],
        stats=activity_stats(db, user, account),
        account_stats=account_breakdown(db, user),
        current_account=account,
    )


@router.get("/api/email-activity", response_model=list[EmailReplyOut])
def poll_activity(
    account: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_current_user),
):
    return [EmailReplyOut.model_validate(r) for r in live_activity(db, user, account)]
