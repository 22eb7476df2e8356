from fastapi import APIRouter, Depends
from sqlmodel import Session

from app.database import get_session
from app.dependencies.admin import require_action
from app.dependencies.policy import Action
from app.models.user import User
from app.services.reporting_service import dashboard_stats, revenue_by_day

router = APIRouter()

require_reports = require_action(Action.VIEW_REPORTS)


@router.get("")
def dashboard(
    session: Session = Depends(get_session),
    _: User = Depends(require_reports),
):
    return dashboard_stats(session)


@router.get("/revenue")
def revenue_chart(
    session: Session = Depends(get_session),
    _: User = Depends(require_reports),
):
    return {"revenue": revenue_by_day(session)}
