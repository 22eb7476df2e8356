import logging
from datetime import datetime

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from app.config import settings
from app.database import get_session

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("")
def health_check(session: Session = Depends(get_session)):
    db_status = "ok"

    try:
        session.execute(text("SELECT 1"))
    except SQLAlchemyError:
        logger.exception("Database ping failed")
        db_status = "failed"

    return {
        "status": "ok" if db_status == "ok" else "degraded",
        "env": settings.ENV,
        "database": db_status,
        "timestamp": datetime.utcnow().isoformat(),
    }
