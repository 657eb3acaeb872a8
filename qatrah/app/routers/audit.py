"""Audit routes."""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session, select

from ..deps import db_session, identity
from ..domain.models import AccessLog, AccessLogRead
from ..domain.policy import Action, IdentityContext
from ..services.abac import AccessEvaluator

router = APIRouter()


@router.get("/logs", response_model=List[AccessLogRead])
def audit_logs(
    actor_id: Optional[str] = Query(None),
    action: Optional[str] = Query(None),
    allowed: Optional[bool] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    context: IdentityContext = Depends(identity),
    session: Session = Depends(db_session),
) -> List[AccessLogRead]:
    AccessEvaluator(session).require_admin(context, Action.READ, "audit:logs")
    stmt = select(AccessLog).order_by(AccessLog.created_at.desc()).limit(limit)
    if actor_id:
        stmt = stmt.where(AccessLog.actor_id == actor_id)
    if action:
        stmt = stmt.where(AccessLog.action == action)
    if allowed is not None:
        stmt = stmt.where(AccessLog.allowed == allowed)
    return session.exec(stmt).all()
