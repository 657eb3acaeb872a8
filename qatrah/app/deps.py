"""Dependency injection utilities."""
from collections.abc import Generator

from fastapi import Depends, Request
from sqlmodel import Session

from .config import SUBJECT_HEADER
from .domain.policy import IdentityContext
from .infra.db import get_session
from .services.identity import resolve_identity
from .services.store import ResourceStore


def db_session() -> Generator[Session, None, None]:
    """Provide a scoped DB session to FastAPI endpoints."""
    with get_session() as session:
        yield session


def identity(request: Request, session: Session = Depends(db_session)) -> IdentityContext:
    return resolve_identity(session, request.headers.get(SUBJECT_HEADER))


def resource_store(
    context: IdentityContext = Depends(identity),
    session: Session = Depends(db_session),
) -> ResourceStore:
    return ResourceStore(session, context)
