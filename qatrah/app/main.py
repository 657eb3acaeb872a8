"""FastAPI application bootstrap for Qatrah."""
from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .config import configure_logging
from .domain.errors import AccessDenied, InvalidRecord, RecordConflict
from .domain.schemas import DenialOut
from .infra.db import init_db
from .routers import audit, blood_banks, blood_requests, campaigns, donations, notifications, users

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    init_db()
    yield


async def access_denied_handler(request: Request, exc: AccessDenied) -> JSONResponse:
    logger.info("rejected %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=exc.status_code,
        content=DenialOut(detail=exc.reason, denied_fields=sorted(exc.denied_fields)).model_dump(),
    )


async def invalid_record_handler(request: Request, exc: InvalidRecord) -> JSONResponse:
    return JSONResponse(status_code=422, content={"detail": str(exc)})


async def record_conflict_handler(request: Request, exc: RecordConflict) -> JSONResponse:
    return JSONResponse(status_code=409, content={"detail": str(exc)})


def create_app() -> FastAPI:
    app = FastAPI(title="Qatrah API", version="0.1.0", lifespan=lifespan)

    app.add_exception_handler(AccessDenied, access_denied_handler)
    app.add_exception_handler(InvalidRecord, invalid_record_handler)
    app.add_exception_handler(RecordConflict, record_conflict_handler)

    app.include_router(users.router, prefix="/users", tags=["users"])
    app.include_router(blood_banks.router, prefix="/blood-banks", tags=["blood-banks"])
    app.include_router(campaigns.router, prefix="/campaigns", tags=["campaigns"])
    app.include_router(blood_requests.router, prefix="/blood-requests", tags=["blood-requests"])
    app.include_router(donations.router, prefix="/donations", tags=["donations"])
    app.include_router(notifications.router, prefix="/notifications", tags=["notifications"])
    app.include_router(audit.router, prefix="/audit", tags=["audit"])

    return app


app = create_app()
