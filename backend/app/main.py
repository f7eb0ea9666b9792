import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Ensure all SQLAlchemy models are imported so relationships resolve
import app.models  # noqa: F401

from app.config import get_settings
from app.services.errors import CheckInError, DuplicateCheckIn
from app.services.notifications import build_notifier

from app.api import (
    rbac,              # /api/churches
    members,           # /api/members
    attendance,        # /api/attendance, /api/fingerprint
    visitors,          # /api/visitors, /api/visitor-checkin
    events,            # /api/events
    external_checkin,  # /api/external-checkin
    follow_up,         # /api/follow-up
    reports,           # /api/reports
    exports,           # /api/export
)

# Ops/system endpoints (/health, /version)
from app.api.system import router as system_router

settings = get_settings()
logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="ChurchConnect Backend", version="0.1.0")

# --- CORS for the frontend ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Notification sender shared by follow-up routes (see app.dependencies)
app.state.notifier = build_notifier(settings)


# --- Error mapping ---
def _error_list(errors):
    return [{"loc": list(e.get("loc", ())), "msg": e.get("msg"), "type": e.get("type")} for e in errors]


@app.exception_handler(CheckInError)
async def check_in_error_handler(request: Request, exc: CheckInError):
    body = {"detail": str(exc)}
    if isinstance(exc, DuplicateCheckIn):
        body["is_duplicate"] = True
        body["existing_id"] = exc.existing_id
    return JSONResponse(status_code=exc.status_code, content=body)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    loc = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    msg = first.get("msg", "Invalid request")
    detail = f"{loc}: {msg}" if loc else msg
    return JSONResponse(status_code=400, content={"detail": detail, "errors": _error_list(errors)})


# Routers
app.include_router(system_router)  # /health, /version

API = "/api"
app.include_router(rbac.router, prefix=API)
app.include_router(members.router, prefix=API)
app.include_router(attendance.router, prefix=API)
app.include_router(attendance.fingerprint_router, prefix=API)
app.include_router(visitors.router, prefix=API)
app.include_router(visitors.checkin_router, prefix=API)
app.include_router(events.router, prefix=API)
app.include_router(external_checkin.router, prefix=API)
app.include_router(follow_up.router, prefix=API)
app.include_router(reports.router, prefix=API)
app.include_router(exports.router, prefix=API)
