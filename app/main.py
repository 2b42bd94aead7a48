# app/main.py
from fastapi import FastAPI, Depends, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from sqlalchemy.orm import Session
from sqlalchemy import text

from app.core.config import settings
from app.core.deps import get_db
from app.core.exceptions import InquiryError, ValidationError
from app.core.logging import configure_logging
from app.db.session import engine
from app.db.mixins import Base
from app.schemas.inquiry import ApiResult, FieldErrorOut
# load DB models so Base.metadata is populated
import app.db.models  # noqa: F401

# Routers
from app.api.v1.auth import router as auth_router
from app.api.v1.inquiries import router as inquiries_router

configure_logging(settings.LOG_LEVEL)

app = FastAPI(title=settings.APP_NAME)

@app.on_event("startup")
def on_startup():
    Base.metadata.create_all(bind=engine)

# Middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------------------
# Error envelopes
# ---------------------------
def _error(status_code: int, message: str, errors=None, headers=None) -> JSONResponse:
    body = ApiResult(success=False, message=message, errors=errors or [])
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"), headers=headers)

@app.exception_handler(InquiryError)
def inquiry_error_handler(request: Request, exc: InquiryError):
    errors = []
    if isinstance(exc, ValidationError):
        errors = [FieldErrorOut(field=e.field, reason=e.reason) for e in exc.errors]
    return _error(exc.status_code, exc.message, errors)

@app.exception_handler(StarletteHTTPException)
def http_error_handler(request: Request, exc: StarletteHTTPException):
    return _error(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))

@app.exception_handler(RequestValidationError)
def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = [
        FieldErrorOut(field=str(err["loc"][-1]), reason=err.get("msg", "invalid"))
        for err in exc.errors()
    ]
    return _error(422, "The given data was invalid.", errors)

# Routers
app.include_router(auth_router, prefix="/api/v1", tags=["auth"])
app.include_router(inquiries_router, prefix="/api/v1", tags=["inquiries"])

@app.get("/health")
def health():
    return {"status": "ok", "app": settings.APP_NAME}

@app.get("/debug/db-ping")
def db_ping(db: Session = Depends(get_db)):
    db.execute(text("SELECT 1"))
    return {"db": "ok"}
