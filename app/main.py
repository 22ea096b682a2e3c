"""Event Registration – FastAPI application."""
# Load .env before any app code that might read config
from dotenv import load_dotenv
from pathlib import Path
load_dotenv(Path(__file__).resolve().parent.parent / ".env")

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import EventConfig, get_event_config, get_settings
from app.database import Base, engine, get_db
from app.errors import RegistrationError
from app.logging_config import setup_logging
# Import models so Base.metadata has all tables before create_all (schema source of truth)
from app.models import AuditLog, Registration  # noqa: F401
from app.routers import admin, registrations
from app.services.pricing import pricing_table

setup_logging()
logger = logging.getLogger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.mailgun_api_key and settings.mailgun_domain:
        logger.info("Mail via Mailgun domain=%s", settings.mailgun_domain)
    elif settings.smtp_host:
        logger.info("Mail via SMTP host=%s:%s", settings.smtp_host, settings.smtp_port)
    else:
        logger.warning("Mail not configured - status emails will be skipped; set Mailgun or SMTP in .env")
    try:
        Base.metadata.create_all(bind=engine)
    except SQLAlchemyError as e:
        logger.warning("Database startup failed (tables skipped). Check DATABASE_URL. Error: %s", e)
    yield


app = FastAPI(title=settings.app_name, debug=settings.debug, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RegistrationError)
async def registration_error_handler(request: Request, exc: RegistrationError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"field": ".".join(str(p) for p in err.get("loc", ())[1:]) or "body", "message": err.get("msg", "")}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content={"detail": "Validation failed", "code": "validation_error", "errors": errors},
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    content = {"detail": "Server error. Please try again later."}
    if settings.debug and not settings.is_production:
        content["error"] = str(exc)
    return JSONResponse(status_code=500, content=content)


app.include_router(registrations.router, prefix="/api")
app.include_router(admin.router, prefix="/api")


@app.get("/")
def root(config: EventConfig = Depends(get_event_config)):
    return {
        "app": settings.app_name,
        "event": settings.event_name,
        "status": "ok",
        "stay_capacity": config.stay_capacity,
        "stay_price_per_night": config.price_per_night,
        "pricing": pricing_table(config),
    }


@app.get("/api/health")
def health(db: Session = Depends(get_db)):
    try:
        db.execute(text("SELECT 1"))
        database = "connected"
    except SQLAlchemyError as e:
        logger.error("Health check database error: %s", e)
        database = "unavailable"
    return {"status": "healthy" if database == "connected" else "degraded", "database": database}
