"""Admission service: validate, de-duplicate, check stay capacity and persist; plus read-side queries."""
import logging
import math
from datetime import datetime, timezone

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.config import EventConfig
from app.enums import Institution, RegistrationStatus, StayPreference
from app.errors import CapacityExhaustedError, DuplicateError, NotFoundError
from app.models.registration import Registration
from app.schemas.registration import RegistrationSubmission
from app.services.audit_log import CATEGORY_ADMISSION, create_log
from app.services.capacity import CapacityLedger
from app.services.validation import normalize_email, validate_submission

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 200
DEFAULT_PAGE_SIZE = 50
TOP_AMBASSADOR_CODES = 10


def email_registered(db: Session, email: str) -> bool:
    email = normalize_email(email)
    return db.query(Registration.id).filter(Registration.email == email).first() is not None


def transaction_used(db: Session, transaction_id: str) -> bool:
    return db.query(Registration.id).filter(Registration.transaction_id == transaction_id).first() is not None


def _duplicate_from_integrity_error(exc: IntegrityError) -> DuplicateError | None:
    """Map a unique-constraint violation back to its field; None for any other integrity failure."""
    text = str(exc.orig).lower()
    if "unique" not in text and "duplicate" not in text:
        return None
    if "transaction_id" in text:
        return DuplicateError("transaction_id")
    if "email" in text:
        return DuplicateError("email")
    return None


def admit_registration(
    db: Session,
    submission: RegistrationSubmission,
    config: EventConfig,
    *,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> Registration:
    """Accept one public submission or raise a RegistrationError subclass.

    Order: validation (incl. total cross-check) -> duplicate email -> duplicate
    transaction id -> stay capacity -> insert. Nothing is written on failure.
    """
    data = validate_submission(submission, config)

    if email_registered(db, data.email):
        raise DuplicateError("email")
    if transaction_used(db, data.transaction_id):
        raise DuplicateError("transaction_id")

    if data.stay_preference == StayPreference.with_stay:
        ledger = CapacityLedger(db, config.stay_capacity, config.price_per_night)
        if not ledger.has_capacity():
            logger.info("Stay capacity exhausted (%s); refusing %s", config.stay_capacity, data.email)
            raise CapacityExhaustedError(config.stay_capacity)

    registration = Registration(
        full_name=data.full_name,
        email=data.email,
        phone=data.phone,
        institution=data.institution,
        college=data.college,
        department=data.department,
        year=data.year,
        is_member=data.is_member,
        membership_number=data.membership_number,
        stay_preference=data.stay_preference,
        stay_dates=data.stay_dates,
        stay_days=data.stay_days,
        stay_price_per_night=data.stay_price_per_night,
        stay_total_amount=data.stay_total_amount,
        ambassador_code=data.ambassador_code,
        base_amount=data.base_amount,
        total_amount=data.total_amount,
        transaction_id=data.transaction_id,
        payment_status=data.payment_status,
        status=RegistrationStatus.pending,
        registration_date=datetime.now(timezone.utc),
    )
    try:
        db.add(registration)
        db.flush()
        create_log(
            db,
            CATEGORY_ADMISSION,
            "Registration submitted",
            f"{data.full_name} ({data.email}) registered with transaction {data.transaction_id}",
            registration_id=registration.id,
            actor=data.email,
            ip_address=ip_address,
            user_agent=user_agent,
            meta={
                "institution": data.institution,
                "stay_preference": data.stay_preference,
                "stay_days": data.stay_days,
                "total_amount": data.total_amount,
            },
        )
        db.commit()
    except IntegrityError as e:
        db.rollback()
        duplicate = _duplicate_from_integrity_error(e)
        if duplicate is None:
            raise
        raise duplicate from e
    db.refresh(registration)
    logger.info("Registration admitted: id=%s email=%s total=%s", registration.id, registration.email, registration.total_amount)
    return registration


def get_registration(db: Session, registration_id: str) -> Registration:
    registration = db.query(Registration).filter(Registration.id == registration_id).first()
    if not registration:
        raise NotFoundError()
    return registration


def find_by_transaction_id(db: Session, transaction_id: str) -> Registration:
    registration = db.query(Registration).filter(Registration.transaction_id == transaction_id.strip()).first()
    if not registration:
        raise NotFoundError("No registration found for this transaction ID")
    return registration


def list_registrations(
    db: Session,
    *,
    status: RegistrationStatus | None = None,
    institution: Institution | None = None,
    search: str | None = None,
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
) -> tuple[list[Registration], int]:
    """Newest first. Returns (items for the page, total matching)."""
    page = max(1, page)
    limit = min(max(1, limit), MAX_PAGE_SIZE)
    q = db.query(Registration)
    if status is not None:
        q = q.filter(Registration.status == status)
    if institution is not None:
        q = q.filter(Registration.institution == institution)
    term = (search or "").strip()
    if term:
        escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        like = f"%{escaped}%"
        q = q.filter(
            or_(
                Registration.full_name.ilike(like, escape="\\"),
                Registration.email.ilike(like, escape="\\"),
                Registration.transaction_id.ilike(like, escape="\\"),
                Registration.college.ilike(like, escape="\\"),
                Registration.department.ilike(like, escape="\\"),
                Registration.ambassador_code.ilike(like, escape="\\"),
            )
        )
    total = q.count()
    items = (
        q.order_by(Registration.registration_date.desc(), Registration.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return items, total


def total_pages(total: int, limit: int) -> int:
    return math.ceil(total / limit) if limit else 0


def _buckets(db: Session, column) -> list[dict]:
    rows = db.query(column, func.count(Registration.id)).group_by(column).order_by(func.count(Registration.id).desc()).all()
    return [{"key": getattr(key, "value", key) if key is not None else "", "count": count} for key, count in rows]


def compute_stats(db: Session, config: EventConfig) -> dict:
    by_status = dict(db.query(Registration.status, func.count(Registration.id)).group_by(Registration.status).all())
    revenue = (
        db.query(func.coalesce(func.sum(Registration.total_amount), 0))
        .filter(Registration.status == RegistrationStatus.approved)
        .scalar()
    )
    availability = CapacityLedger(db, config.stay_capacity, config.price_per_night).availability()

    with_code = Registration.ambassador_code != ""
    top_codes = (
        db.query(Registration.ambassador_code, func.count(Registration.id))
        .filter(with_code)
        .group_by(Registration.ambassador_code)
        .order_by(func.count(Registration.id).desc(), Registration.ambassador_code)
        .limit(TOP_AMBASSADOR_CODES)
        .all()
    )

    return {
        "total_registrations": sum(by_status.values()),
        "pending_registrations": by_status.get(RegistrationStatus.pending, 0),
        "approved_registrations": by_status.get(RegistrationStatus.approved, 0),
        "rejected_registrations": by_status.get(RegistrationStatus.rejected, 0),
        "total_revenue": int(revenue or 0),
        "stay_stats": {
            "capacity": availability.total_capacity,
            "used": availability.used,
            "remaining": availability.remaining,
            "price_per_night": availability.price_per_night,
        },
        "by_institution": _buckets(db, Registration.institution),
        "by_stay_preference": _buckets(db, Registration.stay_preference),
        "by_department": _buckets(db, Registration.department),
        "by_year": _buckets(db, Registration.year),
        "ambassador_stats": {
            "total_with_code": db.query(Registration).filter(with_code).count(),
            "top_codes": [{"key": code, "count": count} for code, count in top_codes],
        },
        "last_updated": datetime.now(timezone.utc).isoformat(),
    }
