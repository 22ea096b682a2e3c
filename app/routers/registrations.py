"""Public registration endpoints: submit, status lookup, email check, stay availability."""
import logging

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from sqlalchemy.orm import Session

from app.config import EventConfig, get_event_config, get_settings
from app.database import get_db
from app.dependencies import Notifier, get_notifier
from app.errors import FieldError, RegistrationValidationError
from app.models.registration import Registration
from app.schemas.registration import (
    EmailCheckRequest,
    EmailCheckResponse,
    RegistrationStatusView,
    RegistrationSubmission,
    RegistrationSubmitted,
    RegistrationSummary,
    ReserveStayRequest,
    ReserveStayResponse,
    StayAvailabilityResponse,
)
from app.services.capacity import CapacityLedger
from app.services.registrations import admit_registration, email_registered, find_by_transaction_id
from app.services.validation import is_valid_email, normalize_email

logger = logging.getLogger(__name__)

router = APIRouter(tags=["registration"])

TRANSACTION_ID_MIN_LEN = 3


def _client_meta(request: Request) -> tuple[str | None, str | None]:
    ip = request.client.host if request.client else None
    ua = (request.headers.get("user-agent") or "").strip() or None
    return ip, ua


def _registration_to_summary(registration: Registration) -> RegistrationSummary:
    return RegistrationSummary(
        id=registration.id,
        registration_code=registration.registration_code(get_settings().registration_code_prefix),
        full_name=registration.full_name,
        email=registration.email,
        transaction_id=registration.transaction_id,
        total_amount=registration.total_amount,
        status=registration.status,
        ambassador_code=registration.ambassador_code or "",
    )


def _send_received_email(notifier: Notifier, registration: Registration) -> None:
    try:
        if not notifier.received(registration):
            logger.warning("Registration received email not sent for %s", registration.id)
    except Exception:
        logger.exception("Registration received email failed for %s", registration.id)


@router.post("/register", response_model=RegistrationSubmitted, status_code=201)
def register(
    request: Request,
    data: RegistrationSubmission,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    config: EventConfig = Depends(get_event_config),
    notifier: Notifier = Depends(get_notifier),
):
    ip, ua = _client_meta(request)
    registration = admit_registration(db, data, config, ip_address=ip, user_agent=ua)
    background_tasks.add_task(_send_received_email, notifier, registration)
    return RegistrationSubmitted(
        message="Registration submitted successfully. You will receive an email once it is reviewed.",
        registration=_registration_to_summary(registration),
    )


@router.get("/check-status/{transaction_id}", response_model=RegistrationStatusView)
def check_status(transaction_id: str, db: Session = Depends(get_db)):
    transaction_id = (transaction_id or "").strip()
    if len(transaction_id) < TRANSACTION_ID_MIN_LEN:
        message = "Please provide a valid transaction ID"
        raise RegistrationValidationError([FieldError("transaction_id", message)], message=message)
    registration = find_by_transaction_id(db, transaction_id)
    return RegistrationStatusView.model_validate(registration)


@router.post("/check-email", response_model=EmailCheckResponse)
def check_email(data: EmailCheckRequest, db: Session = Depends(get_db)):
    email = normalize_email(data.email)
    if not email:
        raise RegistrationValidationError([FieldError("email", "Email is required")], message="Email is required")
    if not is_valid_email(email):
        raise RegistrationValidationError([FieldError("email", "Invalid email format")], message="Invalid email format")
    if email_registered(db, email):
        return EmailCheckResponse(exists=True, message="This email is already registered")
    return EmailCheckResponse(exists=False, message="Email is available")


@router.get("/stay-availability", response_model=StayAvailabilityResponse)
def stay_availability(db: Session = Depends(get_db), config: EventConfig = Depends(get_event_config)):
    availability = CapacityLedger(db, config.stay_capacity, config.price_per_night).availability()
    return StayAvailabilityResponse(**availability._asdict())


@router.post("/reserve-stay", response_model=ReserveStayResponse)
def reserve_stay(
    data: ReserveStayRequest,
    db: Session = Depends(get_db),
    config: EventConfig = Depends(get_event_config),
):
    """Pre-check for the form before payment. Holds nothing; admission re-checks capacity."""
    stay_days = data.stay_days or 0
    if not 1 <= stay_days <= config.max_stay_nights:
        message = f"Stay days must be between 1 and {config.max_stay_nights}"
        raise RegistrationValidationError([FieldError("stay_days", message)], message=message)
    availability = CapacityLedger(db, config.stay_capacity, config.price_per_night).availability()
    message = "Stay is available" if availability.available else "Stay accommodation is full"
    return ReserveStayResponse(message=message, **availability._asdict())
