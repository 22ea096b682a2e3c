"""Review lifecycle: approve/reject a registration, then notify best-effort.

The decision is committed before any email is attempted; a mail failure only
shows up as email_sent=False on the result and in the audit log.
"""
import logging
from datetime import datetime, timezone
from typing import Callable, NamedTuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.enums import RegistrationStatus
from app.errors import FieldError, InvalidTransitionError, NotificationError, RegistrationValidationError
from app.models.registration import Registration
from app.services.audit_log import CATEGORY_NOTIFICATION, CATEGORY_STATUS_CHANGE, create_log
from app.services.registrations import get_registration

logger = logging.getLogger(__name__)

REJECTION_REASON_MIN_LEN = 5

# Current status -> statuses an admin may move it to. Nothing returns to pending.
ALLOWED_TRANSITIONS: dict[RegistrationStatus, frozenset[RegistrationStatus]] = {
    RegistrationStatus.pending: frozenset({RegistrationStatus.approved, RegistrationStatus.rejected}),
    RegistrationStatus.approved: frozenset({RegistrationStatus.approved, RegistrationStatus.rejected}),
    RegistrationStatus.rejected: frozenset({RegistrationStatus.approved, RegistrationStatus.rejected}),
}

Notify = Callable[[Registration], bool]


class TransitionResult(NamedTuple):
    registration: Registration
    email_sent: bool


def _check_transition(registration: Registration, target: RegistrationStatus) -> None:
    if target not in ALLOWED_TRANSITIONS[registration.status]:
        raise InvalidTransitionError(f"Cannot move registration from {registration.status.value} to {target.value}")


def _notify(db: Session, registration: Registration, notify: Notify | None, actor: str | None) -> bool:
    if notify is None:
        return False
    try:
        if not notify(registration):
            raise NotificationError(f"{registration.status.value} email to {registration.email} was not delivered")
        return True
    except NotificationError as e:
        logger.warning("Registration %s: %s", registration.id, e.message)
        message = e.message
    except Exception as e:
        logger.exception("Status email failed for registration %s", registration.id)
        message = f"{registration.status.value} email to {registration.email} failed: {e}"
    create_log(
        db,
        CATEGORY_NOTIFICATION,
        "Status email not sent",
        message,
        registration_id=registration.id,
        actor=actor,
    )
    return False


def _store_email_flag(db: Session, registration: Registration, attr: str, sent: bool) -> None:
    """Record the mail outcome. The decision is already committed, so a failure here is only logged."""
    setattr(registration, attr, sent)
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Could not store %s=%s for registration %s", attr, sent, registration.id)
    else:
        db.refresh(registration)


def approve(db: Session, registration_id: str, approver: str, notify: Notify | None = None) -> TransitionResult:
    registration = get_registration(db, registration_id)
    _check_transition(registration, RegistrationStatus.approved)
    previous = registration.status

    registration.status = RegistrationStatus.approved
    registration.approved_by = approver
    registration.approved_at = datetime.now(timezone.utc)
    registration.rejected_at = None
    registration.rejection_reason = None
    create_log(
        db,
        CATEGORY_STATUS_CHANGE,
        "Registration approved",
        f"{approver} approved registration for {registration.email}",
        registration_id=registration.id,
        actor=approver,
        meta={"previous_status": previous, "new_status": RegistrationStatus.approved},
    )
    db.commit()
    db.refresh(registration)
    logger.info("Registration %s approved by %s (was %s)", registration.id, approver, previous.value)

    sent = _notify(db, registration, notify, approver)
    _store_email_flag(db, registration, "approval_email_sent", sent)
    return TransitionResult(registration, sent)


def reject(
    db: Session,
    registration_id: str,
    reason: str | None,
    notify: Notify | None = None,
    actor: str | None = None,
) -> TransitionResult:
    reason = (reason or "").strip()
    if len(reason) < REJECTION_REASON_MIN_LEN:
        message = f"Please provide a rejection reason (minimum {REJECTION_REASON_MIN_LEN} characters)"
        raise RegistrationValidationError([FieldError("reason", message)], message=message)

    registration = get_registration(db, registration_id)
    _check_transition(registration, RegistrationStatus.rejected)
    previous = registration.status

    registration.status = RegistrationStatus.rejected
    registration.rejected_at = datetime.now(timezone.utc)
    registration.rejection_reason = reason
    registration.approved_by = None
    registration.approved_at = None
    create_log(
        db,
        CATEGORY_STATUS_CHANGE,
        "Registration rejected",
        f"Registration for {registration.email} rejected: {reason}",
        registration_id=registration.id,
        actor=actor,
        meta={"previous_status": previous, "new_status": RegistrationStatus.rejected, "reason": reason},
    )
    db.commit()
    db.refresh(registration)
    logger.info("Registration %s rejected (was %s)", registration.id, previous.value)

    sent = _notify(db, registration, notify, actor)
    _store_email_flag(db, registration, "rejection_email_sent", sent)
    return TransitionResult(registration, sent)
