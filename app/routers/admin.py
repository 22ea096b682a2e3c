"""Admin endpoints: login, registration review and statistics."""
import logging

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from app.config import EventConfig, get_event_config, get_settings
from app.database import get_db
from app.dependencies import AdminPrincipal, Notifier, get_current_admin, get_notifier
from app.enums import Institution, RegistrationStatus
from app.errors import AuthError, FieldError, RegistrationValidationError
from app.models.registration import Registration
from app.schemas.admin import (
    AdminLogin,
    ApproveRequest,
    RegistrationActionResponse,
    RegistrationStats,
    RejectRequest,
    Token,
)
from app.schemas.registration import RegistrationDetail, RegistrationPage
from app.services import lifecycle
from app.services.audit_log import CATEGORY_FAILED_ATTEMPT, create_log
from app.services.auth import access_token_ttl_seconds, create_access_token, verify_admin_credentials
from app.services.registrations import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    compute_stats,
    get_registration,
    list_registrations,
    total_pages,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["admin"])


def _registration_to_detail(registration: Registration) -> RegistrationDetail:
    return RegistrationDetail(
        id=registration.id,
        registration_code=registration.registration_code(get_settings().registration_code_prefix),
        transaction_id=registration.transaction_id,
        full_name=registration.full_name,
        email=registration.email,
        phone=registration.phone,
        institution=registration.institution,
        college=registration.college,
        department=registration.department,
        year=registration.year,
        is_member=registration.is_member,
        membership_number=registration.membership_number or "",
        stay_preference=registration.stay_preference,
        stay_dates=list(registration.stay_dates or []),
        stay_days=registration.stay_days,
        stay_price_per_night=registration.stay_price_per_night,
        stay_total_amount=registration.stay_total_amount,
        ambassador_code=registration.ambassador_code or "",
        base_amount=registration.base_amount,
        total_amount=registration.total_amount,
        payment_status=registration.payment_status,
        status=registration.status,
        registration_date=registration.registration_date,
        approved_by=registration.approved_by,
        approved_at=registration.approved_at,
        rejected_at=registration.rejected_at,
        rejection_reason=registration.rejection_reason,
        approval_email_sent=bool(registration.approval_email_sent),
        rejection_email_sent=bool(registration.rejection_email_sent),
    )


@router.post("/admin/login", response_model=Token)
def admin_login(request: Request, data: AdminLogin, db: Session = Depends(get_db)):
    username = (data.username or "").strip()
    password = data.password or ""
    if not username or not password:
        message = "Username and password are required"
        field = "username" if not username else "password"
        raise RegistrationValidationError([FieldError(field, message)], message=message)
    if not verify_admin_credentials(username, password):
        ip = request.client.host if request.client else None
        ua = (request.headers.get("user-agent") or "").strip() or None
        create_log(
            db,
            CATEGORY_FAILED_ATTEMPT,
            "Admin login failed",
            f"Failed admin login attempt for username: {username}.",
            actor=username,
            ip_address=ip,
            user_agent=ua,
            meta={"reason": "invalid_credentials"},
        )
        db.commit()
        logger.warning("Failed admin login for %s from %s", username, ip)
        raise AuthError("Invalid credentials", status_code=401)
    logger.info("Admin %s logged in", username)
    return Token(access_token=create_access_token(username), expires_in=access_token_ttl_seconds())


@router.get("/admin/registrations", response_model=RegistrationPage)
def admin_list_registrations(
    status: RegistrationStatus | None = None,
    institution: Institution | None = None,
    search: str | None = None,
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    db: Session = Depends(get_db),
    admin: AdminPrincipal = Depends(get_current_admin),
):
    items, total = list_registrations(db, status=status, institution=institution, search=search, page=page, limit=limit)
    return RegistrationPage(
        items=[_registration_to_detail(r) for r in items],
        total=total,
        page=page,
        limit=limit,
        total_pages=total_pages(total, limit),
    )


@router.get("/registration/{registration_id}", response_model=RegistrationDetail)
def admin_get_registration(
    registration_id: str,
    db: Session = Depends(get_db),
    admin: AdminPrincipal = Depends(get_current_admin),
):
    return _registration_to_detail(get_registration(db, registration_id))


@router.put("/admin/registration/{registration_id}/approve", response_model=RegistrationActionResponse)
def admin_approve(
    registration_id: str,
    data: ApproveRequest | None = None,
    db: Session = Depends(get_db),
    admin: AdminPrincipal = Depends(get_current_admin),
    notifier: Notifier = Depends(get_notifier),
):
    approver = ((data.approved_by if data else None) or "").strip() or admin.username
    result = lifecycle.approve(db, registration_id, approver, notify=notifier.status)
    message = "Registration approved and email sent" if result.email_sent else "Registration approved but email failed to send"
    return RegistrationActionResponse(
        message=message,
        email_sent=result.email_sent,
        registration=_registration_to_detail(result.registration),
    )


@router.put("/admin/registration/{registration_id}/reject", response_model=RegistrationActionResponse)
def admin_reject(
    registration_id: str,
    data: RejectRequest,
    db: Session = Depends(get_db),
    admin: AdminPrincipal = Depends(get_current_admin),
    notifier: Notifier = Depends(get_notifier),
):
    result = lifecycle.reject(db, registration_id, data.reason, notify=notifier.status, actor=admin.username)
    message = "Registration rejected and email sent" if result.email_sent else "Registration rejected but email failed to send"
    return RegistrationActionResponse(
        message=message,
        email_sent=result.email_sent,
        registration=_registration_to_detail(result.registration),
    )


@router.get("/admin/stats", response_model=RegistrationStats)
def admin_stats(
    db: Session = Depends(get_db),
    config: EventConfig = Depends(get_event_config),
    admin: AdminPrincipal = Depends(get_current_admin),
):
    return compute_stats(db, config)
