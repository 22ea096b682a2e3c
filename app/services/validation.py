"""Submission validation: required fields, formats, stay-date whitelist and the total cross-check."""
import re
from dataclasses import dataclass
from datetime import date, datetime, tzinfo
from decimal import Decimal, InvalidOperation

from email_validator import EmailNotValidError, validate_email

from app.config import EventConfig
from app.enums import AcademicYear, Institution, PaymentStatus, StayPreference
from app.errors import FieldError, InstitutionClosedError, RegistrationValidationError, TotalMismatchError
from app.schemas.registration import RegistrationSubmission
from app.services.pricing import compute_total

FULL_NAME_MIN_LEN = 2
PHONE_MIN_DIGITS = 10
PHONE_MAX_DIGITS = 15
OTHER_DEPARTMENT = "Other"

REQUIRED_FIELDS = (
    "full_name",
    "email",
    "phone",
    "institution",
    "college",
    "department",
    "year",
    "is_member",
    "stay_preference",
    "total_amount",
    "transaction_id",
)

_YES = {"yes", "y", "true", "1"}
_NO = {"no", "n", "false", "0"}


@dataclass
class NormalizedRegistration:
    """Submission after validation; every derived amount already resolved."""

    full_name: str
    email: str
    phone: str
    institution: Institution
    college: str
    department: str
    year: AcademicYear
    is_member: bool
    membership_number: str
    stay_preference: StayPreference
    stay_dates: list[str]
    stay_days: int
    stay_price_per_night: int
    stay_total_amount: int
    base_amount: int
    total_amount: int
    transaction_id: str
    payment_status: PaymentStatus
    ambassador_code: str = ""


def _clean(value) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _is_blank(value) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    return False


def normalize_email(value: str | None) -> str:
    return (value or "").strip().lower()


def is_valid_email(email: str) -> bool:
    try:
        validate_email(email, check_deliverability=False)
    except EmailNotValidError:
        return False
    return True


def _normalize_phone(value: str) -> str:
    return re.sub(r"\D", "", value)


def _parse_enum(enum_cls, raw, field_name: str, errors: list[FieldError]):
    text = _clean(raw)
    for member in enum_cls:
        if member.value.lower() == text.lower():
            return member
    allowed = ", ".join(m.value for m in enum_cls)
    errors.append(FieldError(field_name, f"Must be one of: {allowed}"))
    return None


def _parse_membership(raw, errors: list[FieldError]) -> bool | None:
    if isinstance(raw, bool):
        return raw
    text = _clean(raw).lower()
    if text in _YES:
        return True
    if text in _NO:
        return False
    errors.append(FieldError("is_member", "Must be Yes or No"))
    return None


def parse_stay_date(raw: str, tz: tzinfo | None = None) -> date | None:
    """Accept YYYY-MM-DD or a full ISO timestamp; None when not a real calendar date.

    Timestamps carrying an offset are read as the calendar day in `tz`, so a browser
    sending local midnight as UTC still lands on the day the user picked.
    """
    text = _clean(raw)
    if not text:
        return None
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return None
    if tz is not None and parsed.tzinfo is not None:
        parsed = parsed.astimezone(tz)
    return parsed.date()


def _describe_dates(dates) -> str:
    return ", ".join(d.strftime("%d %B %Y") for d in sorted(dates))


def validate_stay_dates(raw_dates, config: EventConfig, errors: list[FieldError]) -> list[date]:
    if not isinstance(raw_dates, list) or len(raw_dates) == 0:
        errors.append(FieldError("stay_dates", "Please select at least one stay date"))
        return []
    parsed: list[date] = []
    invalid: list[str] = []
    for raw in raw_dates:
        d = parse_stay_date(raw, config.event_tz)
        if d is None or d not in config.allowed_stay_dates:
            invalid.append(str(raw))
            continue
        parsed.append(d)
    if invalid:
        errors.append(
            FieldError("stay_dates", f"Stay dates must be one of {_describe_dates(config.allowed_stay_dates)}")
        )
        return []
    if len(set(parsed)) != len(parsed):
        errors.append(FieldError("stay_dates", "Stay dates must not repeat"))
        return []
    if len(parsed) > config.max_stay_nights:
        errors.append(FieldError("stay_dates", f"Maximum {config.max_stay_nights} stay days allowed"))
        return []
    return sorted(parsed)


# Amounts outside 1e-12..1e13 in magnitude are treated as non-numeric.
AMOUNT_MAX_EXPONENT = 12


def _parse_amount(raw) -> Decimal | None:
    try:
        amount = Decimal(str(raw).strip())
    except (InvalidOperation, ValueError):
        return None
    if not amount.is_finite():
        return None
    if amount and not -AMOUNT_MAX_EXPONENT <= amount.adjusted() <= AMOUNT_MAX_EXPONENT:
        return None
    return amount


def _format_amount(amount: Decimal) -> str:
    return format(amount.normalize(), "f")


def validate_submission(submission: RegistrationSubmission, config: EventConfig) -> NormalizedRegistration:
    """Validate and normalize a public submission.

    Raises InstitutionClosedError for a closed institution (even if everything else is valid),
    RegistrationValidationError with every field problem found, or TotalMismatchError when the
    client total differs from the server-computed total.
    """
    data = submission.model_dump()
    errors: list[FieldError] = []

    for name in REQUIRED_FIELDS:
        if _is_blank(data.get(name)):
            errors.append(FieldError(name, f"{name} is required"))
    missing = {e.field for e in errors}

    institution = None
    if "institution" not in missing:
        institution = _parse_enum(Institution, data["institution"], "institution", errors)
        if institution is not None and not config.is_open(institution):
            raise InstitutionClosedError(institution.value)

    full_name = _clean(data.get("full_name"))
    if "full_name" not in missing and len(full_name) < FULL_NAME_MIN_LEN:
        errors.append(FieldError("full_name", f"Full name must be at least {FULL_NAME_MIN_LEN} characters"))

    email = normalize_email(data.get("email"))
    if "email" not in missing and not is_valid_email(email):
        errors.append(FieldError("email", "Invalid email format"))

    phone = _clean(data.get("phone"))
    if "phone" not in missing:
        digits = _normalize_phone(phone)
        if not PHONE_MIN_DIGITS <= len(digits) <= PHONE_MAX_DIGITS:
            errors.append(
                FieldError("phone", f"Phone number must have {PHONE_MIN_DIGITS} to {PHONE_MAX_DIGITS} digits")
            )

    department = _clean(data.get("department"))
    if "department" not in missing and department == OTHER_DEPARTMENT:
        other = _clean(data.get("other_department"))
        if not other:
            errors.append(
                FieldError("other_department", 'Please specify your department name when selecting "Other"')
            )
        department = other

    year = _parse_enum(AcademicYear, data["year"], "year", errors) if "year" not in missing else None
    is_member = _parse_membership(data["is_member"], errors) if "is_member" not in missing else None
    stay_preference = (
        _parse_enum(StayPreference, data["stay_preference"], "stay_preference", errors)
        if "stay_preference" not in missing
        else None
    )

    payment_status = PaymentStatus.verified
    if not _is_blank(data.get("payment_status")):
        payment_status = _parse_enum(PaymentStatus, data["payment_status"], "payment_status", errors)

    stay_dates: list[date] = []
    if stay_preference == StayPreference.with_stay:
        stay_dates = validate_stay_dates(data.get("stay_dates"), config, errors)

    claimed_total = None
    if "total_amount" not in missing:
        claimed_total = _parse_amount(data["total_amount"])
        if claimed_total is None:
            errors.append(FieldError("total_amount", "Total amount must be a number"))
        elif claimed_total < 0:
            errors.append(FieldError("total_amount", "Amount cannot be negative"))

    if errors:
        raise RegistrationValidationError(errors)

    price = compute_total(config, institution, is_member, len(stay_dates))
    if claimed_total != Decimal(price.total):
        raise TotalMismatchError(price.total, _format_amount(claimed_total))

    return NormalizedRegistration(
        full_name=full_name,
        email=email,
        phone=phone,
        institution=institution,
        college=_clean(data.get("college")),
        department=department,
        year=year,
        is_member=is_member,
        membership_number=_clean(data.get("membership_number")),
        stay_preference=stay_preference,
        stay_dates=[d.isoformat() for d in stay_dates],
        stay_days=len(stay_dates),
        stay_price_per_night=config.price_per_night,
        stay_total_amount=price.stay_fee,
        base_amount=price.base,
        total_amount=price.total,
        transaction_id=_clean(data.get("transaction_id")),
        payment_status=payment_status,
        ambassador_code=_clean(data.get("ambassador_code")),
    )
