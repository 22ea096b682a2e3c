"""Registration request/response schemas."""
from datetime import datetime

from pydantic import BaseModel, Field

from app.enums import AcademicYear, Institution, PaymentStatus, RegistrationStatus, StayPreference


class RegistrationSubmission(BaseModel):
    """Raw public form body. Fields are loosely typed on purpose: the validation
    service reports every missing or malformed field at once."""

    full_name: str | None = None
    email: str | None = None
    phone: str | int | None = None
    institution: str | None = None
    college: str | None = None
    department: str | None = None
    other_department: str | None = None
    year: str | None = None
    is_member: str | bool | None = None
    membership_number: str | None = None
    stay_preference: str | None = None
    stay_dates: list[str] | None = None
    ambassador_code: str | None = None
    total_amount: int | float | str | None = None
    transaction_id: str | None = None
    payment_status: str | None = None


class RegistrationSummary(BaseModel):
    id: str
    registration_code: str
    full_name: str
    email: str
    transaction_id: str
    total_amount: int
    status: RegistrationStatus
    ambassador_code: str = ""


class RegistrationSubmitted(BaseModel):
    message: str
    registration: RegistrationSummary


class RegistrationDetail(BaseModel):
    id: str
    registration_code: str
    transaction_id: str
    full_name: str
    email: str
    phone: str
    institution: Institution
    college: str
    department: str
    year: AcademicYear
    is_member: bool
    membership_number: str = ""
    stay_preference: StayPreference
    stay_dates: list[str] = Field(default_factory=list)
    stay_days: int
    stay_price_per_night: int
    stay_total_amount: int
    ambassador_code: str = ""
    base_amount: int
    total_amount: int
    payment_status: PaymentStatus
    status: RegistrationStatus
    registration_date: datetime | None = None
    approved_by: str | None = None
    approved_at: datetime | None = None
    rejected_at: datetime | None = None
    rejection_reason: str | None = None
    approval_email_sent: bool = False
    rejection_email_sent: bool = False


class RegistrationStatusView(BaseModel):
    """Public status lookup by transaction id: no phone, college or review notes."""

    full_name: str
    email: str
    status: RegistrationStatus
    registration_date: datetime | None = None
    transaction_id: str
    stay_dates: list[str] = Field(default_factory=list)
    stay_days: int
    base_amount: int
    total_amount: int
    ambassador_code: str = ""

    class Config:
        from_attributes = True


class RegistrationPage(BaseModel):
    items: list[RegistrationDetail]
    total: int
    page: int
    limit: int
    total_pages: int


class EmailCheckRequest(BaseModel):
    email: str | None = None


class EmailCheckResponse(BaseModel):
    exists: bool
    message: str


class StayAvailabilityResponse(BaseModel):
    available: bool
    remaining: int
    total_capacity: int
    used: int
    price_per_night: int


class ReserveStayRequest(BaseModel):
    stay_days: int | None = None


class ReserveStayResponse(StayAvailabilityResponse):
    message: str
