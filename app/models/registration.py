"""Registration record: one participant submission and its review lifecycle."""
import uuid

from sqlalchemy import JSON, Boolean, Column, DateTime, Index, Integer, String, Text, Enum as SQLEnum
from sqlalchemy.sql import func

from app.database import Base
from app.enums import AcademicYear, Institution, PaymentStatus, RegistrationStatus, StayPreference


def _enum_column(enum_cls, **kwargs):
    # Store the client-facing value ("With Stay"), not the member name.
    return Column(
        SQLEnum(enum_cls, values_callable=lambda e: [m.value for m in e], native_enum=False, length=32),
        **kwargs,
    )


def _new_id() -> str:
    return uuid.uuid4().hex


class Registration(Base):
    __tablename__ = "registrations"
    __table_args__ = (
        Index("ix_registrations_status_date", "status", "registration_date"),
        Index("ix_registrations_stay_status", "stay_preference", "status"),
        Index("ix_registrations_institution_status", "institution", "status"),
    )

    id = Column(String(32), primary_key=True, default=_new_id)
    transaction_id = Column(String(255), unique=True, nullable=False, index=True)

    full_name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    phone = Column(String(50), nullable=False)

    institution = _enum_column(Institution, nullable=False)
    college = Column(String(255), nullable=False)
    department = Column(String(255), nullable=False)
    year = _enum_column(AcademicYear, nullable=False)

    is_member = Column(Boolean, nullable=False, default=False)
    membership_number = Column(String(100), nullable=False, default="")

    stay_preference = _enum_column(StayPreference, nullable=False)
    stay_dates = Column(JSON, nullable=False, default=list)  # ISO dates, sorted
    stay_days = Column(Integer, nullable=False, default=0)
    stay_price_per_night = Column(Integer, nullable=False, default=0)
    stay_total_amount = Column(Integer, nullable=False, default=0)

    ambassador_code = Column(String(100), nullable=False, default="", index=True)

    base_amount = Column(Integer, nullable=False)
    total_amount = Column(Integer, nullable=False)
    payment_status = _enum_column(PaymentStatus, nullable=False, default=PaymentStatus.verified)

    status = _enum_column(RegistrationStatus, nullable=False, default=RegistrationStatus.pending)
    registration_date = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # Review audit fields; each decision clears the opposite one
    approved_by = Column(String(255), nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    rejected_at = Column(DateTime(timezone=True), nullable=True)
    rejection_reason = Column(Text, nullable=True)

    approval_email_sent = Column(Boolean, nullable=False, default=False)
    rejection_email_sent = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    def registration_code(self, prefix: str = "REG") -> str:
        return f"{prefix}{(self.id or '')[-8:].upper()}"

    @property
    def has_stay(self) -> bool:
        return self.stay_preference == StayPreference.with_stay
