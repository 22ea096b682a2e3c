"""Admin auth, review action and statistics schemas."""
from pydantic import BaseModel

from app.schemas.registration import RegistrationDetail


class AdminLogin(BaseModel):
    username: str | None = None
    password: str | None = None


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int  # seconds


class ApproveRequest(BaseModel):
    approved_by: str | None = None  # defaults to the token's username


class RejectRequest(BaseModel):
    reason: str | None = None


class RegistrationActionResponse(BaseModel):
    message: str
    email_sent: bool
    registration: RegistrationDetail


class CountBucket(BaseModel):
    key: str
    count: int


class StayStats(BaseModel):
    capacity: int
    used: int
    remaining: int
    price_per_night: int


class AmbassadorStats(BaseModel):
    total_with_code: int
    top_codes: list[CountBucket]


class RegistrationStats(BaseModel):
    total_registrations: int
    pending_registrations: int
    approved_registrations: int
    rejected_registrations: int
    total_revenue: int
    stay_stats: StayStats
    by_institution: list[CountBucket]
    by_stay_preference: list[CountBucket]
    by_department: list[CountBucket]
    by_year: list[CountBucket]
    ambassador_stats: AmbassadorStats
    last_updated: str
