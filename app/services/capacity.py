"""Stay capacity ledger.

Usage is always a live count over registrations (With Stay, status pending or approved);
there is no stored counter, so a rejection frees its slot without any release step.
The check before insert is not atomic: concurrent submissions near the ceiling can
both be admitted.
"""
from typing import NamedTuple

from sqlalchemy.orm import Session

from app.enums import ACTIVE_STATUSES, StayPreference
from app.models.registration import Registration


class StayAvailability(NamedTuple):
    available: bool
    remaining: int
    total_capacity: int
    used: int
    price_per_night: int


def active_stay_filter():
    return (
        Registration.stay_preference == StayPreference.with_stay,
        Registration.status.in_(ACTIVE_STATUSES),
    )


class CapacityLedger:
    def __init__(self, db: Session, ceiling: int, price_per_night: int = 0):
        self.db = db
        self.ceiling = ceiling
        self.price_per_night = price_per_night

    def current_stay_usage(self) -> int:
        return self.db.query(Registration).filter(*active_stay_filter()).count()

    def has_capacity(self) -> bool:
        return self.current_stay_usage() < self.ceiling

    def remaining(self) -> int:
        return max(0, self.ceiling - self.current_stay_usage())

    def availability(self) -> StayAvailability:
        used = self.current_stay_usage()
        remaining = max(0, self.ceiling - used)
        return StayAvailability(
            available=remaining > 0,
            remaining=remaining,
            total_capacity=self.ceiling,
            used=used,
            price_per_night=self.price_per_night,
        )
