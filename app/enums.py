"""Closed value sets for registration fields. Values are what clients send and what is stored."""
import enum


class Institution(str, enum.Enum):
    engineering = "Engineering"
    polytechnic = "Polytechnic"


class AcademicYear(str, enum.Enum):
    first = "First"
    second = "Second"
    third = "Third"
    fourth = "Fourth"
    final = "Final"


class StayPreference(str, enum.Enum):
    with_stay = "With Stay"
    without_stay = "Without Stay"


class PaymentStatus(str, enum.Enum):
    verified = "verified"
    pending = "pending"
    failed = "failed"


class RegistrationStatus(str, enum.Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


# Statuses that hold an accommodation slot
ACTIVE_STATUSES = (RegistrationStatus.pending, RegistrationStatus.approved)
