"""Pricing calculator: base fee by (institution, membership) plus nightly stay fee."""
from typing import NamedTuple

from app.config import EventConfig
from app.enums import Institution


class PriceBreakdown(NamedTuple):
    base: int
    stay_fee: int
    total: int


def base_fee(config: EventConfig, institution: Institution, is_member: bool) -> int:
    return config.base_fees[(institution, bool(is_member))]


def compute_total(config: EventConfig, institution: Institution, is_member: bool, stay_nights: int) -> PriceBreakdown:
    if stay_nights < 0:
        raise ValueError("stay_nights cannot be negative")
    base = base_fee(config, institution, is_member)
    stay_fee = config.price_per_night * stay_nights
    return PriceBreakdown(base=base, stay_fee=stay_fee, total=base + stay_fee)


def pricing_table(config: EventConfig) -> dict[str, dict[str, int]]:
    """Fee table keyed by institution value, for display on the public root endpoint."""
    return {
        inst.value: {
            "member": base_fee(config, inst, True),
            "non_member": base_fee(config, inst, False),
        }
        for inst in Institution
    }
