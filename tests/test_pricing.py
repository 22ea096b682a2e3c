import pytest

from app.enums import Institution
from app.services.pricing import base_fee, compute_total, pricing_table


@pytest.mark.parametrize(
    "institution, is_member, expected",
    [
        (Institution.polytechnic, True, 250),
        (Institution.polytechnic, False, 300),
        (Institution.engineering, True, 450),
        (Institution.engineering, False, 500),
    ],
)
def test_base_fee_table(event_config, institution, is_member, expected):
    assert base_fee(event_config, institution, is_member) == expected


def test_polytechnic_member_two_nights(event_config):
    price = compute_total(event_config, Institution.polytechnic, True, 2)
    assert price.base == 250
    assert price.stay_fee == 434
    assert price.total == 684


def test_no_stay_is_base_only(event_config):
    price = compute_total(event_config, Institution.engineering, False, 0)
    assert price.total == 500
    assert price.stay_fee == 0


def test_negative_nights_rejected(event_config):
    with pytest.raises(ValueError):
        compute_total(event_config, Institution.engineering, True, -1)


def test_pricing_table_shape(event_config):
    table = pricing_table(event_config)
    assert table["Polytechnic"] == {"member": 250, "non_member": 300}
    assert table["Engineering"] == {"member": 450, "non_member": 500}
