import pytest

from app.enums import RegistrationStatus
from app.errors import CapacityExhaustedError
from app.schemas.registration import RegistrationSubmission
from app.services import lifecycle
from app.services.capacity import CapacityLedger
from app.services.registrations import admit_registration
from tests.conftest import make_config


def _admit(db, config, data):
    return admit_registration(db, RegistrationSubmission(**data), config)


def test_empty_ledger(db_session):
    ledger = CapacityLedger(db_session, 2, 217)
    assert ledger.current_stay_usage() == 0
    assert ledger.has_capacity()
    availability = ledger.availability()
    assert availability.available is True
    assert availability.remaining == 2
    assert availability.price_per_night == 217


def test_ceiling_blocks_third_and_rejection_frees_slot(db_session, stay_payload):
    config = make_config(stay_capacity=2)
    first = _admit(db_session, config, stay_payload())
    _admit(db_session, config, stay_payload())

    ledger = CapacityLedger(db_session, config.stay_capacity)
    assert ledger.remaining() == 0
    with pytest.raises(CapacityExhaustedError):
        _admit(db_session, config, stay_payload())

    lifecycle.reject(db_session, first.id, "Payment not found")
    assert ledger.remaining() == 1
    _admit(db_session, config, stay_payload())
    assert ledger.remaining() == 0


def test_without_stay_ignores_ceiling(db_session, stay_payload, payload):
    config = make_config(stay_capacity=1)
    _admit(db_session, config, stay_payload())
    registration = _admit(db_session, config, payload())
    assert registration.status == RegistrationStatus.pending
    assert CapacityLedger(db_session, 1).current_stay_usage() == 1


def test_approved_still_holds_slot(db_session, stay_payload):
    config = make_config(stay_capacity=5)
    registration = _admit(db_session, config, stay_payload())
    lifecycle.approve(db_session, registration.id, "admin")
    assert CapacityLedger(db_session, 5).current_stay_usage() == 1


def test_remaining_never_negative(db_session, stay_payload):
    config = make_config(stay_capacity=3)
    for _ in range(3):
        _admit(db_session, config, stay_payload())
    ledger = CapacityLedger(db_session, 1)
    assert ledger.remaining() == 0
    assert ledger.availability().available is False
