import pytest

from app.enums import AcademicYear, Institution, RegistrationStatus, StayPreference
from app.models.registration import Registration
from app.services import notifications


@pytest.fixture
def sent(monkeypatch):
    calls = []

    def fake_send(to_email, subject, html_content, text_content=None):
        calls.append({"to": to_email, "subject": subject, "html": html_content, "text": text_content})
        return True

    monkeypatch.setattr(notifications, "send_email", fake_send)
    return calls


def _registration(**overrides) -> Registration:
    fields = dict(
        id="0123456789abcdef0123456789abcdef",
        full_name="<b>Kiran</b>",
        email="kiran@college.edu",
        phone="9876543210",
        institution=Institution.engineering,
        college="City Engineering College",
        department="Civil",
        year=AcademicYear.final,
        is_member=False,
        stay_preference=StayPreference.with_stay,
        stay_dates=["2026-01-29"],
        stay_days=1,
        base_amount=500,
        total_amount=717,
        transaction_id="UPI-1",
        status=RegistrationStatus.pending,
    )
    fields.update(overrides)
    return Registration(**fields)


def test_unconfigured_transport_returns_false():
    assert notifications.send_email("kiran@college.edu", "Hi", "<p>Hi</p>") is False


def test_received_email_escapes_user_values(sent):
    assert notifications.send_status_email(_registration()) is True
    message = sent[0]
    assert message["to"] == "kiran@college.edu"
    assert "&lt;b&gt;Kiran&lt;/b&gt;" in message["html"]
    assert "<b>Kiran</b>" not in message["html"]
    assert "REG89ABCDEF" in message["html"]
    assert "Registration received" in message["subject"]


def test_status_email_picks_template(sent):
    notifications.send_status_email(_registration(status=RegistrationStatus.approved))
    notifications.send_status_email(
        _registration(status=RegistrationStatus.rejected, rejection_reason="Receipt <unreadable>")
    )
    assert "approved" in sent[0]["subject"]
    assert "Update on your registration" in sent[1]["subject"]
    assert "Receipt &lt;unreadable&gt;" in sent[1]["html"]
    assert "Receipt <unreadable>" in sent[1]["text"]
