"""Notification service: registration emails via Mailgun, or SMTP when Mailgun is not configured."""
import html
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

import httpx

from app.config import get_settings
from app.enums import RegistrationStatus
from app.models.registration import Registration

logger = logging.getLogger(__name__)

MAILGUN_US_BASE = "https://api.mailgun.net"
MAILGUN_EU_BASE = "https://api.eu.mailgun.net"


def send_email(to_email: str, subject: str, html_content: str, text_content: str | None = None) -> bool:
    """Send email via Mailgun (preferred) or SMTP. Returns True only if the transport accepted it."""
    settings = get_settings()
    has_key = bool(settings.mailgun_api_key)
    has_domain = bool(settings.mailgun_domain)
    if has_key and has_domain:
        logger.info("Calling Mailgun API: to=%s subject=%s domain=%s", to_email, subject, settings.mailgun_domain)
        return _send_email_mailgun(to_email, subject, html_content, text_content=text_content, settings=settings)
    if settings.smtp_host:
        return _send_email_smtp(to_email, subject, html_content, text_content=text_content, settings=settings)
    logger.warning(
        "Email NOT SENT: to=%s subject=%s. MAILGUN_API_KEY=%s MAILGUN_DOMAIN=%s SMTP_HOST=missing. "
        "Set Mailgun or SMTP in .env and restart the server.",
        to_email,
        subject,
        "set" if has_key else "MISSING",
        "set" if has_domain else "MISSING",
    )
    return False


def _send_email_mailgun(to_email: str, subject: str, html_content: str, text_content: str | None = None, settings=None):
    if settings is None:
        settings = get_settings()
    base = (settings.mailgun_base_url or MAILGUN_US_BASE).strip().rstrip("/")
    domain = (settings.mailgun_domain or "").strip().lower()
    from_addr = (settings.mailgun_from_email or "").strip()
    from_domain = from_addr.split("@")[-1].lower() if "@" in from_addr else ""
    if domain and from_domain != domain:
        from_addr = f"noreply@{domain}"
        logger.info("Mailgun using from=%s (must match domain %s for delivery)", from_addr, domain)
    data = {
        "from": f"{settings.mailgun_from_name} <{from_addr}>",
        "to": to_email,
        "subject": subject,
        "text": text_content or "",
        "html": html_content or "",
    }
    try:
        with httpx.Client(timeout=10.0) as client:
            r = client.post(f"{base}/v3/{domain}/messages", auth=("api", settings.mailgun_api_key), data=data)
            if 200 <= r.status_code < 300:
                logger.info("Mailgun API success: to=%s status=%s", to_email, r.status_code)
                return True
            if r.status_code == 401 and base == MAILGUN_US_BASE:
                logger.info("Mailgun 401 with US endpoint. Retrying with EU endpoint")
                r2 = client.post(
                    f"{MAILGUN_EU_BASE}/v3/{domain}/messages", auth=("api", settings.mailgun_api_key), data=data
                )
                if 200 <= r2.status_code < 300:
                    logger.info("Mailgun API success (EU): to=%s", to_email)
                    return True
                logger.error("Mailgun EU request failed: status=%s body=%s", r2.status_code, r2.text[:500])
                return False
            logger.error("Mailgun API failed: status=%s to=%s body=%s", r.status_code, to_email, r.text[:500])
            return False
    except httpx.HTTPError as e:
        logger.error("Mailgun exception: to=%s error=%s: %s", to_email, type(e).__name__, e)
        return False


def _send_email_smtp(to_email: str, subject: str, html_content: str, text_content: str | None = None, settings=None) -> bool:
    if settings is None:
        settings = get_settings()
    sender = settings.mail_from_email or settings.smtp_user
    msg = MIMEMultipart("alternative")
    msg["From"] = sender
    msg["To"] = to_email
    msg["Subject"] = subject
    if text_content:
        msg.attach(MIMEText(text_content, "plain", "utf-8"))
    msg.attach(MIMEText(html_content, "html", "utf-8"))
    try:
        with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=10) as server:
            if settings.smtp_use_tls:
                server.starttls()
            if settings.smtp_user:
                server.login(settings.smtp_user, settings.smtp_password)
            server.send_message(msg)
        logger.info("SMTP email sent to %s: %s", to_email, subject)
        return True
    except (smtplib.SMTPException, OSError) as e:
        logger.error("SMTP failed to send email to %s: %s", to_email, e)
        return False


def _subject(text: str) -> str:
    return f"[{get_settings().event_name}] {text}"


def _support_line() -> str:
    support = get_settings().support_email
    if not support:
        return ""
    return f'<p>Questions? Write to <a href="mailto:{html.escape(support)}">{html.escape(support)}</a>.</p>'


def _stay_line(registration: Registration) -> str:
    if not registration.stay_dates:
        return "Accommodation: not requested"
    return f"Accommodation: {', '.join(registration.stay_dates)} ({registration.stay_days} night(s))"


def send_registration_received_email(registration: Registration) -> bool:
    """Acknowledge a new submission; it is now pending admin review."""
    settings = get_settings()
    name = html.escape(registration.full_name or "there")
    code = registration.registration_code(settings.registration_code_prefix)
    txn = html.escape(registration.transaction_id)
    subject = _subject("Registration received")
    text = (
        f"Hi {registration.full_name}, we received your registration for {settings.event_name}. "
        f"Registration code: {code}. Transaction ID: {registration.transaction_id}. "
        f"Amount: {registration.total_amount}. {_stay_line(registration)}. "
        "Our team will verify your payment and email you once it is reviewed."
    )
    html_content = f"""
    <p>Hi {name},</p>
    <p>We received your registration for <strong>{html.escape(settings.event_name)}</strong>.</p>
    <p><strong>Registration code:</strong> {code}<br>
    <strong>Transaction ID:</strong> {txn}<br>
    <strong>Amount:</strong> {registration.total_amount}<br>
    {html.escape(_stay_line(registration))}</p>
    <p>Our team will verify your payment and email you once your registration is reviewed.</p>
    {_support_line()}
    """
    return send_email(registration.email, subject, html_content, text_content=text)


def send_approval_email(registration: Registration) -> bool:
    settings = get_settings()
    name = html.escape(registration.full_name or "there")
    code = registration.registration_code(settings.registration_code_prefix)
    subject = _subject("Registration approved")
    text = (
        f"Hi {registration.full_name}, your registration for {settings.event_name} is approved. "
        f"Registration code: {code}. Institution: {registration.institution.value}. "
        f"{_stay_line(registration)}. Please carry this code and a college ID to the venue."
    )
    html_content = f"""
    <p>Hi {name},</p>
    <p>Your registration for <strong>{html.escape(settings.event_name)}</strong> is <strong>approved</strong>.</p>
    <p><strong>Registration code:</strong> {code}<br>
    <strong>Institution:</strong> {html.escape(registration.institution.value)} - {html.escape(registration.college)}<br>
    <strong>Amount paid:</strong> {registration.total_amount}<br>
    {html.escape(_stay_line(registration))}</p>
    <p>Please carry this code and your college ID to the venue.</p>
    {_support_line()}
    """
    return send_email(registration.email, subject, html_content, text_content=text)


def send_rejection_email(registration: Registration) -> bool:
    settings = get_settings()
    name = html.escape(registration.full_name or "there")
    reason = registration.rejection_reason or "No reason provided"
    subject = _subject("Update on your registration")
    text = (
        f"Hi {registration.full_name}, we could not approve your registration for {settings.event_name}. "
        f"Reason: {reason}. Transaction ID: {registration.transaction_id}. "
        "Reply with corrected details if you believe this is a mistake."
    )
    html_content = f"""
    <p>Hi {name},</p>
    <p>We could not approve your registration for <strong>{html.escape(settings.event_name)}</strong>.</p>
    <p><strong>Reason:</strong> {html.escape(reason)}<br>
    <strong>Transaction ID:</strong> {html.escape(registration.transaction_id)}</p>
    <p>If you believe this is a mistake, reply with corrected payment details.</p>
    {_support_line()}
    """
    return send_email(registration.email, subject, html_content, text_content=text)


def send_status_email(registration: Registration) -> bool:
    """Send the email matching the registration's current review status."""
    if registration.status == RegistrationStatus.approved:
        return send_approval_email(registration)
    if registration.status == RegistrationStatus.rejected:
        return send_rejection_email(registration)
    return send_registration_received_email(registration)
