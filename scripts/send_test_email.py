"""
Send a test email through the configured transport (Mailgun, else SMTP) to verify mail settings.
Usage: python scripts/send_test_email.py <to_email>
"""
import os
import sys

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from app.config import get_settings
from app.logging_config import setup_logging
from app.services.notifications import send_email


def main():
    to_email = (sys.argv[1] if len(sys.argv) > 1 else "").strip()
    if not to_email:
        print("Usage: python scripts/send_test_email.py <to_email>")
        sys.exit(1)

    setup_logging()
    settings = get_settings()
    if settings.mailgun_api_key and settings.mailgun_domain:
        print(f"Transport: Mailgun domain={settings.mailgun_domain} from={settings.mailgun_from_email}")
    elif settings.smtp_host:
        print(f"Transport: SMTP {settings.smtp_host}:{settings.smtp_port} tls={settings.smtp_use_tls}")
    else:
        print("No mail transport configured. Set MAILGUN_API_KEY + MAILGUN_DOMAIN or SMTP_HOST in .env")
        sys.exit(1)

    subject = f"[{settings.event_name}] Test email"
    text = f"This is a test from the {settings.event_name} registration desk. Mail is configured correctly."
    html = f"""
    <p>This is a <strong>test email</strong> from the {settings.event_name} registration desk.</p>
    <p>If you received this, mail is configured correctly.</p>
    """

    if send_email(to_email, subject, html, text_content=text):
        print("Success: Test email sent. Check the inbox (and spam) for", to_email)
    else:
        print("Failed: the transport returned an error; see the log above.")
        print("  - For EU Mailgun accounts set MAILGUN_BASE_URL=https://api.eu.mailgun.net in .env")
        print("  - For SMTP check SMTP_USER/SMTP_PASSWORD and SMTP_USE_TLS")
        sys.exit(1)


if __name__ == "__main__":
    main()
