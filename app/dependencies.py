"""Shared dependencies: current admin, notifier."""
from dataclasses import dataclass
from typing import Callable

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.errors import AuthError
from app.models.registration import Registration
from app.services.auth import ADMIN_ROLE, decode_token_with_error
from app.services.notifications import send_registration_received_email, send_status_email

security = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class AdminPrincipal:
    username: str


def get_current_admin(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> AdminPrincipal:
    if not credentials:
        raise AuthError("Access token required", status_code=401)
    payload, _ = decode_token_with_error((credentials.credentials or "").strip())
    if not payload:
        raise AuthError("Invalid or expired token", status_code=403)
    if payload.get("role") != ADMIN_ROLE or not payload.get("sub"):
        raise AuthError("Admin role required", status_code=403)
    return AdminPrincipal(username=str(payload["sub"]))


@dataclass(frozen=True)
class Notifier:
    """Mail hooks handed to the services; tests swap in recorders."""

    received: Callable[[Registration], bool]
    status: Callable[[Registration], bool]


def get_notifier() -> Notifier:
    return Notifier(received=send_registration_received_email, status=send_status_email)
