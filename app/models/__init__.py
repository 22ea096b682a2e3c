from app.models.registration import Registration
from app.models.audit_log import AuditLog

__all__ = ["Registration", "AuditLog"]
