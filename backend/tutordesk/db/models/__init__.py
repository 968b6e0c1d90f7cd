"""Re-export all models so Base.metadata sees them."""

from tutordesk.db.models.admin import Admin
from tutordesk.db.models.audit_log import AuditLog
from tutordesk.db.models.inquiry import Inquiry, InquiryAttachment
from tutordesk.db.models.status_change import InquiryStatusChange

__all__ = [
    "Admin",
    "AuditLog",
    "Inquiry",
    "InquiryAttachment",
    "InquiryStatusChange",
]
