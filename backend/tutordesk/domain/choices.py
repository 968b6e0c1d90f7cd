"""Enumerated inquiry and admin attributes."""

from enum import Enum


class ServiceType(str, Enum):
    QUIZ = "quiz"
    EXAM = "exam"
    CLASS = "class"
    ASSIGNMENT = "assignment"
    PROJECT = "project"


class Urgency(str, Enum):
    URGENT = "urgent"
    NORMAL = "normal"
    FLEXIBLE = "flexible"


class ClientType(str, Enum):
    FIRST_TIME = "first-time"
    REPEAT = "repeat"


class AdminRole(str, Enum):
    ADMIN = "ADMIN"
    MANAGER = "MANAGER"
    AGENT = "AGENT"
    READONLY = "READONLY"


class AuditAction(str, Enum):
    """Actions recorded in the audit log."""

    VIEW_INQUIRIES = "view_inquiries"
    VIEW_INQUIRY = "view_inquiry"
    UPDATE_INQUIRY_STATUS = "update_inquiry_status"
    BULK_UPDATE_INQUIRY_STATUS = "bulk_update_inquiry_status"
    UPDATE_QUOTE = "update_quote"
    VIEW_METRICS = "view_metrics"
    VIEW_DASHBOARD = "view_dashboard"
    RECORD_PAYMENT = "record_payment"
