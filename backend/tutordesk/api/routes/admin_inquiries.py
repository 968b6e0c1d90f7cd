"""Admin inquiry endpoints.

GET /api/admin/inquiries              - Filtered, paginated dashboard list
GET /api/admin/dashboard              - Intake analytics for 7d/30d/90d
GET /api/admin/inquiries/metrics      - Status transition metrics
PUT /api/admin/inquiries/bulk-status  - Bulk status transitions
GET /api/admin/inquiries/{id}         - Inquiry with status history
PUT /api/admin/inquiries/{id}/status  - Single status transition
PUT /api/admin/inquiries/{id}/quote   - Record a quote
PUT /api/admin/inquiries/{id}/payment - Flag payment received
GET /api/admin/audit-logs             - Audit log listing
"""

import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, Request

from tutordesk.api.deps import client_meta, get_email_notifier, get_event_publisher
from tutordesk.core.auth import AdminPrincipal, require_permission
from tutordesk.core.exceptions import PersistenceFailure
from tutordesk.db.base import get_session_factory
from tutordesk.domain.choices import AuditAction
from tutordesk.domain.results import StatusErrorKind, StatusUpdateResult
from tutordesk.schemas.audit import AuditLogListResponse, AuditLogResponse
from tutordesk.schemas.inquiries import (
    BulkFailure,
    BulkStatusUpdateRequest,
    BulkStatusUpdateResponse,
    BulkSuccess,
    DashboardResponse,
    InquiryDetailResponse,
    InquiryListResponse,
    InquiryResponse,
    Pagination,
    QuoteUpdateRequest,
    StatusMetricResponse,
    StatusMetricsResponse,
    StatusUpdateRequest,
    StatusUpdateResponse,
)
from tutordesk.services.audit_service import AuditLogFilters, AuditService
from tutordesk.services.email_service import StatusEmailNotifier
from tutordesk.services.history_service import InquiryHistoryService
from tutordesk.services.inquiry_service import InquiryFilters, InquiryService
from tutordesk.services.notifications import InquiryEventPublisher
from tutordesk.services.status_service import InquiryStatusService, StatusUpdateItem

router = APIRouter(prefix="/admin")
logger = structlog.get_logger(__name__)

ERROR_STATUS_CODES = {
    StatusErrorKind.NOT_FOUND: 404,
    StatusErrorKind.INVALID_TRANSITION: 400,
    StatusErrorKind.MISSING_REASON: 400,
    StatusErrorKind.UNKNOWN_ACTOR: 403,
}

can_view = require_permission("can_view_inquiries")
can_edit = require_permission("can_edit_inquiries")
can_view_analytics = require_permission("can_view_analytics")


def _as_utc(value: datetime) -> datetime:
    """Naive query datetimes are taken as UTC."""
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


async def _announce(
    result: StatusUpdateResult,
    publisher: InquiryEventPublisher,
    notifier: StatusEmailNotifier,
) -> None:
    """Publish the status-update event and email the submitter if warranted.

    Neither step may fail the request; errors are logged.
    """
    await publisher.publish_status_update(result)
    try:
        await notifier.notify_status_change(
            result.inquiry, result.old_status, result.new_status, result.reason
        )
    except Exception:
        logger.warning(
            "status_email_failed",
            inquiry_id=result.inquiry.inquiry_id,
            new_status=result.new_status.value,
            exc_info=True,
        )


# ---------- Listing & metrics ----------


@router.get("/inquiries", response_model=InquiryListResponse)
async def list_inquiries(
    request: Request,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    status: str | None = None,
    service_type: str | None = None,
    urgency: str | None = None,
    assigned_tutor: str | None = None,
    search: str | None = None,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
    min_quote: Decimal | None = None,
    max_quote: Decimal | None = None,
    sort_by: str = "created_at",
    sort_order: str = Query("desc", pattern="^(asc|desc)$"),
    admin: AdminPrincipal = Depends(can_view),
) -> InquiryListResponse:
    session_factory = get_session_factory()
    filters = InquiryFilters(
        status=status,
        service_type=service_type,
        urgency=urgency,
        assigned_tutor=assigned_tutor,
        search=search,
        date_from=date_from,
        date_to=date_to,
        min_quote=min_quote,
        max_quote=max_quote,
    )
    result = await InquiryService(session_factory).list_inquiries(filters, page, limit, sort_by, sort_order)

    await AuditService(session_factory).log_action(
        admin_id=admin.admin_id,
        admin_username=admin.username,
        action=AuditAction.VIEW_INQUIRIES,
        resource="inquiries",
        details={"page": page, "limit": limit, "status": status, "search": search},
        **client_meta(request),
    )

    return InquiryListResponse(
        inquiries=[InquiryResponse.from_model(i) for i in result.items],
        pagination=Pagination(
            current_page=result.page,
            total_pages=result.total_pages,
            total_items=result.total,
            items_per_page=result.limit,
        ),
        status_counts=result.status_counts,
    )


@router.get("/inquiries/metrics", response_model=StatusMetricsResponse)
async def get_status_metrics(
    request: Request,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    admin: AdminPrincipal = Depends(can_view_analytics),
) -> StatusMetricsResponse:
    """Transition counts and mean dwell time; defaults to the last 30 days."""
    end = _as_utc(end_date) if end_date else datetime.now(timezone.utc)
    start = _as_utc(start_date) if start_date else end - timedelta(days=30)

    session_factory = get_session_factory()
    try:
        metrics = await InquiryHistoryService(session_factory).get_status_metrics(start, end)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    await AuditService(session_factory).log_action(
        admin_id=admin.admin_id,
        admin_username=admin.username,
        action=AuditAction.VIEW_METRICS,
        resource="inquiries",
        details={"start_date": start.isoformat(), "end_date": end.isoformat()},
        **client_meta(request),
    )

    return StatusMetricsResponse(
        start_date=start,
        end_date=end,
        metrics=[
            StatusMetricResponse(
                from_status=m.from_status.value,
                to_status=m.to_status.value,
                count=m.count,
                avg_dwell_seconds=m.avg_dwell_seconds,
            )
            for m in metrics
        ],
    )


@router.get("/dashboard", response_model=DashboardResponse)
async def get_dashboard(
    request: Request,
    period: str = "30d",
    admin: AdminPrincipal = Depends(can_view_analytics),
) -> DashboardResponse:
    """Counts by status, service type and urgency, recent inquiries and revenue."""
    session_factory = get_session_factory()
    summary = await InquiryService(session_factory).get_dashboard(period)

    await AuditService(session_factory).log_action(
        admin_id=admin.admin_id,
        admin_username=admin.username,
        action=AuditAction.VIEW_DASHBOARD,
        resource="dashboard",
        details={"period": summary.period},
        **client_meta(request),
    )
    return DashboardResponse.from_summary(summary)


# ---------- Status transitions ----------


@router.put("/inquiries/bulk-status", response_model=BulkStatusUpdateResponse)
async def bulk_update_status(
    request: Request,
    body: BulkStatusUpdateRequest,
    admin: AdminPrincipal = Depends(can_edit),
    publisher: InquiryEventPublisher = Depends(get_event_publisher),
    notifier: StatusEmailNotifier = Depends(get_email_notifier),
) -> BulkStatusUpdateResponse:
    """Apply each update in order; failures are reported per item, never as an HTTP error."""
    session_factory = get_session_factory()
    status_service = InquiryStatusService(session_factory)

    outcome = await status_service.bulk_update_status(
        [
            StatusUpdateItem(
                inquiry_id=item.inquiry_id,
                new_status=item.new_status,
                reason=item.reason,
                notes=item.notes,
            )
            for item in body.updates
        ],
        admin.admin_id,
    )

    # Each applied item is announced from its own engine result
    for applied in outcome.applied:
        await _announce(applied, publisher, notifier)

    await AuditService(session_factory).log_action(
        admin_id=admin.admin_id,
        admin_username=admin.username,
        action=AuditAction.BULK_UPDATE_INQUIRY_STATUS,
        resource="inquiry",
        details={
            "total": len(body.updates),
            "successful": len(outcome.successful),
            "failed": len(outcome.failed),
            "failed_items": [{"inquiry_id": f["inquiry_id"], "kind": f["kind"]} for f in outcome.failed],
        },
        success=not outcome.failed,
        error_message=None if not outcome.failed else outcome.summary,
        **client_meta(request),
    )

    return BulkStatusUpdateResponse(
        message=outcome.summary,
        successful_count=len(outcome.successful),
        failed_count=len(outcome.failed),
        successful=[BulkSuccess(**s) for s in outcome.successful],
        failed=[BulkFailure(**f) for f in outcome.failed],
    )


@router.get("/inquiries/{inquiry_id}", response_model=InquiryDetailResponse)
async def get_inquiry(
    inquiry_id: str,
    request: Request,
    admin: AdminPrincipal = Depends(can_view),
) -> InquiryDetailResponse:
    session_factory = get_session_factory()
    view = await InquiryHistoryService(session_factory).get_inquiry_with_history(inquiry_id)
    if view is None:
        raise HTTPException(status_code=404, detail="Inquiry not found")

    await AuditService(session_factory).log_action(
        admin_id=admin.admin_id,
        admin_username=admin.username,
        action=AuditAction.VIEW_INQUIRY,
        resource="inquiry",
        resource_id=view.inquiry.inquiry_id,
        **client_meta(request),
    )
    return InquiryDetailResponse.from_view(view)


@router.put("/inquiries/{inquiry_id}/status", response_model=StatusUpdateResponse)
async def update_inquiry_status(
    inquiry_id: str,
    request: Request,
    body: StatusUpdateRequest,
    admin: AdminPrincipal = Depends(can_edit),
    publisher: InquiryEventPublisher = Depends(get_event_publisher),
    notifier: StatusEmailNotifier = Depends(get_email_notifier),
) -> StatusUpdateResponse:
    """Run one transition through the engine.

    Engine errors map to 404 (not found), 400 (invalid transition or missing
    reason) and 403 (unknown actor). Storage failures are audited, then
    propagate to the global handler as 500.
    """
    session_factory = get_session_factory()
    audit = AuditService(session_factory)

    audit_entry = {
        "admin_id": admin.admin_id,
        "admin_username": admin.username,
        "action": AuditAction.UPDATE_INQUIRY_STATUS,
        "resource": "inquiry",
        "resource_id": inquiry_id,
        **client_meta(request),
    }

    try:
        result = await InquiryStatusService(session_factory).update_status(
            inquiry_id, body.status, admin.admin_id, reason=body.reason, notes=body.notes
        )
    except PersistenceFailure:
        await audit.log_action(
            **audit_entry,
            details={"old_status": None, "new_status": body.status, "reason": body.reason},
            success=False,
            error_message="Failed to persist status change",
        )
        raise

    await audit.log_action(
        **audit_entry,
        details={
            "old_status": result.old_status.value if result.old_status else None,
            "new_status": body.status,
            "reason": body.reason,
        },
        success=result.ok,
        error_message=None if result.ok else result.error.message,
    )

    if not result.ok:
        raise HTTPException(status_code=ERROR_STATUS_CODES[result.error.kind], detail=result.error.message)

    details = {
        name: value
        for name, value in (("internal_notes", body.internal_notes), ("assigned_tutor", body.assigned_tutor))
        if value is not None
    }
    if details:
        await InquiryService(session_factory).update_details(result.inquiry.id, details)

    await _announce(result, publisher, notifier)

    view = await InquiryHistoryService(session_factory).get_inquiry_with_history(result.inquiry.id)
    return StatusUpdateResponse(
        old_status=result.old_status.value,
        new_status=result.new_status.value,
        inquiry=InquiryDetailResponse.from_view(view),
    )


@router.put("/inquiries/{inquiry_id}/quote", response_model=InquiryResponse)
async def update_quote(
    inquiry_id: str,
    request: Request,
    body: QuoteUpdateRequest,
    admin: AdminPrincipal = Depends(can_edit),
    notifier: StatusEmailNotifier = Depends(get_email_notifier),
) -> InquiryResponse:
    """Record a quote amount, optionally emailing it. Status is unchanged."""
    session_factory = get_session_factory()
    service = InquiryService(session_factory)

    inquiry = await service.set_quote(inquiry_id, body.quote_amount)
    if inquiry is None:
        raise HTTPException(status_code=404, detail="Inquiry not found")

    if body.send_email:
        try:
            sent = await notifier.notify_quote(inquiry)
        except Exception:
            sent = False
            logger.warning("quote_email_failed", inquiry_id=inquiry.inquiry_id, exc_info=True)
        if sent:
            await service.mark_quote_email_sent(inquiry.id)
            inquiry = await service.get_inquiry(inquiry.id)

    await AuditService(session_factory).log_action(
        admin_id=admin.admin_id,
        admin_username=admin.username,
        action=AuditAction.UPDATE_QUOTE,
        resource="inquiry",
        resource_id=inquiry.inquiry_id,
        details={"quote_amount": str(body.quote_amount), "send_email": body.send_email},
        **client_meta(request),
    )
    return InquiryResponse.from_model(inquiry)


@router.put("/inquiries/{inquiry_id}/payment", response_model=InquiryResponse)
async def record_payment(
    inquiry_id: str,
    request: Request,
    admin: AdminPrincipal = Depends(can_edit),
) -> InquiryResponse:
    session_factory = get_session_factory()
    inquiry = await InquiryService(session_factory).record_payment(inquiry_id)
    if inquiry is None:
        raise HTTPException(status_code=404, detail="Inquiry not found")

    await AuditService(session_factory).log_action(
        admin_id=admin.admin_id,
        admin_username=admin.username,
        action=AuditAction.RECORD_PAYMENT,
        resource="inquiry",
        resource_id=inquiry.inquiry_id,
        **client_meta(request),
    )
    return InquiryResponse.from_model(inquiry)


# ---------- Audit log ----------


@router.get("/audit-logs", response_model=AuditLogListResponse)
async def list_audit_logs(
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    admin_id: uuid.UUID | None = None,
    action: str | None = None,
    resource: str | None = None,
    success: bool | None = None,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
    _: AdminPrincipal = Depends(can_view_analytics),
) -> AuditLogListResponse:
    filters = AuditLogFilters(
        admin_id=admin_id,
        action=action,
        resource=resource,
        success=success,
        date_from=date_from,
        date_to=date_to,
    )
    logs, total = await AuditService(get_session_factory()).get_logs(filters, page, limit)
    return AuditLogListResponse(
        logs=[AuditLogResponse.from_model(entry) for entry in logs],
        pagination=Pagination(
            current_page=page,
            total_pages=(total + limit - 1) // limit,
            total_items=total,
            items_per_page=limit,
        ),
    )
