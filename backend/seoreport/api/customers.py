"""
Customer report API endpoints: metrics, keywords, recommendations, report, AI overviews

{customer_id} in these paths is the user id that owns the customer profile.
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Response, UploadFile
from sqlalchemy.orm import Session

from seoreport.api.auth import get_session, require_staff
from seoreport.database import Database, get_database, get_db
from seoreport.errors import NotFoundError
from seoreport.models.database import Customer
from seoreport.repositories.customers import CustomerRepository
from seoreport.schemas.requests import (
    KeywordCreate, KeywordUpdate, MetricsInput, RecommendCreate, RecommendUpdate,
)
from seoreport.schemas.responses import (
    AiOverviewResponse,
    HistoryBundleResponse,
    KeywordHistoryResponse,
    KeywordReportResponse,
    MessageResponse,
    MetricsResponse,
    RecommendResponse,
    ReportResponse,
)
from seoreport.services.ai_overview_service import IncomingFile, get_ai_overview_service
from seoreport.services.authorization import (
    Authenticated, OwnerOrStaff, SessionUser, StaffOnly, ensure_allowed,
)
from seoreport.services.keyword_service import get_keyword_service
from seoreport.services.metrics_service import get_metrics_service
from seoreport.services.report_service import get_report_service
from seoreport.services.upload_service import FileStore, get_file_store

logger = logging.getLogger(__name__)

router = APIRouter()

CUSTOMER_NOT_FOUND = "Customer not found"


def resolve_customer(
    db: Session,
    session: Optional[SessionUser],
    user_id: str,
    staff_only: bool = False,
    required: bool = True,
) -> Optional[Customer]:
    """
    Authorize, then load the customer owned by user_id.

    Role and ownership are checked before the lookup; the SEO dev assignment
    check (when enabled) needs the profile and runs right after it.
    """
    pre_check = StaffOnly() if staff_only else OwnerOrStaff(owner_user_id=user_id)
    ensure_allowed(session, pre_check, seo_dev_assigned_only=False)

    customer = CustomerRepository(db).find_by_user_id(user_id)
    if customer is None:
        if required:
            raise NotFoundError(CUSTOMER_NOT_FOUND)
        return None

    ensure_allowed(session, OwnerOrStaff(owner_user_id=customer.user_id, assigned_seo_dev_id=customer.seo_dev_id))
    return customer


def authorize_child(session: Optional[SessionUser], customer: Customer, staff_only: bool) -> None:
    """Authorize access to a keyword/recommendation through its parent customer"""
    if staff_only:
        ensure_allowed(session, StaffOnly())
    ensure_allowed(session, OwnerOrStaff(owner_user_id=customer.user_id, assigned_seo_dev_id=customer.seo_dev_id))


def _read_files(files: Optional[List[UploadFile]]) -> List[IncomingFile]:
    incoming = []
    for upload in files or []:
        # Browsers send an empty part when no file was chosen
        if not upload.filename:
            continue
        incoming.append(IncomingFile(
            filename=upload.filename,
            content_type=upload.content_type,
            data=upload.file.read(),
        ))
    return incoming


# ==================== Keyword / recommendation by id ====================

@router.put("/keywords/{keyword_id}", response_model=KeywordReportResponse)
def update_keyword(
    keyword_id: str,
    request: KeywordUpdate,
    session: SessionUser = Depends(require_staff),
    db: Session = Depends(get_db),
):
    """Update a keyword report; the previous values go to its history"""
    service = get_keyword_service()
    report = service.get_keyword(db, keyword_id)
    if report is None:
        raise NotFoundError("Keyword not found")
    authorize_child(session, report.customer, staff_only=True)
    return service.update_keyword(db, report, request)


@router.delete("/keywords/{keyword_id}", status_code=204)
def delete_keyword(
    keyword_id: str,
    session: SessionUser = Depends(require_staff),
    db: Session = Depends(get_db),
):
    service = get_keyword_service()
    report = service.get_keyword(db, keyword_id)
    if report is None:
        raise NotFoundError("Keyword not found")
    authorize_child(session, report.customer, staff_only=True)
    service.delete_keyword(db, report)
    return Response(status_code=204)


@router.get("/keywords/{keyword_id}/history", response_model=List[KeywordHistoryResponse])
def get_keyword_history(
    keyword_id: str,
    session: Optional[SessionUser] = Depends(get_session),
    db: Session = Depends(get_db),
):
    """Snapshots of a keyword report, newest first"""
    ensure_allowed(session, Authenticated())
    service = get_keyword_service()
    report = service.get_keyword(db, keyword_id)
    if report is None:
        raise NotFoundError("Keyword not found")
    authorize_child(session, report.customer, staff_only=False)
    return service.get_keyword_history(db, report.id)


@router.put("/recommend-keywords/{recommend_id}", response_model=RecommendResponse)
def update_recommendation(
    recommend_id: str,
    request: RecommendUpdate,
    session: SessionUser = Depends(require_staff),
    db: Session = Depends(get_db),
):
    service = get_keyword_service()
    recommend = service.get_recommendation(db, recommend_id)
    if recommend is None:
        raise NotFoundError("Recommended keyword not found")
    authorize_child(session, recommend.customer, staff_only=True)
    return service.update_recommendation(db, recommend, request)


@router.delete("/recommend-keywords/{recommend_id}", status_code=204)
def delete_recommendation(
    recommend_id: str,
    session: SessionUser = Depends(require_staff),
    db: Session = Depends(get_db),
):
    service = get_keyword_service()
    recommend = service.get_recommendation(db, recommend_id)
    if recommend is None:
        raise NotFoundError("Recommended keyword not found")
    authorize_child(session, recommend.customer, staff_only=True)
    service.delete_recommendation(db, recommend)
    return Response(status_code=204)


# ==================== Metrics ====================

@router.get("/{customer_id}/metrics", response_model=Optional[MetricsResponse])
def get_metrics(
    customer_id: str,
    session: Optional[SessionUser] = Depends(get_session),
    db: Session = Depends(get_db),
):
    """Current metrics, null when the customer has no profile or no metrics yet"""
    customer = resolve_customer(db, session, customer_id, required=False)
    if customer is None:
        return None
    return get_metrics_service().get_metrics(db, customer)


@router.post("/{customer_id}/metrics", response_model=MetricsResponse, status_code=201)
def save_metrics(
    customer_id: str,
    request: MetricsInput,
    session: SessionUser = Depends(require_staff),
    db: Session = Depends(get_db),
):
    """Create or replace current metrics; the replaced values are appended to history"""
    customer = resolve_customer(db, session, customer_id, staff_only=True)
    return get_metrics_service().save_metrics(db, customer, request)


@router.get("/{customer_id}/metrics/history", response_model=HistoryBundleResponse)
def get_metrics_history(
    customer_id: str,
    session: Optional[SessionUser] = Depends(get_session),
    db: Session = Depends(get_db),
    database: Database = Depends(get_database),
):
    """Metrics and keyword history for trend charts"""
    resolve_customer(db, session, customer_id)
    history = get_report_service(database).get_history(customer_id)
    if history is None:
        raise NotFoundError(CUSTOMER_NOT_FOUND)
    return history


# ==================== Keywords ====================

@router.get("/{customer_id}/keywords", response_model=List[KeywordReportResponse])
def list_keywords(
    customer_id: str,
    session: Optional[SessionUser] = Depends(get_session),
    db: Session = Depends(get_db),
):
    customer = resolve_customer(db, session, customer_id, required=False)
    if customer is None:
        return []
    return get_keyword_service().list_keywords(db, customer)


@router.post("/{customer_id}/keywords", response_model=KeywordReportResponse, status_code=201)
def add_keyword(
    customer_id: str,
    request: KeywordCreate,
    session: SessionUser = Depends(require_staff),
    db: Session = Depends(get_db),
):
    customer = resolve_customer(db, session, customer_id, staff_only=True)
    return get_keyword_service().add_keyword(db, customer, request)


# ==================== Recommendations ====================

@router.get("/{customer_id}/recommend-keywords", response_model=List[RecommendResponse])
def list_recommendations(
    customer_id: str,
    session: Optional[SessionUser] = Depends(get_session),
    db: Session = Depends(get_db),
):
    customer = resolve_customer(db, session, customer_id)
    return get_keyword_service().list_recommendations(db, customer)


@router.post("/{customer_id}/recommend-keywords", response_model=RecommendResponse, status_code=201)
def add_recommendation(
    customer_id: str,
    request: RecommendCreate,
    session: SessionUser = Depends(require_staff),
    db: Session = Depends(get_db),
):
    customer = resolve_customer(db, session, customer_id, staff_only=True)
    return get_keyword_service().add_recommendation(db, customer, request)


# ==================== Report ====================

@router.get("/{customer_id}/report", response_model=ReportResponse)
def get_report(
    customer_id: str,
    session: Optional[SessionUser] = Depends(get_session),
    db: Session = Depends(get_db),
    database: Database = Depends(get_database),
):
    """Full report; an empty shape when the user has no customer profile"""
    resolve_customer(db, session, customer_id, required=False)
    return get_report_service(database).get_report(customer_id)


# ==================== AI overview ====================

@router.get("/{customer_id}/ai-overview", response_model=List[AiOverviewResponse])
def list_ai_overviews(
    customer_id: str,
    session: Optional[SessionUser] = Depends(get_session),
    db: Session = Depends(get_db),
    store: FileStore = Depends(get_file_store),
):
    customer = resolve_customer(db, session, customer_id, required=False)
    if customer is None:
        return []
    return get_ai_overview_service(store).list_overviews(db, customer)


@router.post("/{customer_id}/ai-overview", response_model=AiOverviewResponse, status_code=201)
def create_ai_overview(
    customer_id: str,
    title: Optional[str] = Form(None),
    display_date: Optional[str] = Form(None, alias="displayDate"),
    files: Optional[List[UploadFile]] = File(None),
    session: SessionUser = Depends(require_staff),
    db: Session = Depends(get_db),
    store: FileStore = Depends(get_file_store),
):
    """Create an AI overview with 1 to 3 jpg/png images"""
    customer = resolve_customer(db, session, customer_id, staff_only=True)
    return get_ai_overview_service(store).create_overview(
        db, customer, title, _read_files(files), display_date=display_date,
    )


@router.put("/{customer_id}/ai-overview/{overview_id}", response_model=AiOverviewResponse)
def update_ai_overview(
    customer_id: str,
    overview_id: str,
    title: Optional[str] = Form(None),
    display_date: Optional[str] = Form(None, alias="displayDate"),
    images_to_delete: Optional[str] = Form(None, alias="imagesToDelete"),
    files: Optional[List[UploadFile]] = File(None),
    session: SessionUser = Depends(require_staff),
    db: Session = Depends(get_db),
    store: FileStore = Depends(get_file_store),
):
    customer = resolve_customer(db, session, customer_id, staff_only=True)
    return get_ai_overview_service(store).update_overview(
        db,
        customer,
        overview_id,
        title,
        _read_files(files),
        display_date=display_date,
        images_to_delete=images_to_delete,
    )


@router.delete("/{customer_id}/ai-overview/{overview_id}", response_model=MessageResponse)
def delete_ai_overview(
    customer_id: str,
    overview_id: str,
    session: SessionUser = Depends(require_staff),
    db: Session = Depends(get_db),
    store: FileStore = Depends(get_file_store),
):
    customer = resolve_customer(db, session, customer_id, staff_only=True)
    get_ai_overview_service(store).delete_overview(db, customer, overview_id)
    return MessageResponse(success=True, message="ลบ AI Overview สำเร็จ")
