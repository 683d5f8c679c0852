"""
Payment proof upload API

POST /api/payments/upload - upload a payment slip (jpg/png, max 5MB)
GET  /api/payments/upload - list uploaded slips (admin / SEO dev)
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from sqlalchemy.orm import Session, joinedload

from seoreport.api.auth import require_session, require_staff
from seoreport.database import get_db
from seoreport.errors import NotFoundError, ValidationError
from seoreport.models.database import PaymentProof
from seoreport.models.enums import PaymentStatus
from seoreport.repositories.customers import CustomerRepository
from seoreport.schemas.responses import PaymentListResponse, PaymentProofResponse, PaymentUploadResponse
from seoreport.services.authorization import OwnerOrStaff, SessionUser, ensure_allowed
from seoreport.services.upload_service import FileStore, get_file_store, validate_upload

logger = logging.getLogger(__name__)

router = APIRouter()

CATEGORY = "payments"


@router.post("/upload", response_model=PaymentUploadResponse)
def upload_payment_proof(
    file: Optional[UploadFile] = File(None),
    customer_id: Optional[str] = Form(None, alias="customerId"),
    session: SessionUser = Depends(require_session),
    db: Session = Depends(get_db),
    store: FileStore = Depends(get_file_store),
):
    """Validate and store a payment slip, then record it as PENDING"""
    if file is None or not file.filename:
        raise ValidationError("กรุณาเลือกไฟล์ที่ต้องการอัปโหลด")
    if not customer_id:
        raise ValidationError("กรุณาระบุ customerId")

    customer = CustomerRepository(db).find_by_id(customer_id)
    if customer is None:
        raise NotFoundError("ไม่พบข้อมูลลูกค้า")
    ensure_allowed(session, OwnerOrStaff(owner_user_id=customer.user_id, assigned_seo_dev_id=customer.seo_dev_id))

    result = validate_upload(file.filename, file.content_type, file.file.read())
    if not result.is_valid:
        raise ValidationError(result.error or "ไฟล์ไม่ผ่านการตรวจสอบ")

    upload_url = store.save(CATEGORY, result.validated_file)
    proof = PaymentProof(
        upload_url=upload_url,
        customer_id=customer.id,
        status=PaymentStatus.PENDING,
    )
    db.add(proof)
    try:
        db.commit()
    except Exception:
        db.rollback()
        store.remove(upload_url)
        raise
    db.refresh(proof)
    logger.info("Payment proof %s uploaded for customer %s", proof.id, customer.id)

    return PaymentUploadResponse(
        success=True,
        message="อัปโหลดสลิปสำเร็จ",
        data=PaymentProofResponse.model_validate(proof),
    )


@router.get("/upload", response_model=PaymentListResponse)
def list_payment_proofs(
    status: Optional[PaymentStatus] = Query(None),
    customer_id: Optional[str] = Query(None, alias="customerId"),
    session: SessionUser = Depends(require_staff),
    db: Session = Depends(get_db),
):
    """All payment proofs, newest upload first"""
    query = db.query(PaymentProof).options(joinedload(PaymentProof.customer))
    if status is not None:
        query = query.filter(PaymentProof.status == status)
    if customer_id:
        query = query.filter(PaymentProof.customer_id == customer_id)
    proofs = query.order_by(PaymentProof.upload_date.desc()).all()
    return PaymentListResponse(
        success=True,
        data=[PaymentProofResponse.model_validate(p) for p in proofs],
    )
