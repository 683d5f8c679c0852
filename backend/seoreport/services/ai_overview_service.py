"""
AI Overview Service - titled sets of 1 to 3 screenshots of AI search overviews
"""
import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from sqlalchemy.orm import Session, selectinload

from seoreport.config import MAX_AI_OVERVIEW_IMAGES
from seoreport.errors import NotFoundError, ValidationError
from seoreport.models.database import AiOverview, AiOverviewImage, Customer
from seoreport.services.upload_service import FileStore, ValidatedFile, validate_upload

logger = logging.getLogger(__name__)

CATEGORY = "ai-overview"

TITLE_REQUIRED = "กรุณาระบุหัวข้อ AI Overview"
IMAGE_REQUIRED = "กรุณาอัปโหลดรูปภาพอย่างน้อย 1 รูป"
IMAGE_REQUIRED_ON_UPDATE = "ต้องมีรูปภาพอย่างน้อย 1 รูป"
TOO_MANY_IMAGES = f"อัปโหลดรูปภาพได้สูงสุด {MAX_AI_OVERVIEW_IMAGES} รูป"
FILE_REJECTED = "ไฟล์ไม่ผ่านการตรวจสอบ"
NOT_FOUND = "ไม่พบข้อมูล AI Overview"


@dataclass(frozen=True)
class IncomingFile:
    """Raw upload as received from the multipart form"""
    filename: Optional[str]
    content_type: Optional[str]
    data: bytes


def parse_display_date(value: Optional[str], default: Optional[datetime] = None) -> datetime:
    if not value:
        return default or datetime.now(timezone.utc)
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        raise ValidationError("Invalid displayDate", issues=[{"field": "displayDate", "message": "Invalid date"}])


def parse_image_ids(value: Optional[str]) -> List[str]:
    """imagesToDelete arrives as a JSON list of image ids"""
    if not value:
        return []
    try:
        ids = json.loads(value)
    except json.JSONDecodeError:
        raise ValidationError("Invalid imagesToDelete")
    if not isinstance(ids, list) or not all(isinstance(i, str) for i in ids):
        raise ValidationError("Invalid imagesToDelete")
    return ids


class AiOverviewService:
    def __init__(self, store: FileStore):
        self.store = store

    def _validate_files(self, files: Sequence[IncomingFile]) -> List[ValidatedFile]:
        # Every file must pass before any of them is written to disk
        validated = []
        for incoming in files:
            result = validate_upload(incoming.filename, incoming.content_type, incoming.data)
            if not result.is_valid:
                raise ValidationError(result.error or FILE_REJECTED)
            validated.append(result.validated_file)
        return validated

    def list_overviews(self, db: Session, customer: Customer) -> List[AiOverview]:
        return (
            db.query(AiOverview)
            .options(selectinload(AiOverview.images))
            .filter(AiOverview.customer_id == customer.id)
            .order_by(AiOverview.created_at.desc())
            .all()
        )

    def get_overview(self, db: Session, customer: Customer, overview_id: str) -> AiOverview:
        overview = (
            db.query(AiOverview)
            .options(selectinload(AiOverview.images))
            .filter(AiOverview.id == overview_id, AiOverview.customer_id == customer.id)
            .first()
        )
        if overview is None:
            raise NotFoundError(NOT_FOUND)
        return overview

    def create_overview(
        self,
        db: Session,
        customer: Customer,
        title: Optional[str],
        files: Sequence[IncomingFile],
        display_date: Optional[str] = None,
    ) -> AiOverview:
        if not title or not title.strip():
            raise ValidationError(TITLE_REQUIRED)
        if not files:
            raise ValidationError(IMAGE_REQUIRED)
        if len(files) > MAX_AI_OVERVIEW_IMAGES:
            raise ValidationError(TOO_MANY_IMAGES)

        when = parse_display_date(display_date)
        validated = self._validate_files(files)
        urls = [self.store.save(CATEGORY, f) for f in validated]

        overview = AiOverview(
            customer_id=customer.id,
            title=title.strip(),
            display_date=when,
            images=[AiOverviewImage(image_url=url) for url in urls],
        )
        db.add(overview)
        try:
            db.commit()
        except Exception:
            db.rollback()
            for url in urls:
                self.store.remove(url)
            raise
        db.refresh(overview)
        logger.info("Created AI overview %s with %d images", overview.id, len(urls))
        return overview

    def update_overview(
        self,
        db: Session,
        customer: Customer,
        overview_id: str,
        title: Optional[str],
        files: Sequence[IncomingFile],
        display_date: Optional[str] = None,
        images_to_delete: Optional[str] = None,
    ) -> AiOverview:
        overview = self.get_overview(db, customer, overview_id)

        if not title or not title.strip():
            raise ValidationError(TITLE_REQUIRED)

        delete_ids = set(parse_image_ids(images_to_delete))
        removed = [img for img in overview.images if img.id in delete_ids]
        removed_urls = [img.image_url for img in removed]
        total = len(overview.images) - len(removed) + len(files)
        if total == 0:
            raise ValidationError(IMAGE_REQUIRED_ON_UPDATE)
        if total > MAX_AI_OVERVIEW_IMAGES:
            raise ValidationError(TOO_MANY_IMAGES)

        when = parse_display_date(display_date, default=overview.display_date)
        validated = self._validate_files(files)
        urls = [self.store.save(CATEGORY, f) for f in validated]

        overview.title = title.strip()
        overview.display_date = when
        for image in removed:
            overview.images.remove(image)
        for url in urls:
            overview.images.append(AiOverviewImage(image_url=url))

        try:
            db.commit()
        except Exception:
            db.rollback()
            for url in urls:
                self.store.remove(url)
            raise

        for url in removed_urls:
            self.store.remove(url)

        db.refresh(overview)
        return overview

    def delete_overview(self, db: Session, customer: Customer, overview_id: str) -> None:
        overview = self.get_overview(db, customer, overview_id)
        urls = [img.image_url for img in overview.images]
        db.delete(overview)
        try:
            db.commit()
        except Exception:
            db.rollback()
            raise

        # Files go only once the rows are gone
        for url in urls:
            self.store.remove(url)
        logger.info("Deleted AI overview %s", overview_id)


def get_ai_overview_service(store: FileStore) -> AiOverviewService:
    """Get AI overview service instance"""
    return AiOverviewService(store)
