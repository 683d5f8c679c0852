"""
Keyword Service - tracked keyword reports, their history, and recommendations
"""
import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from seoreport.models.database import (
    Customer, KeywordReport, KeywordReportHistory, KeywordRecommend, KEYWORD_FIELDS,
)
from seoreport.schemas.requests import KeywordCreate, KeywordUpdate, RecommendCreate, RecommendUpdate

logger = logging.getLogger(__name__)


def snapshot_keyword(report: KeywordReport) -> KeywordReportHistory:
    """Immutable copy of a keyword report's current values"""
    return KeywordReportHistory(
        report_id=report.id,
        **{field: getattr(report, field) for field in KEYWORD_FIELDS},
    )


class KeywordService:
    """Keyword report and recommendation operations for one customer"""

    # ==================== Keyword reports ====================

    def list_keywords(self, db: Session, customer: Customer) -> List[KeywordReport]:
        return (
            db.query(KeywordReport)
            .filter(KeywordReport.customer_id == customer.id)
            .order_by(KeywordReport.date_recorded.desc())
            .all()
        )

    def get_keyword(self, db: Session, keyword_id: str) -> Optional[KeywordReport]:
        return db.query(KeywordReport).filter(KeywordReport.id == keyword_id).first()

    def add_keyword(self, db: Session, customer: Customer, data: KeywordCreate) -> KeywordReport:
        """Create a tracked keyword. Nothing is superseded, so no history row is written."""
        report = KeywordReport(customer_id=customer.id, **data.model_dump(by_alias=False))
        db.add(report)
        try:
            db.commit()
        except Exception:
            db.rollback()
            raise
        db.refresh(report)
        return report

    def update_keyword(self, db: Session, report: KeywordReport, data: KeywordUpdate) -> KeywordReport:
        """Append the pre-update values to history, then apply the changes, in one transaction"""
        changes = data.model_dump(by_alias=False, exclude_unset=True)
        # Explicit nulls only make sense for position
        changes = {k: v for k, v in changes.items() if v is not None or k == "position"}
        try:
            db.refresh(report, with_for_update=True)
            db.add(snapshot_keyword(report))
            for field, value in changes.items():
                setattr(report, field, value)
            report.date_recorded = datetime.now(timezone.utc)
            db.commit()
        except Exception:
            db.rollback()
            raise
        db.refresh(report)
        logger.info("Updated keyword report %s", report.id)
        return report

    def delete_keyword(self, db: Session, report: KeywordReport) -> None:
        """Deleting the report drops its history with it"""
        db.delete(report)
        try:
            db.commit()
        except Exception:
            db.rollback()
            raise

    def get_keyword_history(self, db: Session, report_id: str) -> List[KeywordReportHistory]:
        return (
            db.query(KeywordReportHistory)
            .filter(KeywordReportHistory.report_id == report_id)
            .order_by(KeywordReportHistory.date_recorded.desc())
            .all()
        )

    def get_customer_keyword_history(self, db: Session, customer: Customer) -> List[KeywordReportHistory]:
        """History of every keyword the customer currently tracks"""
        report_ids = select(KeywordReport.id).where(KeywordReport.customer_id == customer.id)
        return (
            db.query(KeywordReportHistory)
            .filter(KeywordReportHistory.report_id.in_(report_ids))
            .order_by(KeywordReportHistory.date_recorded.desc())
            .all()
        )

    # ==================== Recommendations ====================

    def list_recommendations(self, db: Session, customer: Customer) -> List[KeywordRecommend]:
        return (
            db.query(KeywordRecommend)
            .filter(KeywordRecommend.customer_id == customer.id)
            .order_by(KeywordRecommend.created_at.desc())
            .all()
        )

    def get_recommendation(self, db: Session, recommend_id: str) -> Optional[KeywordRecommend]:
        return db.query(KeywordRecommend).filter(KeywordRecommend.id == recommend_id).first()

    def add_recommendation(self, db: Session, customer: Customer, data: RecommendCreate) -> KeywordRecommend:
        recommend = KeywordRecommend(customer_id=customer.id, **data.model_dump(by_alias=False))
        db.add(recommend)
        try:
            db.commit()
        except Exception:
            db.rollback()
            raise
        db.refresh(recommend)
        return recommend

    def update_recommendation(
        self, db: Session, recommend: KeywordRecommend, data: RecommendUpdate
    ) -> KeywordRecommend:
        changes = data.model_dump(by_alias=False, exclude_unset=True)
        for field, value in changes.items():
            if field == "keyword" and value is None:
                continue
            if field == "is_top_report" and value is None:
                continue
            setattr(recommend, field, value)
        try:
            db.commit()
        except Exception:
            db.rollback()
            raise
        db.refresh(recommend)
        return recommend

    def delete_recommendation(self, db: Session, recommend: KeywordRecommend) -> None:
        db.delete(recommend)
        try:
            db.commit()
        except Exception:
            db.rollback()
            raise


def get_keyword_service() -> KeywordService:
    """Get keyword service instance"""
    return KeywordService()
