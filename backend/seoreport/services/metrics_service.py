"""
Metrics Service - current overall metrics plus their change history

Every save of a customer's OverallMetrics appends the values it replaces to
OverallMetricsHistory in the same transaction, so trend charts can be built
from history + current without a separate audit log.
"""
import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.orm import Session

from seoreport.models.database import (
    Customer, OverallMetrics, OverallMetricsHistory, METRIC_FIELDS,
)
from seoreport.schemas.requests import MetricsInput

logger = logging.getLogger(__name__)


def snapshot_metrics(metrics: OverallMetrics) -> OverallMetricsHistory:
    """Immutable copy of the current values"""
    return OverallMetricsHistory(
        customer_id=metrics.customer_id,
        **{field: getattr(metrics, field) for field in METRIC_FIELDS},
    )


class MetricsService:
    """Reads and writes a customer's overall metrics"""

    def get_metrics(self, db: Session, customer: Customer) -> Optional[OverallMetrics]:
        return db.query(OverallMetrics).filter(OverallMetrics.customer_id == customer.id).first()

    def save_metrics(self, db: Session, customer: Customer, data: MetricsInput) -> OverallMetrics:
        """
        Upsert the current metrics for a customer.

        Read old -> append old to history -> write new, committed as one
        transaction. The row lock keeps concurrent writers from skipping or
        duplicating a snapshot on databases that support SELECT ... FOR UPDATE.
        """
        values = data.model_dump(by_alias=False)
        try:
            current = (
                db.query(OverallMetrics)
                .filter(OverallMetrics.customer_id == customer.id)
                .with_for_update()
                .first()
            )
            if current is not None:
                db.add(snapshot_metrics(current))
            else:
                current = OverallMetrics(customer_id=customer.id)
                db.add(current)

            for field in METRIC_FIELDS:
                setattr(current, field, values[field])
            current.date_recorded = datetime.now(timezone.utc)

            db.commit()
        except Exception:
            db.rollback()
            raise

        db.refresh(current)
        logger.info("Saved metrics for customer %s", customer.id)
        return current

    def get_history(self, db: Session, customer: Customer) -> List[OverallMetricsHistory]:
        return (
            db.query(OverallMetricsHistory)
            .filter(OverallMetricsHistory.customer_id == customer.id)
            .order_by(OverallMetricsHistory.date_recorded.desc())
            .all()
        )


def get_metrics_service() -> MetricsService:
    """Get metrics service instance"""
    return MetricsService()
