"""
Report Service - composes a customer's full report from metrics, keyword
reports and recommendations.

The three reads are issued concurrently, each on its own session, and are
not wrapped in a transaction: under concurrent writes the parts may reflect
slightly different moments, which is acceptable for a reporting view.
"""
import concurrent.futures
import logging
from typing import List, Optional

from seoreport.database import Database
from seoreport.models.database import KeywordReport, OverallMetrics
from seoreport.repositories.customers import CustomerRepository
from seoreport.schemas.responses import (
    HistoryBundleResponse,
    KeywordHistoryResponse,
    KeywordReportResponse,
    MetricsHistoryResponse,
    MetricsResponse,
    RecommendResponse,
    ReportResponse,
)
from seoreport.services.keyword_service import get_keyword_service
from seoreport.services.metrics_service import get_metrics_service

logger = logging.getLogger(__name__)


def empty_report() -> ReportResponse:
    return ReportResponse(
        metrics=None,
        top_keywords=[],
        other_keywords=[],
        recommendations=[],
        customer_name=None,
        domain=None,
    )


class ReportService:
    def __init__(self, database: Database, max_workers: int = 3):
        self.database = database
        self.max_workers = max_workers

    # Each fetcher runs on a worker thread with its own session and returns
    # plain response models so nothing ORM-bound leaves the thread.

    def _fetch_metrics(self, customer_id: str) -> Optional[MetricsResponse]:
        with self.database.session() as db:
            metrics = db.query(OverallMetrics).filter(OverallMetrics.customer_id == customer_id).first()
            return MetricsResponse.model_validate(metrics) if metrics else None

    def _fetch_keywords(self, customer_id: str) -> List[KeywordReportResponse]:
        with self.database.session() as db:
            keywords = (
                db.query(KeywordReport)
                .filter(KeywordReport.customer_id == customer_id)
                .order_by(
                    KeywordReport.is_top_report.desc(),
                    KeywordReport.position.is_(None),
                    KeywordReport.position.asc(),
                )
                .all()
            )
            return [KeywordReportResponse.model_validate(k) for k in keywords]

    def _fetch_recommendations(self, customer) -> List[RecommendResponse]:
        with self.database.session() as db:
            recommends = get_keyword_service().list_recommendations(db, customer)
            return [RecommendResponse.model_validate(r) for r in recommends]

    def get_report(self, user_id: str) -> ReportResponse:
        """Aggregated report for the customer owned by user_id; empty shape when there is no profile"""
        with self.database.session() as db:
            customer = CustomerRepository(db).find_by_user_id(user_id)
            if customer is None:
                logger.debug("No customer profile for user %s, returning empty report", user_id)
                return empty_report()
            customer_name = customer.user.name if customer.user else None
            domain = customer.domain
            db.expunge(customer)

        with concurrent.futures.ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            metrics_future = pool.submit(self._fetch_metrics, customer.id)
            keywords_future = pool.submit(self._fetch_keywords, customer.id)
            recommends_future = pool.submit(self._fetch_recommendations, customer)
            metrics = metrics_future.result()
            keywords = keywords_future.result()
            recommendations = recommends_future.result()

        return ReportResponse(
            metrics=metrics,
            top_keywords=[k for k in keywords if k.is_top_report],
            other_keywords=[k for k in keywords if not k.is_top_report],
            recommendations=recommendations,
            customer_name=customer_name,
            domain=domain,
        )

    def get_history(self, user_id: str) -> Optional[HistoryBundleResponse]:
        """Metrics and keyword history for trend charts, None when there is no profile"""
        with self.database.session() as db:
            customer = CustomerRepository(db).find_by_user_id(user_id)
            if customer is None:
                return None
            metrics_history = get_metrics_service().get_history(db, customer)
            keyword_history = get_keyword_service().get_customer_keyword_history(db, customer)
            return HistoryBundleResponse(
                metrics_history=[MetricsHistoryResponse.model_validate(h) for h in metrics_history],
                keyword_history=[KeywordHistoryResponse.model_validate(h) for h in keyword_history],
            )


def get_report_service(database: Database) -> ReportService:
    """Get report service instance bound to a database"""
    return ReportService(database)
