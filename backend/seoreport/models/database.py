"""
SQLAlchemy database models for the SEO report dashboard
"""
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Text, Enum
from sqlalchemy.orm import relationship

from seoreport.database import Base
from seoreport.models.enums import Role, KeywordDifficulty, PaymentStatus


def generate_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    """User accounts with role-based access. deleted_at marks a soft-deleted account."""
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(String, nullable=True)
    # Unique across all rows, soft-deleted included
    email = Column(String, unique=True, nullable=False, index=True)
    hashed_password = Column(String, nullable=False)
    role = Column(Enum(Role, name="role"), nullable=False, default=Role.CUSTOMER)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
    deleted_at = Column(DateTime(timezone=True), nullable=True, index=True)

    # Relationships
    customer_profile = relationship(
        "Customer",
        back_populates="user",
        uselist=False,
        foreign_keys="Customer.user_id",
    )
    managed_customers = relationship(
        "Customer",
        back_populates="seo_dev",
        foreign_keys="Customer.seo_dev_id",
    )


class Customer(Base):
    """Customer profile, 1:1 with a CUSTOMER user. Owns all report data."""
    __tablename__ = "customers"

    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(String, nullable=False)  # Company name
    domain = Column(String, unique=True, nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    # Weak reference: removing the SEO dev never removes the customer
    seo_dev_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    # Relationships
    user = relationship("User", back_populates="customer_profile", foreign_keys=[user_id])
    seo_dev = relationship("User", back_populates="managed_customers", foreign_keys=[seo_dev_id])
    overall_metrics = relationship(
        "OverallMetrics", back_populates="customer", uselist=False, cascade="all, delete-orphan"
    )
    metrics_history = relationship(
        "OverallMetricsHistory", back_populates="customer", cascade="all, delete-orphan"
    )
    keyword_reports = relationship("KeywordReport", back_populates="customer", cascade="all, delete-orphan")
    keyword_recommends = relationship("KeywordRecommend", back_populates="customer", cascade="all, delete-orphan")
    ai_overviews = relationship("AiOverview", back_populates="customer", cascade="all, delete-orphan")
    payment_proofs = relationship("PaymentProof", back_populates="customer", cascade="all, delete-orphan")


class OverallMetrics(Base):
    """Current domain health snapshot, one row per customer"""
    __tablename__ = "overall_metrics"

    id = Column(String(36), primary_key=True, default=generate_id)
    customer_id = Column(String(36), ForeignKey("customers.id", ondelete="CASCADE"), unique=True, nullable=False)
    domain_rating = Column(Integer, nullable=False, default=0)  # 0-100
    health_score = Column(Integer, nullable=False, default=0)  # 0-100
    age_in_years = Column(Integer, nullable=False, default=0)
    age_in_months = Column(Integer, nullable=False, default=0)  # 0-11
    spam_score = Column(Integer, nullable=False, default=0)  # 0-100
    organic_traffic = Column(Integer, nullable=False, default=0)
    organic_keywords = Column(Integer, nullable=False, default=0)
    backlinks = Column(Integer, nullable=False, default=0)
    ref_domains = Column(Integer, nullable=False, default=0)
    date_recorded = Column(DateTime(timezone=True), default=utcnow)

    customer = relationship("Customer", back_populates="overall_metrics")


# Columns copied verbatim from OverallMetrics into a history row
METRIC_FIELDS = (
    "domain_rating",
    "health_score",
    "age_in_years",
    "age_in_months",
    "spam_score",
    "organic_traffic",
    "organic_keywords",
    "backlinks",
    "ref_domains",
)


class OverallMetricsHistory(Base):
    """Append-only log of superseded OverallMetrics values"""
    __tablename__ = "overall_metrics_history"

    id = Column(String(36), primary_key=True, default=generate_id)
    customer_id = Column(String(36), ForeignKey("customers.id", ondelete="CASCADE"), nullable=False, index=True)
    domain_rating = Column(Integer, nullable=False)
    health_score = Column(Integer, nullable=False)
    age_in_years = Column(Integer, nullable=False)
    age_in_months = Column(Integer, nullable=False)
    spam_score = Column(Integer, nullable=False)
    organic_traffic = Column(Integer, nullable=False)
    organic_keywords = Column(Integer, nullable=False)
    backlinks = Column(Integer, nullable=False)
    ref_domains = Column(Integer, nullable=False)
    date_recorded = Column(DateTime(timezone=True), default=utcnow, index=True)

    customer = relationship("Customer", back_populates="metrics_history")


class KeywordReport(Base):
    """Current state of a tracked keyword"""
    __tablename__ = "keyword_reports"

    id = Column(String(36), primary_key=True, default=generate_id)
    customer_id = Column(String(36), ForeignKey("customers.id", ondelete="CASCADE"), nullable=False, index=True)
    keyword = Column(String, nullable=False)
    position = Column(Integer, nullable=True)  # Rank, None when not ranking
    traffic = Column(Integer, nullable=False, default=0)
    kd = Column(Enum(KeywordDifficulty, name="keyword_difficulty"), nullable=False)
    is_top_report = Column(Boolean, nullable=False, default=False)
    date_recorded = Column(DateTime(timezone=True), default=utcnow)

    customer = relationship("Customer", back_populates="keyword_reports")
    history = relationship("KeywordReportHistory", back_populates="report", cascade="all, delete-orphan")


KEYWORD_FIELDS = ("keyword", "position", "traffic", "kd", "is_top_report")


class KeywordReportHistory(Base):
    """Append-only per-report snapshot log"""
    __tablename__ = "keyword_report_history"

    id = Column(String(36), primary_key=True, default=generate_id)
    report_id = Column(String(36), ForeignKey("keyword_reports.id", ondelete="CASCADE"), nullable=False, index=True)
    keyword = Column(String, nullable=False)
    position = Column(Integer, nullable=True)
    traffic = Column(Integer, nullable=False)
    kd = Column(Enum(KeywordDifficulty, name="keyword_difficulty"), nullable=False)
    is_top_report = Column(Boolean, nullable=False)
    date_recorded = Column(DateTime(timezone=True), default=utcnow, index=True)

    report = relationship("KeywordReport", back_populates="history")


class KeywordRecommend(Base):
    """Suggested keyword that is not tracked yet"""
    __tablename__ = "keyword_recommends"

    id = Column(String(36), primary_key=True, default=generate_id)
    customer_id = Column(String(36), ForeignKey("customers.id", ondelete="CASCADE"), nullable=False, index=True)
    keyword = Column(String, nullable=False)
    kd = Column(Enum(KeywordDifficulty, name="keyword_difficulty"), nullable=True)
    is_top_report = Column(Boolean, nullable=False, default=False)
    note = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    customer = relationship("Customer", back_populates="keyword_recommends")


class AiOverview(Base):
    """Titled set of up to three AI search overview screenshots"""
    __tablename__ = "ai_overviews"

    id = Column(String(36), primary_key=True, default=generate_id)
    customer_id = Column(String(36), ForeignKey("customers.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String, nullable=False)
    display_date = Column(DateTime(timezone=True), default=utcnow)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    customer = relationship("Customer", back_populates="ai_overviews")
    images = relationship(
        "AiOverviewImage",
        back_populates="ai_overview",
        cascade="all, delete-orphan",
        order_by="AiOverviewImage.created_at",
    )


class AiOverviewImage(Base):
    __tablename__ = "ai_overview_images"

    id = Column(String(36), primary_key=True, default=generate_id)
    ai_overview_id = Column(String(36), ForeignKey("ai_overviews.id", ondelete="CASCADE"), nullable=False, index=True)
    image_url = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    ai_overview = relationship("AiOverview", back_populates="images")


class PaymentProof(Base):
    """Uploaded payment slip"""
    __tablename__ = "payment_proofs"

    id = Column(String(36), primary_key=True, default=generate_id)
    customer_id = Column(String(36), ForeignKey("customers.id", ondelete="CASCADE"), nullable=False, index=True)
    upload_url = Column(String, nullable=False)
    status = Column(Enum(PaymentStatus, name="payment_status"), nullable=False, default=PaymentStatus.PENDING)
    upload_date = Column(DateTime(timezone=True), default=utcnow, index=True)

    customer = relationship("Customer", back_populates="payment_proofs")
