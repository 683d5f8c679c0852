"""
Response schemas for the SEO report dashboard API
"""
from datetime import datetime
from typing import List, Optional

from seoreport.models.enums import KeywordDifficulty, PaymentStatus, Role
from seoreport.schemas.base import APIModel


class SessionUserResponse(APIModel):
    id: str
    email: Optional[str] = None
    name: Optional[str] = None
    role: Role


class TokenResponse(APIModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: SessionUserResponse


# ==================== Users ====================

class CustomerProfileResponse(APIModel):
    id: str
    name: str
    domain: str
    seo_dev_id: Optional[str] = None


class UserResponse(APIModel):
    id: str
    name: Optional[str]
    email: str
    role: Role
    created_at: datetime
    deleted_at: Optional[datetime] = None
    customer_profile: Optional[CustomerProfileResponse] = None


class UserHeaderResponse(APIModel):
    user_name: Optional[str]
    user_role: Role
    domain: Optional[str] = None


# ==================== Metrics ====================

class MetricsResponse(APIModel):
    id: str
    customer_id: str
    domain_rating: int
    health_score: int
    age_in_years: int
    age_in_months: int
    spam_score: int
    organic_traffic: int
    organic_keywords: int
    backlinks: int
    ref_domains: int
    date_recorded: datetime


class MetricsHistoryResponse(MetricsResponse):
    pass


# ==================== Keywords ====================

class KeywordReportResponse(APIModel):
    id: str
    customer_id: str
    keyword: str
    position: Optional[int]
    traffic: int
    kd: KeywordDifficulty
    is_top_report: bool
    date_recorded: datetime


class KeywordHistoryResponse(APIModel):
    id: str
    report_id: str
    keyword: str
    position: Optional[int]
    traffic: int
    kd: KeywordDifficulty
    is_top_report: bool
    date_recorded: datetime


class RecommendResponse(APIModel):
    id: str
    customer_id: str
    keyword: str
    kd: Optional[KeywordDifficulty] = None
    is_top_report: bool
    note: Optional[str] = None
    created_at: datetime


class HistoryBundleResponse(APIModel):
    metrics_history: List[MetricsHistoryResponse] = []
    keyword_history: List[KeywordHistoryResponse] = []


class ReportResponse(APIModel):
    """Aggregated customer report"""
    metrics: Optional[MetricsResponse] = None
    top_keywords: List[KeywordReportResponse] = []
    other_keywords: List[KeywordReportResponse] = []
    recommendations: List[RecommendResponse] = []
    customer_name: Optional[str] = None
    domain: Optional[str] = None


# ==================== AI overview ====================

class AiOverviewImageResponse(APIModel):
    id: str
    image_url: str
    created_at: datetime


class AiOverviewResponse(APIModel):
    id: str
    customer_id: str
    title: str
    display_date: datetime
    created_at: datetime
    images: List[AiOverviewImageResponse] = []


class MessageResponse(APIModel):
    success: bool = True
    message: str


# ==================== Payments ====================

class PaymentCustomerResponse(APIModel):
    id: str
    name: str
    domain: str


class PaymentProofResponse(APIModel):
    id: str
    customer_id: str
    upload_url: str
    status: PaymentStatus
    upload_date: datetime
    customer: Optional[PaymentCustomerResponse] = None


class PaymentUploadResponse(APIModel):
    success: bool = True
    message: str
    data: PaymentProofResponse


class PaymentListResponse(APIModel):
    success: bool = True
    data: List[PaymentProofResponse]
