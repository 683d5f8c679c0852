"""
Enumerations shared by the ORM models, schemas and the authorization gate
"""
import enum


class Role(str, enum.Enum):
    ADMIN = "ADMIN"
    SEO_DEV = "SEO_DEV"
    CUSTOMER = "CUSTOMER"


class KeywordDifficulty(str, enum.Enum):
    EASY = "EASY"
    MEDIUM = "MEDIUM"
    HARD = "HARD"


class PaymentStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
