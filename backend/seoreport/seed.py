"""
Seed demo accounts: one admin, one SEO dev and one customer assigned to the SEO dev.
Safe to run repeatedly.

    python -m seoreport.seed
"""
import logging
import os

from seoreport import config
from seoreport.database import Database
from seoreport.models.database import Customer, User
from seoreport.models.enums import Role
from seoreport.services.auth_service import hash_password

logger = logging.getLogger(__name__)

DEMO_PASSWORD = os.getenv("SEED_PASSWORD", "password123")
DEMO_DOMAIN = "www.my-domain-report.com"


def _ensure_user(db, email: str, name: str, role: Role) -> User:
    user = db.query(User).filter(User.email == email).first()
    if user is None:
        user = User(email=email, name=name, role=role, hashed_password=hash_password(DEMO_PASSWORD))
        db.add(user)
        db.flush()
    return user


def seed(database: Database) -> None:
    database.init_db()
    with database.session() as db:
        admin = _ensure_user(db, "admin@report.com", "Admin", Role.ADMIN)
        seo_dev = _ensure_user(db, "seo.dev@report.com", "SEO Dev", Role.SEO_DEV)
        customer_user = _ensure_user(db, "customer@report.com", "Customer", Role.CUSTOMER)

        customer = db.query(Customer).filter(Customer.domain == DEMO_DOMAIN).first()
        if customer is None:
            db.add(Customer(
                name="Thanaplus Co., Ltd.",
                domain=DEMO_DOMAIN,
                user_id=customer_user.id,
                seo_dev_id=seo_dev.id,
            ))
        db.commit()

        logger.info("Seeded admin=%s seo_dev=%s customer=%s", admin.email, seo_dev.email, customer_user.email)


if __name__ == "__main__":
    logging.basicConfig(level=config.LOG_LEVEL)
    seed(Database(config.DATABASE_URL))
