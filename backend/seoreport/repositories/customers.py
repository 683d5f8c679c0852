"""
Customer profile lookups. Endpoints address customers by their owning user id.
"""
from typing import Optional

from sqlalchemy.orm import Session, joinedload

from seoreport.models.database import Customer


class CustomerRepository:
    def __init__(self, db: Session):
        self.db = db

    def find_by_user_id(self, user_id: str) -> Optional[Customer]:
        return (
            self.db.query(Customer)
            .options(joinedload(Customer.user))
            .filter(Customer.user_id == user_id)
            .first()
        )

    def find_by_id(self, customer_id: str) -> Optional[Customer]:
        return self.db.query(Customer).filter(Customer.id == customer_id).first()

    def domain_in_use(self, domain: str, exclude_id: Optional[str] = None) -> bool:
        query = self.db.query(Customer.id).filter(Customer.domain == domain)
        if exclude_id is not None:
            query = query.filter(Customer.id != exclude_id)
        return query.first() is not None
