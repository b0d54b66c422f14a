"""
CustomerRepository: customer lookup and creation.

Customers are looked up by normalized email. Creation never updates an
existing row; a unique key violation means another writer got there first.
"""

import logging
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from app.db.models import Customer
from app.db.repositories.base import BaseRepository, log_operation
from app.domain.models import CustomerDomain

logger = logging.getLogger(__name__)


class CustomerRepository(BaseRepository):
    """Repository for customer-related operations."""

    @log_operation()
    async def find_by_email(self, email: str) -> Optional[Customer]:
        """Find a customer by email, case-insensitively."""
        async with self.get_session() as session:
            result = await session.execute(
                select(Customer).where(func.lower(Customer.email) == email.strip().lower()).limit(1)
            )
            return result.scalar_one_or_none()

    @log_operation()
    async def create(self, customer: CustomerDomain) -> Optional[Customer]:
        """
        Insert a customer.

        Returns:
            The created row, or None if a customer with the same email
            was inserted concurrently
        """
        async with self.get_session() as session:
            row = Customer(**customer.to_dict())
            session.add(row)
            try:
                await session.commit()
            except IntegrityError:
                await session.rollback()
                logger.info(f"Customer {customer.email} already exists (concurrent insert)")
                return None
            await session.refresh(row)
            return row
